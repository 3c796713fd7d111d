"""Regular/overtime split for one employee's period hours."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Mapping

from shift_payroll.calculators.rounding import to_decimal
from shift_payroll.calculators.types import OvertimePolicy, OvertimeRuleType, OvertimeSplit
from shift_payroll.errors import ValidationError

if TYPE_CHECKING:
    from shift_payroll.models import Employee

ZERO = Decimal("0")


class OvertimeSplitter:
    """Single-threshold overtime: hours above the contracted hours are overtime.

    One cutoff per period; daily or tiered overtime rules are not modelled.
    """

    @staticmethod
    def split(total_hours: Decimal, policy: OvertimePolicy, base_rate: Decimal) -> OvertimeSplit:
        """Split ``total_hours`` and derive the overtime rate.

        Rates are returned unrounded; callers round at the line boundary.
        """
        total_hours = to_decimal(total_hours)
        base_rate = to_decimal(base_rate)

        if not policy.applies:
            return OvertimeSplit(
                regular_hours=total_hours,
                overtime_hours=ZERO,
                overtime_rate=ZERO,
            )

        threshold = to_decimal(policy.contracted_weekly_hours)
        regular_hours = min(total_hours, threshold)
        overtime_hours = max(ZERO, total_hours - threshold)

        # Rule without its parameter pays overtime at the base rate
        overtime_rate = base_rate
        if policy.rule_type == OvertimeRuleType.MULTIPLIER and policy.multiplier is not None:
            overtime_rate = base_rate * to_decimal(policy.multiplier)
        elif policy.rule_type == OvertimeRuleType.FLAT_EXTRA and policy.flat_extra is not None:
            overtime_rate = base_rate + to_decimal(policy.flat_extra)

        return OvertimeSplit(
            regular_hours=regular_hours,
            overtime_hours=overtime_hours,
            overtime_rate=overtime_rate,
        )


def _parse_rule_type(value: Any) -> OvertimeRuleType | None:
    if value is None or value == "":
        return None
    try:
        return OvertimeRuleType(str(value))
    except ValueError as exc:
        raise ValidationError(f"Invalid overtime rule type: {value!r}", field="overtime_rule_type") from exc


def _optional_decimal(value: Any, field: str) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return to_decimal(value)
    except (ArithmeticError, ValueError) as exc:
        raise ValidationError(f"Invalid number: {value!r}", field=field) from exc


def policy_from_config(config: Mapping[str, Any] | None) -> OvertimePolicy:
    """Build tenant overtime defaults from the stored ``overtime`` settings block."""
    config = config or {}
    return OvertimePolicy(
        enabled=bool(config.get("overtime_enabled", False)),
        contracted_weekly_hours=_optional_decimal(
            config.get("contracted_weekly_hours"), "contracted_weekly_hours"
        ),
        rule_type=_parse_rule_type(config.get("overtime_rule_type")),
        multiplier=_optional_decimal(config.get("overtime_multiplier"), "overtime_multiplier"),
        flat_extra=_optional_decimal(config.get("overtime_flat_extra"), "overtime_flat_extra"),
    )


def policy_for_employee(employee: Employee, defaults: OvertimePolicy | None = None) -> OvertimePolicy:
    """Employee's overtime policy, unset columns falling back to tenant defaults."""
    defaults = defaults or OvertimePolicy()

    def pick(own: Any, fallback: Any) -> Any:
        return fallback if own is None else own

    rule_type = _parse_rule_type(employee.overtime_rule_type)
    return OvertimePolicy(
        enabled=bool(pick(employee.overtime_enabled, defaults.enabled)),
        contracted_weekly_hours=pick(employee.contracted_weekly_hours, defaults.contracted_weekly_hours),
        rule_type=pick(rule_type, defaults.rule_type),
        multiplier=pick(employee.overtime_multiplier, defaults.multiplier),
        flat_extra=pick(employee.overtime_flat_extra, defaults.flat_extra),
    )
