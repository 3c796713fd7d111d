"""Tenant payroll settings lookup."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from shift_payroll.calculators.overtime import policy_from_config
from shift_payroll.calculators.pay_period import scheme_from_config, scheme_to_config
from shift_payroll.calculators.timezones import load_timezone
from shift_payroll.calculators.types import OvertimePolicy, PeriodScheme
from shift_payroll.config import get_settings
from shift_payroll.errors import NotFoundError
from shift_payroll.models import Tenant


@dataclass(frozen=True)
class TenantPayrollSettings:
    """What the engine needs to know about a tenant."""

    timezone: str
    pay_period_scheme: PeriodScheme | None = None
    overtime_defaults: OvertimePolicy = field(default_factory=OvertimePolicy)


class TenantSettingsService:
    """Reads and updates the payroll blocks of a tenant's settings."""

    PAY_PERIOD_KEY = "pay_period"
    OVERTIME_KEY = "overtime"

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_tenant(self, tenant_id: UUID) -> Tenant:
        tenant = await self.session.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError(f"Tenant {tenant_id} not found")
        return tenant

    async def get(self, tenant_id: UUID) -> TenantPayrollSettings:
        """Resolve timezone, pay period scheme and overtime defaults.

        A tenant without a timezone uses the configured default timezone. A
        tenant without a pay period block has no scheme (``None``).
        """
        tenant = await self.get_tenant(tenant_id)
        settings = tenant.settings or {}

        pay_period_config = settings.get(self.PAY_PERIOD_KEY)
        scheme = scheme_from_config(pay_period_config) if pay_period_config else None

        return TenantPayrollSettings(
            timezone=tenant.timezone or get_settings().default_timezone,
            pay_period_scheme=scheme,
            overtime_defaults=policy_from_config(settings.get(self.OVERTIME_KEY)),
        )

    async def get_pay_period_config(self, tenant_id: UUID) -> dict[str, Any] | None:
        tenant = await self.get_tenant(tenant_id)
        return (tenant.settings or {}).get(self.PAY_PERIOD_KEY)

    async def update_pay_period_config(
        self,
        tenant_id: UUID,
        config: dict[str, Any],
        timezone: str | None = None,
    ) -> TenantPayrollSettings:
        """Validate and store a new pay period block (and optionally timezone).

        The stored block is the normalised form of the parsed scheme, so
        invalid configurations never reach the tenant row.
        """
        scheme = scheme_from_config(config)
        tenant = await self.get_tenant(tenant_id)
        if timezone is not None:
            load_timezone(timezone)
            tenant.timezone = timezone

        # Assign a new dict so the JSON column change is detected
        settings = dict(tenant.settings or {})
        settings[self.PAY_PERIOD_KEY] = scheme_to_config(scheme)
        tenant.settings = settings
        await self.session.flush()

        return await self.get(tenant_id)
