"""Pay period and pay line calculation."""

from shift_payroll.calculators.line_builder import LineBuilder, build_run_name
from shift_payroll.calculators.overtime import (
    OvertimeSplitter,
    policy_for_employee,
    policy_from_config,
)
from shift_payroll.calculators.pay_period import (
    PayPeriodCalculator,
    scheme_from_config,
    scheme_to_config,
)
from shift_payroll.calculators.rate_resolver import RateResolver
from shift_payroll.calculators.shift_aggregator import (
    ShiftAggregator,
    aggregate_shifts,
    find_conflicts,
    shift_hours,
    worked_seconds,
)
from shift_payroll.calculators.types import (
    AggregatedHours,
    FortnightlyScheme,
    LineCandidate,
    MonthlyScheme,
    OvertimePolicy,
    OvertimeRuleType,
    OvertimeSplit,
    PayPeriod,
    PeriodScheme,
    RunTotals,
    SemiMonthlyScheme,
    ShiftRecord,
    Weekday,
    WeeklyScheme,
)

__all__ = [
    "AggregatedHours",
    "FortnightlyScheme",
    "LineBuilder",
    "LineCandidate",
    "MonthlyScheme",
    "OvertimePolicy",
    "OvertimeRuleType",
    "OvertimeSplit",
    "OvertimeSplitter",
    "PayPeriod",
    "PayPeriodCalculator",
    "PeriodScheme",
    "RateResolver",
    "RunTotals",
    "SemiMonthlyScheme",
    "ShiftAggregator",
    "ShiftRecord",
    "Weekday",
    "WeeklyScheme",
    "aggregate_shifts",
    "build_run_name",
    "find_conflicts",
    "policy_for_employee",
    "policy_from_config",
    "scheme_from_config",
    "scheme_to_config",
    "shift_hours",
    "worked_seconds",
]
