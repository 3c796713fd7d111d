"""Tests for tenant payroll settings."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from shift_payroll.calculators.types import FortnightlyScheme, MonthlyScheme, Weekday, WeeklyScheme
from shift_payroll.errors import NotFoundError, ValidationError
from shift_payroll.services.pay_run_service import PayRunService
from shift_payroll.services.tenant_settings import TenantSettingsService

from .conftest import utc


class TestTenantSettings:
    async def test_get(self, session, tenant):
        settings = await TenantSettingsService(session).get(tenant.tenant_id)

        assert settings.timezone == "Europe/London"
        assert settings.pay_period_scheme == WeeklyScheme(Weekday.MONDAY)
        assert not settings.overtime_defaults.applies

    async def test_missing_timezone_uses_default(self, session, tenant_factory):
        tenant = await tenant_factory("No Zone Ltd", timezone=None)

        settings = await TenantSettingsService(session).get(tenant.tenant_id)

        assert settings.timezone == "UTC"

    async def test_overtime_defaults(self, session, tenant_factory):
        tenant = await tenant_factory(
            "Overtime Bistro",
            settings={
                "overtime": {
                    "overtime_enabled": True,
                    "contracted_weekly_hours": 38,
                    "overtime_rule_type": "multiplier",
                    "overtime_multiplier": "1.25",
                }
            },
        )

        settings = await TenantSettingsService(session).get(tenant.tenant_id)

        assert settings.pay_period_scheme is None
        assert settings.overtime_defaults.contracted_weekly_hours == Decimal("38")
        assert settings.overtime_defaults.multiplier == Decimal("1.25")

    async def test_unknown_tenant(self, session):
        with pytest.raises(NotFoundError):
            await TenantSettingsService(session).get(uuid4())

    async def test_update_pay_period(self, session, tenant):
        service = TenantSettingsService(session)

        settings = await service.update_pay_period_config(
            tenant.tenant_id,
            {"type": "fortnightly", "first_period_start": "2024-01-01"},
            timezone="Australia/Sydney",
        )

        assert settings.pay_period_scheme == FortnightlyScheme(date(2024, 1, 1))
        assert settings.timezone == "Australia/Sydney"
        assert await service.get_pay_period_config(tenant.tenant_id) == {
            "type": "fortnightly",
            "first_period_start": "2024-01-01",
        }
        # Other blocks survive
        assert tenant.settings["overtime"] == {"overtime_enabled": False}

    async def test_update_rejects_invalid_config(self, session, tenant):
        service = TenantSettingsService(session)

        with pytest.raises(ValidationError):
            await service.update_pay_period_config(tenant.tenant_id, {"type": "monthly", "monthly_starts_on": 40})

        assert await service.get_pay_period_config(tenant.tenant_id) == {
            "type": "weekly",
            "week_starts_on": "monday",
        }

    async def test_update_rejects_unknown_timezone(self, session, tenant):
        with pytest.raises(ValidationError) as exc_info:
            await TenantSettingsService(session).update_pay_period_config(
                tenant.tenant_id, {"type": "weekly"}, timezone="Atlantis/Capital"
            )

        assert exc_info.value.field == "timezone"


class TestComputePayPeriod:
    """Period lookup with tenant fallbacks."""

    async def test_tenant_settings(self, session, tenant):
        period, timezone = await PayRunService(session).compute_pay_period(tenant.tenant_id, date(2024, 3, 14))

        assert timezone == "Europe/London"
        assert period.start == utc(2024, 3, 11)
        assert period.end == utc(2024, 3, 18)

    async def test_explicit_scheme_and_timezone(self, session, tenant):
        period, timezone = await PayRunService(session).compute_pay_period(
            tenant.tenant_id, date(2023, 2, 28), scheme=MonthlyScheme(31), timezone="UTC"
        )

        assert timezone == "UTC"
        assert period.start == utc(2023, 2, 28)
        assert period.end == utc(2023, 3, 31)

    async def test_no_scheme_configured(self, session, tenant_factory):
        tenant = await tenant_factory("Blank Ltd", settings={})

        with pytest.raises(ValidationError):
            await PayRunService(session).compute_pay_period(tenant.tenant_id, date(2024, 3, 14))
