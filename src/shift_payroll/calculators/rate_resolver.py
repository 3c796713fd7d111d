"""Effective-dated hourly rate resolution."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shift_payroll.calculators.timezones import load_timezone, to_local
from shift_payroll.models import RateHistoryEntry


class RateResolver:
    """Resolves each employee's hourly rate as of a date.

    Rate selection:
    1. Only entries with ``effective_date <= as_of`` are candidates
    2. The candidate with the latest ``effective_date`` wins
    3. Employees without a candidate are absent from the result; callers
       must not treat a missing rate as zero

    The whole employee set is resolved with one query; there is no
    per-employee lookup.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def resolve_batch(
        self,
        employee_ids: Iterable[UUID],
        as_of: datetime | date,
        timezone: str | None = None,
    ) -> dict[UUID, Decimal]:
        """Resolve rates for a set of employees.

        Args:
            employee_ids: Employees to resolve
            as_of: Lookup date, or an instant
            timezone: Tenant timezone an instant is localized to before taking
                its calendar date. Without it the instant's own tzinfo is used
                (naive means UTC), so pass it whenever ``as_of`` is an instant.

        Returns:
            Mapping of employee id to hourly rate, for employees that have one
        """
        ids = list(dict.fromkeys(employee_ids))
        if not ids:
            return {}

        if isinstance(as_of, datetime):
            if timezone is not None:
                as_of = to_local(as_of, load_timezone(timezone))
            as_of_date = as_of.date()
        else:
            as_of_date = as_of
        entries = await self._get_candidate_rates(ids, as_of_date)

        rates: dict[UUID, Decimal] = {}
        # Ordered by effective_date ascending, so the last write per employee wins
        for entry in entries:
            rates[entry.employee_id] = entry.hourly_rate
        return rates

    async def _get_candidate_rates(
        self,
        employee_ids: list[UUID],
        as_of_date: date,
    ) -> list[RateHistoryEntry]:
        """Get all entries already in effect on a date for the employee set."""
        result = await self.session.execute(
            select(RateHistoryEntry)
            .where(
                RateHistoryEntry.employee_id.in_(employee_ids),
                RateHistoryEntry.effective_date <= as_of_date,
            )
            .order_by(RateHistoryEntry.employee_id, RateHistoryEntry.effective_date)
        )
        return list(result.scalars().all())
