"""CSV export of pay run lines."""

from __future__ import annotations

import csv
import io
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from shift_payroll.models import PayRun
from shift_payroll.services.pay_run_service import PayRunService
from shift_payroll.services.state_machine import LineStatus

CSV_HEADER = [
    "Employee Number",
    "Staff Name",
    "Regular Hours",
    "Overtime Hours",
    "Total Hours",
    "Hourly Rate",
    "Overtime Rate",
    "Regular Pay",
    "Overtime Pay",
    "Adjustments",
    "Gross Pay",
]


def export_filename(pay_run: PayRun) -> str:
    return f"pay-run-{pay_run.pay_period_start.isoformat()}-to-{pay_run.pay_period_end.isoformat()}.csv"


def render_csv(pay_run: PayRun) -> str:
    """Included lines of a run as CSV text, one row per employee."""
    output = io.StringIO()
    writer = csv.writer(output)

    # Header
    writer.writerow(CSV_HEADER)

    # Lines
    for line in pay_run.lines:
        if line.status != LineStatus.INCLUDED:
            continue
        writer.writerow([
            line.employee_number,
            line.staff_name,
            f"{line.regular_hours:.2f}",
            f"{line.overtime_hours:.2f}",
            f"{line.total_hours:.2f}",
            f"{line.hourly_rate:.4f}",
            f"{line.overtime_rate:.4f}",
            f"{line.regular_pay:.2f}",
            f"{line.overtime_pay:.2f}",
            f"{line.adjustments:.2f}",
            f"{line.gross_pay:.2f}",
        ])

    return output.getvalue()


class PayRunExportService:
    """Exports a tenant's pay run for an external payroll provider."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.pay_run_service = PayRunService(session)

    async def export_to_csv(self, tenant_id: UUID, pay_run_id: UUID) -> tuple[str, str]:
        """Return ``(csv_content, filename)`` for a pay run."""
        pay_run = await self.pay_run_service.get_pay_run(tenant_id, pay_run_id)
        return render_csv(pay_run), export_filename(pay_run)
