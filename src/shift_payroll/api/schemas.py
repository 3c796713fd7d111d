"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Pay period schemas
# ============================================================================


class PeriodSchemeConfig(BaseModel):
    """Stored pay period configuration block."""

    type: str = Field(description="weekly, fortnightly, semi-monthly or monthly")
    week_starts_on: str | None = None
    first_period_start: date | None = None
    first_period_end: int | None = None
    monthly_starts_on: int | None = None

    def to_config(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class PayPeriodComputeRequest(BaseModel):
    """Compute the period containing a reference date or instant.

    Unset ``scheme``/``timezone`` fall back to the tenant's settings; with
    neither reference field set, the current instant is used.
    """

    reference_date: date | None = None
    reference_time: datetime | None = None
    scheme: PeriodSchemeConfig | None = None
    timezone: str | None = None


class PayPeriodResponse(BaseModel):
    """Half-open UTC window and its calendar days in the tenant timezone."""

    start: datetime
    end: datetime
    first_day: date
    last_day: date
    timezone: str


class PayPeriodSettingsResponse(BaseModel):
    timezone: str
    pay_period: dict[str, Any] | None = None


class PayPeriodSettingsUpdate(BaseModel):
    pay_period: PeriodSchemeConfig
    timezone: str | None = None


# ============================================================================
# Pay Run schemas
# ============================================================================


class PayRunPeriod(BaseModel):
    """Calendar dates of a pay period; the end date is included."""

    pay_period_start: date
    pay_period_end: date


class PayRunCreate(PayRunPeriod):
    """Schema for creating a new pay run."""

    notes: str | None = None


class PayRunLineResponse(BaseModel):
    """Schema for pay run line response."""

    model_config = ConfigDict(from_attributes=True)

    pay_run_line_id: UUID
    pay_run_id: UUID
    employee_id: UUID
    employee_number: str
    staff_name: str
    regular_hours: Decimal
    overtime_hours: Decimal
    total_hours: Decimal
    hourly_rate: Decimal
    overtime_rate: Decimal
    regular_pay: Decimal
    overtime_pay: Decimal
    adjustments: Decimal
    adjustment_reason: str | None = None
    gross_pay: Decimal
    status: str
    source_shift_ids: list[str] = []


class PayRunSummaryResponse(BaseModel):
    """Schema for pay run header response."""

    model_config = ConfigDict(from_attributes=True)

    pay_run_id: UUID
    tenant_id: UUID
    pay_period_start: date
    pay_period_end: date
    status: str
    name: str
    notes: str | None = None
    total_hours: Decimal
    total_gross_pay: Decimal
    staff_count: int
    skipped_employee_ids: list[str] = []
    created_by: UUID | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    finalised_by: UUID | None = None
    finalised_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class PayRunResponse(PayRunSummaryResponse):
    """Schema for pay run response with lines."""

    lines: list[PayRunLineResponse] = []


class PayRunListResponse(BaseModel):
    """Schema for listing pay runs."""

    items: list[PayRunSummaryResponse]
    total: int
    page: int
    page_size: int


class PayRunStatusUpdate(BaseModel):
    status: str


class SuggestedPeriodResponse(BaseModel):
    pay_period_start: date
    pay_period_end: date
    name: str


# ============================================================================
# Preview schemas
# ============================================================================


class PreviewLine(BaseModel):
    """Schema for a line the builder would create."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    employee_number: str
    staff_name: str
    regular_hours: Decimal
    overtime_hours: Decimal
    total_hours: Decimal
    hourly_rate: Decimal
    overtime_rate: Decimal
    regular_pay: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal


class PayRunPreviewResponse(BaseModel):
    """Schema for preview response."""

    pay_period_start: date
    pay_period_end: date
    name: str
    staff_count: int
    total_hours: Decimal
    estimated_gross: Decimal
    skipped_employee_ids: list[UUID]
    conflict_count: int
    existing_pay_run_id: UUID | None = None
    lines: list[PreviewLine]


# ============================================================================
# Ledger schemas
# ============================================================================


class PayRunLineUpdate(BaseModel):
    """Schema for editing a pay run line."""

    adjustments: Decimal | None = None
    adjustment_reason: str | None = None
    status: str | None = None


class PayRunChangeResponse(BaseModel):
    """Schema for a change log entry."""

    model_config = ConfigDict(from_attributes=True)

    pay_run_change_id: UUID
    pay_run_id: UUID | None = None
    pay_run_line_id: UUID | None = None
    field_changed: str
    old_value: str | None = None
    new_value: str | None = None
    reason: str | None = None
    changed_by: UUID | None = None
    created_at: datetime


# ============================================================================
# Rate history schemas
# ============================================================================


class RateCreate(BaseModel):
    """Schema for adding a rate history entry."""

    hourly_rate: Decimal | None = None
    effective_date: date | None = None
    notes: str | None = None


class RateResponse(BaseModel):
    """Schema for rate history entry response."""

    model_config = ConfigDict(from_attributes=True)

    rate_id: UUID
    employee_id: UUID
    hourly_rate: Decimal
    effective_date: date
    notes: str | None = None
    created_by: UUID | None = None
    created_at: datetime


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    field: str | None = None
