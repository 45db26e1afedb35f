"""Pydantic schemas used across the HTTP surface."""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from cashdesk.modules.cash_sessions.models import SessionState


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)


class AccountLoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    account_id: str
    username: str
    role: str
    mfa_enabled: bool


class TokenData(BaseModel):
    account_id: str
    username: str
    role: str


class AccountCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=8)
    role: str
    full_name: Optional[str] = Field(default=None, max_length=120)
    email: Optional[str] = Field(default=None, max_length=120)
    is_active: bool = True


class AccountUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, max_length=120)
    email: Optional[str] = Field(default=None, max_length=120)
    is_active: Optional[bool] = None
    role: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=8)


class AccountResponse(BaseModel):
    id: str
    username: str
    role: str
    is_active: bool
    mfa_enabled: bool
    full_name: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None


class SecondFactorEnrollmentResponse(BaseModel):
    secret: str
    provisioning_uri: str
    recovery_codes: list[str]


class SecondFactorEnrollRequest(BaseModel):
    current_code: Optional[str] = Field(default=None, max_length=16)


class SecondFactorActivateRequest(BaseModel):
    code: str = Field(..., min_length=6, max_length=6)


class SecondFactorStatusResponse(BaseModel):
    mfa_enabled: bool
    remaining_recovery_codes: int


class PaymentMethodResponse(BaseModel):
    code: str
    name: str
    is_cash: bool
    is_external_system: bool
    display_order: int

    model_config = ConfigDict(from_attributes=True)


class SecondFactorMixin(BaseModel):
    second_factor_code: Optional[str] = Field(default=None, max_length=16)


class OpenSessionRequest(SecondFactorMixin):
    business_date: date
    opening_balance: Decimal


class CloseSessionRequest(SecondFactorMixin):
    pass


class PaymentEntryRequest(BaseModel):
    amount: Decimal


class ReconcileRequest(SecondFactorMixin):
    approved: bool
    counted_cash_amount: Optional[Decimal] = None
    rejection_reason: Optional[str] = None


class FinalizeDayRequest(SecondFactorMixin):
    business_date: date


class BlindCountFlagRequest(BaseModel):
    enabled: bool


class BlindCountFlagResponse(BaseModel):
    enabled: bool


class CashSessionResponse(BaseModel):
    id: str
    business_date: date
    opening_balance: Decimal
    state: SessionState
    version: int
    opened_by: str
    opened_at: datetime
    declared_total: Optional[Decimal] = None
    system_integration_amount: Optional[Decimal] = None
    closed_by: Optional[str] = None
    closed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PaymentEntryResponse(BaseModel):
    payment_method_code: str
    amount: Decimal
    fill_order: int
    recorded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SupervisorCountResponse(BaseModel):
    supervisor_id: str
    counted_cash_amount: Decimal
    recorded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReconciliationSummaryResponse(BaseModel):
    declared_total: Decimal
    declared_cash: Optional[Decimal] = None
    counted_cash: Optional[Decimal] = None
    cash_variance: Decimal
    reconciled_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class SessionDetailResponse(BaseModel):
    session: CashSessionResponse
    entries: list[PaymentEntryResponse]
    supervisor_count: Optional[SupervisorCountResponse] = None
    reconciliation: Optional[ReconciliationSummaryResponse] = None
    hidden_method_codes: list[str] = []

    model_config = ConfigDict(from_attributes=True)


class ReviewSessionResponse(BaseModel):
    """Session header on the review sheet. It carries no totals."""

    id: str
    business_date: date
    opening_balance: Decimal
    state: SessionState
    version: int
    opened_by: str
    opened_at: datetime
    closed_by: Optional[str] = None
    closed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReviewSheetResponse(BaseModel):
    session: ReviewSessionResponse
    blind_count: bool
    entries: list[PaymentEntryResponse]
    hidden_method_codes: list[str]

    model_config = ConfigDict(from_attributes=True)


class ReconciliationResponse(BaseModel):
    session: CashSessionResponse
    blind_count: bool
    supervisor_count: Optional[SupervisorCountResponse] = None
    variance: Optional[Decimal] = None

    model_config = ConfigDict(from_attributes=True)


class DailyFinalizationResponse(BaseModel):
    id: str
    business_date: date
    total_declared: Decimal
    total_reconciled: Decimal
    finalized_by: str
    finalized_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FinalizationResponse(BaseModel):
    finalization: DailyFinalizationResponse
    session_ids: list[str]

    model_config = ConfigDict(from_attributes=True)


class DayOverviewResponse(BaseModel):
    business_date: date
    blind_count: bool
    pending_sessions: int
    sessions: list[SessionDetailResponse]
    finalization: Optional[DailyFinalizationResponse] = None

    model_config = ConfigDict(from_attributes=True)


class HealthResponse(BaseModel):
    status: str
    version: str
