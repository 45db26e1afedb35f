"""SQLAlchemy ORM models."""
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from cashdesk.infrastructure.database.base import Base

# Keep in sync with cashdesk.modules.cash_sessions.models.NON_TERMINAL_STATES.
_NON_TERMINAL_SESSION_CLAUSE = text("state IN ('open', 'closed_pending_review', 'approved')")


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Account(Base):
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    username = Column(String(50), unique=True, nullable=False, index=True)
    full_name = Column(String(255))
    email = Column(String(255), unique=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default="operador_caixa")
    is_active = Column(Boolean, nullable=False, default=True)
    mfa_enabled = Column(Boolean, nullable=False, default=False)
    mfa_secret = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    last_login_at = Column(DateTime(timezone=True))

    recovery_codes = relationship("RecoveryCode", back_populates="account", cascade="all, delete-orphan")


class RecoveryCode(Base):
    __tablename__ = "recovery_codes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    code_hash = Column(String(255), nullable=False)
    used_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    account = relationship("Account", back_populates="recovery_codes")


class PaymentMethod(Base):
    __tablename__ = "payment_methods"

    code = Column(String(40), primary_key=True)
    name = Column(String(100), nullable=False)
    is_cash = Column(Boolean, nullable=False, default=False)
    is_external_system = Column(Boolean, nullable=False, default=False)
    display_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)


class SystemSetting(Base):
    __tablename__ = "system_settings"

    key = Column(String(100), primary_key=True)
    value = Column(String(255), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class CashSession(Base):
    __tablename__ = "cash_sessions"
    __table_args__ = (
        Index(
            "uq_cash_sessions_active_operator_date",
            "opened_by",
            "business_date",
            unique=True,
            sqlite_where=_NON_TERMINAL_SESSION_CLAUSE,
            postgresql_where=_NON_TERMINAL_SESSION_CLAUSE,
        ),
        Index("ix_cash_sessions_date_state", "business_date", "state"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    business_date = Column(Date, nullable=False)
    opening_balance = Column(Numeric(12, 2), nullable=False)
    state = Column(String(32), nullable=False, default="open")
    version = Column(Integer, nullable=False, default=1)
    declared_total = Column(Numeric(12, 2))
    system_integration_amount = Column(Numeric(12, 2))
    opened_by = Column(String(36), ForeignKey("accounts.id"), nullable=False, index=True)
    opened_at = Column(DateTime(timezone=True), nullable=False)
    closed_by = Column(String(36), ForeignKey("accounts.id"))
    closed_at = Column(DateTime(timezone=True))
    reviewed_by = Column(String(36), ForeignKey("accounts.id"))
    reviewed_at = Column(DateTime(timezone=True))
    rejection_reason = Column(String(500))

    entries = relationship(
        "PaymentEntry",
        back_populates="session",
        order_by="PaymentEntry.fill_order",
    )
    supervisor_count = relationship("SupervisorCount", back_populates="session", uselist=False)


class PaymentEntry(Base):
    __tablename__ = "payment_entries"
    __table_args__ = (
        UniqueConstraint("session_id", "payment_method_code", name="uq_payment_entries_session_method"),
        UniqueConstraint("session_id", "fill_order", name="uq_payment_entries_session_fill_order"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(36), ForeignKey("cash_sessions.id"), nullable=False, index=True)
    payment_method_code = Column(String(40), ForeignKey("payment_methods.code"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    fill_order = Column(Integer, nullable=False)
    recorded_at = Column(DateTime(timezone=True), nullable=False)

    session = relationship("CashSession", back_populates="entries")


class SupervisorCount(Base):
    __tablename__ = "supervisor_counts"

    session_id = Column(String(36), ForeignKey("cash_sessions.id"), primary_key=True)
    supervisor_id = Column(String(36), ForeignKey("accounts.id"), nullable=False)
    counted_cash_amount = Column(Numeric(12, 2), nullable=False)
    recorded_at = Column(DateTime(timezone=True), nullable=False)

    session = relationship("CashSession", back_populates="supervisor_count")


class DailyFinalization(Base):
    __tablename__ = "daily_finalizations"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    business_date = Column(Date, nullable=False, unique=True)
    total_declared = Column(Numeric(14, 2), nullable=False)
    total_reconciled = Column(Numeric(14, 2), nullable=False)
    finalized_by = Column(String(36), ForeignKey("accounts.id"), nullable=False)
    finalized_at = Column(DateTime(timezone=True), nullable=False)
