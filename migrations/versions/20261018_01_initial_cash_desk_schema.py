"""initial cash desk schema

Revision ID: 5c1e0a7d2b94
Revises: 
Create Date: 2026-10-18 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "5c1e0a7d2b94"
down_revision = None
branch_labels = None
depends_on = None

NON_TERMINAL_SESSION_CLAUSE = sa.text("state IN ('open', 'closed_pending_review', 'approved')")


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("full_name", sa.String(length=255)),
        sa.Column("email", sa.String(length=255), unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="operador_caixa"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("mfa_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("mfa_secret", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_accounts_username", "accounts", ["username"], unique=True)

    op.create_table(
        "recovery_codes",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("account_id", sa.String(length=36), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("code_hash", sa.String(length=255), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_recovery_codes_account_id", "recovery_codes", ["account_id"])

    op.create_table(
        "payment_methods",
        sa.Column("code", sa.String(length=40), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("is_cash", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_external_system", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "system_settings",
        sa.Column("key", sa.String(length=100), primary_key=True),
        sa.Column("value", sa.String(length=255), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "cash_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("business_date", sa.Date(), nullable=False),
        sa.Column("opening_balance", sa.Numeric(12, 2), nullable=False),
        sa.Column("state", sa.String(length=32), nullable=False, server_default="open"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("declared_total", sa.Numeric(12, 2)),
        sa.Column("system_integration_amount", sa.Numeric(12, 2)),
        sa.Column("opened_by", sa.String(length=36), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("opened_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("closed_by", sa.String(length=36), sa.ForeignKey("accounts.id")),
        sa.Column("closed_at", sa.DateTime(timezone=True)),
        sa.Column("reviewed_by", sa.String(length=36), sa.ForeignKey("accounts.id")),
        sa.Column("reviewed_at", sa.DateTime(timezone=True)),
        sa.Column("rejection_reason", sa.String(length=500)),
    )
    op.create_index("ix_cash_sessions_opened_by", "cash_sessions", ["opened_by"])
    op.create_index("ix_cash_sessions_date_state", "cash_sessions", ["business_date", "state"])
    op.create_index(
        "uq_cash_sessions_active_operator_date",
        "cash_sessions",
        ["opened_by", "business_date"],
        unique=True,
        sqlite_where=NON_TERMINAL_SESSION_CLAUSE,
        postgresql_where=NON_TERMINAL_SESSION_CLAUSE,
    )

    op.create_table(
        "payment_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("session_id", sa.String(length=36), sa.ForeignKey("cash_sessions.id"), nullable=False),
        sa.Column(
            "payment_method_code",
            sa.String(length=40),
            sa.ForeignKey("payment_methods.code"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("fill_order", sa.Integer(), nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("session_id", "payment_method_code", name="uq_payment_entries_session_method"),
        sa.UniqueConstraint("session_id", "fill_order", name="uq_payment_entries_session_fill_order"),
    )
    op.create_index("ix_payment_entries_session_id", "payment_entries", ["session_id"])

    op.create_table(
        "supervisor_counts",
        sa.Column("session_id", sa.String(length=36), sa.ForeignKey("cash_sessions.id"), primary_key=True),
        sa.Column("supervisor_id", sa.String(length=36), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("counted_cash_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "daily_finalizations",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("business_date", sa.Date(), nullable=False, unique=True),
        sa.Column("total_declared", sa.Numeric(14, 2), nullable=False),
        sa.Column("total_reconciled", sa.Numeric(14, 2), nullable=False),
        sa.Column("finalized_by", sa.String(length=36), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("finalized_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("daily_finalizations")
    op.drop_table("supervisor_counts")
    op.drop_index("ix_payment_entries_session_id", table_name="payment_entries")
    op.drop_table("payment_entries")
    op.drop_index("uq_cash_sessions_active_operator_date", table_name="cash_sessions")
    op.drop_index("ix_cash_sessions_date_state", table_name="cash_sessions")
    op.drop_index("ix_cash_sessions_opened_by", table_name="cash_sessions")
    op.drop_table("cash_sessions")
    op.drop_table("system_settings")
    op.drop_table("payment_methods")
    op.drop_index("ix_recovery_codes_account_id", table_name="recovery_codes")
    op.drop_table("recovery_codes")
    op.drop_index("ix_accounts_username", table_name="accounts")
    op.drop_table("accounts")
