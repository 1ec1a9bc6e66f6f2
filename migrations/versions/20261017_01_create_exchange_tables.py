"""create exchange tables

Revision ID: 3f9c2a7d1e04
Revises: 
Create Date: 2026-10-17 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f9c2a7d1e04"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20)),
        sa.Column("is_active", sa.Boolean()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("last_login_at", sa.DateTime()),
    )
    op.create_index("ix_accounts_username", "accounts", ["username"], unique=True)

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("order_id", sa.String(length=40)),
        sa.Column("full_name", sa.String(length=150), nullable=False),
        sa.Column("phone_number", sa.String(length=40), nullable=False),
        sa.Column("email", sa.String(length=150)),
        sa.Column("sender_account", sa.String(length=150)),
        sa.Column("wallet_address", sa.String(length=255), nullable=False),
        sa.Column("customer_identifier", sa.String(length=150), nullable=False),
        sa.Column("send_method", sa.String(length=20), nullable=False),
        sa.Column("receive_method", sa.String(length=20), nullable=False),
        sa.Column("send_amount_cents", sa.BigInteger(), nullable=False),
        sa.Column("receive_amount_cents", sa.BigInteger(), nullable=False),
        sa.Column("exchange_rate", sa.Numeric(18, 6), nullable=False),
        sa.Column("hold_amount_cents", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("payment_wallet", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime()),
        sa.Column("cancelled_at", sa.DateTime()),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_orders_order_id", "orders", ["order_id"], unique=True)
    op.create_index("ix_orders_customer_identifier", "orders", ["customer_identifier"])
    op.create_index("ix_orders_status", "orders", ["status"])

    op.create_table(
        "balances",
        sa.Column("currency", sa.String(length=20), primary_key=True),
        sa.Column("amount_cents", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("order_id", sa.String(length=40)),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("currency", sa.String(length=20), nullable=False),
        sa.Column("amount_cents", sa.BigInteger(), nullable=False),
        sa.Column("balance_delta_cents", sa.BigInteger(), nullable=False),
        sa.Column("balance_after_cents", sa.BigInteger(), nullable=False),
        sa.Column("from_wallet", sa.String(length=40), nullable=False),
        sa.Column("to_wallet", sa.String(length=40), nullable=False),
        sa.Column("description", sa.String(length=255)),
        sa.Column("actor", sa.String(length=100)),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_transactions_order_id", "transactions", ["order_id"])
    op.create_index("ix_transactions_currency", "transactions", ["currency"])

    op.create_table(
        "exchange_rates",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("from_currency", sa.String(length=20), nullable=False),
        sa.Column("to_currency", sa.String(length=20), nullable=False),
        sa.Column("rate", sa.Numeric(18, 6), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("from_currency", "to_currency", name="uq_exchange_rates_pair"),
    )

    op.create_table(
        "exchange_rate_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("from_currency", sa.String(length=20), nullable=False),
        sa.Column("to_currency", sa.String(length=20), nullable=False),
        sa.Column("old_rate", sa.Numeric(18, 6)),
        sa.Column("new_rate", sa.Numeric(18, 6), nullable=False),
        sa.Column("changed_by", sa.String(length=100), nullable=False),
        sa.Column("change_reason", sa.Text()),
        sa.Column("changed_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_exchange_rate_history_from_currency", "exchange_rate_history", ["from_currency"])
    op.create_index("ix_exchange_rate_history_to_currency", "exchange_rate_history", ["to_currency"])

    op.create_table(
        "currency_limits",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("from_currency", sa.String(length=20), nullable=False),
        sa.Column("to_currency", sa.String(length=20), nullable=False),
        sa.Column("min_amount_cents", sa.BigInteger(), nullable=False, server_default="500"),
        sa.Column("max_amount_cents", sa.BigInteger(), nullable=False, server_default="1000000"),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("from_currency", "to_currency", name="uq_currency_limits_pair"),
    )

    op.create_table(
        "customer_restrictions",
        sa.Column("customer_identifier", sa.String(length=150), primary_key=True),
        sa.Column("cancellation_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("window_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("window_started_at", sa.DateTime()),
        sa.Column("last_cancellation_at", sa.DateTime()),
        sa.Column("restricted_until", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "payment_wallets",
        sa.Column("method", sa.String(length=20), primary_key=True),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "system_status",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("status", sa.String(length=10), nullable=False, server_default="on"),
        sa.Column("updated_by", sa.String(length=100)),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("system_status")
    op.drop_table("payment_wallets")
    op.drop_table("customer_restrictions")
    op.drop_table("currency_limits")
    op.drop_index("ix_exchange_rate_history_to_currency", table_name="exchange_rate_history")
    op.drop_index("ix_exchange_rate_history_from_currency", table_name="exchange_rate_history")
    op.drop_table("exchange_rate_history")
    op.drop_table("exchange_rates")
    op.drop_index("ix_transactions_currency", table_name="transactions")
    op.drop_index("ix_transactions_order_id", table_name="transactions")
    op.drop_table("transactions")
    op.drop_table("balances")
    op.drop_index("ix_orders_status", table_name="orders")
    op.drop_index("ix_orders_customer_identifier", table_name="orders")
    op.drop_index("ix_orders_order_id", table_name="orders")
    op.drop_table("orders")
    op.drop_index("ix_accounts_username", table_name="accounts")
    op.drop_table("accounts")
