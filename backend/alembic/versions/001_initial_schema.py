"""Initial schema - users, plans, subscriptions, clients, invoices, usage.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

from billow.billing.plans import DEFAULT_PLANS

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Users
    op.create_table(
        "users",
        sa.Column("id", sa.String(30), primary_key=True),
        sa.Column("clerk_id", sa.String(255), nullable=True, unique=True, index=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("display_name", sa.String(255), server_default=""),
        sa.Column("profile_image", sa.String(512), server_default=""),
        *_timestamps(),
    )

    op.create_table(
        "user_preferences",
        sa.Column("id", sa.String(30), primary_key=True),
        sa.Column("user_id", sa.String(30), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True),
        sa.Column("theme", sa.String(20), server_default="light"),
        sa.Column("language", sa.String(10), server_default="en"),
        sa.Column("email_notifications", sa.Boolean(), server_default=sa.true()),
        sa.Column("push_notifications", sa.Boolean(), server_default=sa.true()),
        sa.Column("marketing_emails", sa.Boolean(), server_default=sa.false()),
        sa.Column("weekly_reports", sa.Boolean(), server_default=sa.true()),
        sa.Column("security_alerts", sa.Boolean(), server_default=sa.true()),
        sa.Column("currency", sa.String(3), server_default="USD"),
        sa.Column("timezone", sa.String(64), server_default="UTC"),
        *_timestamps(),
    )

    # Plans
    plans = op.create_table(
        "plans",
        sa.Column("id", sa.String(30), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("price", sa.Float(), server_default="0"),
        sa.Column("currency", sa.String(3), server_default="USD"),
        sa.Column("interval", sa.String(10), server_default="month"),
        sa.Column("invoice_limit", sa.Integer(), server_default="-1"),
        sa.Column("client_limit", sa.Integer(), server_default="-1"),
        sa.Column("messages_per_day", sa.Integer(), server_default="-1"),
        sa.Column("image_generation", sa.Boolean(), server_default=sa.false()),
        sa.Column("custom_voice", sa.Boolean(), server_default=sa.false()),
        sa.Column("priority_support", sa.Boolean(), server_default=sa.false()),
        sa.Column("advanced_analytics", sa.Boolean(), server_default=sa.false()),
        sa.Column("api_access", sa.Boolean(), server_default=sa.false()),
        sa.Column("white_label", sa.Boolean(), server_default=sa.false()),
        *_timestamps(),
    )

    # Subscriptions
    op.create_table(
        "subscriptions",
        sa.Column("id", sa.String(30), primary_key=True),
        sa.Column("user_id", sa.String(30), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True),
        sa.Column("plan_id", sa.String(30), sa.ForeignKey("plans.id"), nullable=False),
        sa.Column("status", sa.String(8), nullable=False, server_default="active"),
        sa.Column("current_period_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("trial_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("canceled_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    # Clients
    op.create_table(
        "clients",
        sa.Column("id", sa.String(30), primary_key=True),
        sa.Column("user_id", sa.String(30), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), server_default=""),
        sa.Column("total_invoiced", sa.Float(), server_default="0"),
        sa.Column("total_paid", sa.Float(), server_default="0"),
        sa.Column("invoice_count", sa.Integer(), server_default="0"),
        sa.Column("average_invoice", sa.Float(), server_default="0"),
        sa.Column("payment_delay", sa.Integer(), server_default="0"),
        sa.Column("avatar", sa.String(512), server_default=""),
        *_timestamps(),
    )

    # Invoices
    op.create_table(
        "invoices",
        sa.Column("id", sa.String(30), primary_key=True),
        sa.Column("user_id", sa.String(30), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("client_id", sa.String(30), sa.ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False, index=True),
        sa.Column("client_name", sa.String(255), server_default=""),
        sa.Column("invoice_date", sa.String(10), server_default=""),
        sa.Column("amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("currency_type", sa.String(3), server_default="USD"),
        sa.Column("status", sa.String(10), nullable=False, server_default="unpaid"),
        sa.Column("due_date", sa.String(10), server_default=""),
        *_timestamps(),
    )
    op.create_index("ix_invoices_user_created", "invoices", ["user_id", "created_at"])

    # Usage logs
    op.create_table(
        "usage_logs",
        sa.Column("id", sa.String(30), primary_key=True),
        sa.Column("user_id", sa.String(30), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("feature_type", sa.String(255), nullable=False),
        sa.Column("count", sa.Integer(), server_default="1"),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_usage_user_feature_time", "usage_logs", ["user_id", "feature_type", "timestamp"])

    # Daily analytics
    op.create_table(
        "analytics_data",
        sa.Column("id", sa.String(30), primary_key=True),
        sa.Column("user_id", sa.String(30), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("invoices_created", sa.Integer(), server_default="0"),
        sa.Column("clients_added", sa.Integer(), server_default="0"),
        sa.Column("revenue_generated", sa.Float(), server_default="0"),
        sa.Column("messages_count", sa.Integer(), server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "date", name="uq_analytics_user_date"),
    )

    # Default plan catalog
    op.bulk_insert(plans, [{"currency": "USD", "interval": "month", **plan} for plan in DEFAULT_PLANS])


def downgrade() -> None:
    op.drop_table("analytics_data")
    op.drop_index("ix_usage_user_feature_time", table_name="usage_logs")
    op.drop_table("usage_logs")
    op.drop_index("ix_invoices_user_created", table_name="invoices")
    op.drop_table("invoices")
    op.drop_table("clients")
    op.drop_table("subscriptions")
    op.drop_table("plans")
    op.drop_table("user_preferences")
    op.drop_table("users")
