"""Vendors, ad accounts, daily account metrics and the action audit log.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()
    insp = sa.inspect(conn)
    if "ad_accounts" in insp.get_table_names():
        return  # Already applied (e.g. from create_all)

    op.create_table(
        "vendors",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact_telegram", sa.String(255), nullable=True),
        sa.Column("business_manager_id", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_vendors_name", "vendors", ["name"])
    op.create_index("ix_vendors_business_manager_id", "vendors", ["business_manager_id"])

    op.create_table(
        "ad_accounts",
        sa.Column("id", sa.String(255), nullable=False),
        sa.Column("name", sa.String(512), nullable=False),
        sa.Column("vendor_id", sa.Uuid(), nullable=True),
        sa.Column("business_manager_id", sa.String(255), nullable=True),
        sa.Column("status", sa.String(50), nullable=True),
        sa.Column("currency", sa.String(10), nullable=True),
        sa.Column("timezone", sa.String(100), nullable=True),
        sa.Column("last_seen_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["vendor_id"], ["vendors.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_ad_accounts_vendor_id", "ad_accounts", ["vendor_id"])
    op.create_index("ix_ad_accounts_status", "ad_accounts", ["status"])
    op.create_index("ix_ad_accounts_created_at", "ad_accounts", ["created_at"])

    op.create_table(
        "account_metrics",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("ad_account_id", sa.String(255), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("spend", sa.Float(), nullable=True),
        sa.Column("spend_cap", sa.Float(), nullable=True),
        sa.Column("clicks", sa.Integer(), nullable=True),
        sa.Column("impressions", sa.BigInteger(), nullable=True),
        sa.Column("cpc", sa.Float(), nullable=True),
        sa.Column("balance", sa.Float(), nullable=True),
        sa.Column("status_at_fetch", sa.String(50), nullable=True),
        sa.Column("fetched_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["ad_account_id"], ["ad_accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("ad_account_id", "date", name="uq_account_metric_per_day"),
    )
    op.create_index("ix_account_metrics_fetched_at", "account_metrics", ["fetched_at"])

    op.create_table(
        "account_actions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("performed_by", sa.String(255), nullable=False),
        sa.Column("ad_account_id", sa.String(255), nullable=True),
        sa.Column("target_type", sa.String(20), nullable=False),
        sa.Column("target_id", sa.String(255), nullable=False),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["ad_account_id"], ["ad_accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_account_actions_ad_account_id", "account_actions", ["ad_account_id"])
    op.create_index("ix_account_actions_target", "account_actions", ["target_type", "target_id"])
    op.create_index("ix_account_actions_created_at", "account_actions", ["created_at"])


def downgrade() -> None:
    op.drop_table("account_actions")
    op.drop_table("account_metrics")
    op.drop_table("ad_accounts")
    op.drop_table("vendors")
