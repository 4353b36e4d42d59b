"""
Ad Account Monitor: Database Models
Vendors, ad accounts mirrored from the ad platform, daily metric snapshots
and the append-only audit log of control actions.
"""

import uuid
import enum
from datetime import datetime, timezone
from sqlalchemy import (
    String, Float, Integer, BigInteger, DateTime, Uuid,
    JSON, ForeignKey, Index, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from admonitor.database import Base


def _utcnow() -> datetime:
    """Naive UTC now, matching DB columns (TIMESTAMP WITHOUT TIME ZONE)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ══════════════════════════════════════════════════════════════════════
#  ENUMS
# ══════════════════════════════════════════════════════════════════════

class AccountStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    DISABLED = "DISABLED"
    UNSETTLED = "UNSETTLED"
    PENDING_RISK_REVIEW = "PENDING_RISK_REVIEW"
    PENDING_SETTLEMENT = "PENDING_SETTLEMENT"
    IN_GRACE_PERIOD = "IN_GRACE_PERIOD"
    PENDING_CLOSURE = "PENDING_CLOSURE"
    CLOSED = "CLOSED"
    ADVERTISER_DISABLED = "ADVERTISER_DISABLED"
    UNKNOWN = "UNKNOWN"


class CampaignStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"


class TargetType(str, enum.Enum):
    ACCOUNT = "account"
    CAMPAIGN = "campaign"


# ══════════════════════════════════════════════════════════════════════
#  VENDORS: Owners/resellers of ad accounts
# ══════════════════════════════════════════════════════════════════════

class Vendor(Base):
    """Owner of a group of ad accounts. Created by sync, never updated by it."""
    __tablename__ = "vendors"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_telegram: Mapped[str] = mapped_column(String(255), nullable=True)
    business_manager_id: Mapped[str] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    # Relationships
    ad_accounts: Mapped[list["AdAccount"]] = relationship("AdAccount", back_populates="vendor")

    __table_args__ = (
        Index("ix_vendors_name", "name"),
        Index("ix_vendors_business_manager_id", "business_manager_id"),
    )


# ══════════════════════════════════════════════════════════════════════
#  AD ACCOUNTS: Mirrored from the ad platform
# ══════════════════════════════════════════════════════════════════════

class AdAccount(Base):
    """Ad account keyed by the platform's own account id."""
    __tablename__ = "ad_accounts"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(512), nullable=False)
    vendor_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("vendors.id"), nullable=True)
    business_manager_id: Mapped[str] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(50), default=AccountStatus.UNKNOWN.value)
    currency: Mapped[str] = mapped_column(String(10), nullable=True)
    timezone: Mapped[str] = mapped_column(String(100), nullable=True)
    last_seen_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    # Relationships
    vendor: Mapped["Vendor"] = relationship("Vendor", back_populates="ad_accounts")
    metrics: Mapped[list["AccountMetric"]] = relationship("AccountMetric", back_populates="ad_account")
    actions: Mapped[list["AccountAction"]] = relationship("AccountAction", back_populates="ad_account")

    __table_args__ = (
        Index("ix_ad_accounts_vendor_id", "vendor_id"),
        Index("ix_ad_accounts_status", "status"),
        Index("ix_ad_accounts_created_at", "created_at"),
    )


# ══════════════════════════════════════════════════════════════════════
#  ACCOUNT METRICS: One snapshot per account per UTC day
# ══════════════════════════════════════════════════════════════════════

class AccountMetric(Base):
    """Daily spend/performance snapshot. Upserted on (ad_account_id, date)."""
    __tablename__ = "account_metrics"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ad_account_id: Mapped[str] = mapped_column(String(255), ForeignKey("ad_accounts.id"), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)  # UTC midnight
    spend: Mapped[float] = mapped_column(Float, default=0.0)
    spend_cap: Mapped[float] = mapped_column(Float, nullable=True)
    clicks: Mapped[int] = mapped_column(Integer, default=0)
    impressions: Mapped[int] = mapped_column(BigInteger, default=0)
    cpc: Mapped[float] = mapped_column(Float, default=0.0)
    balance: Mapped[float] = mapped_column(Float, nullable=True)
    status_at_fetch: Mapped[str] = mapped_column(String(50), nullable=True)
    fetched_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    # Relationships
    ad_account: Mapped["AdAccount"] = relationship("AdAccount", back_populates="metrics")

    __table_args__ = (
        UniqueConstraint("ad_account_id", "date", name="uq_account_metric_per_day"),
        Index("ix_account_metrics_fetched_at", "fetched_at"),
    )


# ══════════════════════════════════════════════════════════════════════
#  ACCOUNT ACTIONS: Append-only audit log
# ══════════════════════════════════════════════════════════════════════

class AccountAction(Base):
    """Control action taken by a user. Rows are never updated or deleted."""
    __tablename__ = "account_actions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    performed_by: Mapped[str] = mapped_column(String(255), nullable=False)
    # NULL when only a campaign id was known
    ad_account_id: Mapped[str] = mapped_column(String(255), ForeignKey("ad_accounts.id"), nullable=True)
    target_type: Mapped[str] = mapped_column(String(20), nullable=False)  # account, campaign
    target_id: Mapped[str] = mapped_column(String(255), nullable=False)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    # Relationships
    ad_account: Mapped["AdAccount"] = relationship("AdAccount", back_populates="actions")

    __table_args__ = (
        Index("ix_account_actions_ad_account_id", "ad_account_id"),
        Index("ix_account_actions_target", "target_type", "target_id"),
        Index("ix_account_actions_created_at", "created_at"),
    )
