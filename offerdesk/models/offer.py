"""Offer model.

A buyer's proposed price for one product variant, plus everything the
admin workflow writes back onto it (status, discount code, draft order).
"""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import DateTime, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from offerdesk.stores.postgres import Base


def utcnow() -> datetime:
    """Timezone-aware "now" used for every timestamp the service writes."""
    return datetime.now(timezone.utc)


class OfferStatus(str, Enum):
    """Offer lifecycle state. All transitions are admin-driven."""

    OPEN = "open"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


class Offer(Base):
    """A buyer-submitted offer for a product variant."""

    __tablename__ = "offers"
    __table_args__ = (
        Index("ix_offers_email_norm_variant_id", "email_norm", "variant_id"),
        Index("ix_offers_email_norm_shop_domain_status", "email_norm", "shop_domain", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        index=True,
    )

    # Shop / product context
    shop_domain: Mapped[str] = mapped_column(String(255), default="")
    product_id: Mapped[str] = mapped_column(String(255))
    product_handle: Mapped[str] = mapped_column(String(255), default="")
    product_title: Mapped[str] = mapped_column(Text, default="")
    variant_id: Mapped[str] = mapped_column(String(255))
    variant_title: Mapped[str] = mapped_column(Text, default="")

    # Money (minor units)
    currency: Mapped[str] = mapped_column(String(8))
    price_cents: Mapped[int] = mapped_column(Integer, default=0)
    offer_cents: Mapped[int] = mapped_column(Integer)

    # Buyer
    email: Mapped[str] = mapped_column(String(320))
    email_norm: Mapped[str] = mapped_column(String(320))
    note: Mapped[str] = mapped_column(Text, default="")
    lang: Mapped[str] = mapped_column(String(16), default="")

    status: Mapped[str] = mapped_column(String(16), default=OfferStatus.OPEN.value)

    # Discount (set once by the provisioner)
    discount_code: Mapped[str | None] = mapped_column(String(64))
    price_rule_id: Mapped[str | None] = mapped_column(String(64))
    discount_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Draft order (set once by the bundler)
    draft_order_id: Mapped[str | None] = mapped_column(String(255))
    drafted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Request metadata, audit only
    ip: Mapped[str] = mapped_column(String(64), default="")
    ua: Mapped[str] = mapped_column(Text, default="")

    @property
    def has_discount(self) -> bool:
        return bool(self.discount_code)

    def __repr__(self) -> str:
        return f"<Offer {self.id} {self.status} {self.currency} {self.offer_cents}>"
