"""Offer repository.

All reads and writes of offer records go through here:
- lookup by id
- dedupe lookup by (email_norm, variant_id, status=open, created_at window)
- bundle candidates by (email_norm, shop_domain, status=accepted, no draft order)

No workflow rules in the store - those belong in services.
"""

from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from offerdesk.models import Offer, OfferStatus, utcnow


class OfferStore:
    """Async repository over the `offers` table for one session."""

    def __init__(self, session: AsyncSession, *, clock: Callable[[], datetime] = utcnow):
        self.session = session
        self.clock = clock

    def now(self) -> datetime:
        return self.clock()

    async def insert(self, fields: dict[str, Any]) -> Offer:
        """Insert a new open offer and return it with id and created_at assigned."""
        offer = Offer(**fields)
        offer.status = OfferStatus.OPEN.value
        offer.created_at = self.now()
        self.session.add(offer)
        await self.session.flush()
        await self.session.commit()
        return offer

    async def get(self, offer_id: int) -> Offer | None:
        result = await self.session.execute(select(Offer).where(Offer.id == offer_id))
        return result.scalar_one_or_none()

    async def find_recent_open(
        self,
        email_norm: str,
        variant_id: str,
        *,
        window: timedelta,
        now: datetime | None = None,
    ) -> Offer | None:
        """Find an open offer for the same buyer and variant created inside `window`."""
        cutoff = (now or self.now()) - window
        result = await self.session.execute(
            select(Offer)
            .where(
                Offer.email_norm == email_norm,
                Offer.variant_id == variant_id,
                Offer.status == OfferStatus.OPEN.value,
                Offer.created_at >= cutoff,
            )
            .order_by(Offer.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_recent(self, limit: int = 500) -> list[Offer]:
        result = await self.session.execute(
            select(Offer).order_by(Offer.created_at.desc(), Offer.id.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def set_status(self, offer_id: int, status: OfferStatus) -> None:
        await self.session.execute(
            update(Offer).where(Offer.id == offer_id).values(status=status.value)
        )
        await self.session.commit()

    async def set_discount(
        self,
        offer_id: int,
        *,
        code: str,
        rule_id: str,
        expires_at: datetime,
    ) -> None:
        await self.session.execute(
            update(Offer)
            .where(Offer.id == offer_id)
            .values(discount_code=code, price_rule_id=rule_id, discount_expires_at=expires_at)
        )
        await self.session.commit()

    async def list_bundle_candidates(self, email_norm: str, shop_domain: str) -> list[Offer]:
        """Accepted offers for this buyer and shop that are not on a draft order yet."""
        result = await self.session.execute(
            select(Offer)
            .where(
                Offer.email_norm == email_norm,
                Offer.shop_domain == shop_domain,
                Offer.status == OfferStatus.ACCEPTED.value,
                or_(Offer.draft_order_id.is_(None), Offer.draft_order_id == ""),
            )
            .order_by(Offer.created_at.asc(), Offer.id.asc())
        )
        return list(result.scalars().all())

    async def mark_drafted(
        self,
        offer_ids: Iterable[int],
        *,
        draft_order_id: str,
        drafted_at: datetime | None = None,
    ) -> None:
        """Stamp every bundled offer with the draft order in one UPDATE."""
        ids = list(offer_ids)
        if not ids:
            return
        try:
            await self.session.execute(
                update(Offer)
                .where(Offer.id.in_(ids))
                .values(draft_order_id=draft_order_id, drafted_at=drafted_at or self.now())
            )
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
