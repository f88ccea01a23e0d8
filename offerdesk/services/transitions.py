"""Admin-driven offer status transitions.

Any status can be set from any status. The status write is committed first
and is the only part that can fail the request; side effects run after it
and are logged, never raised:

- -> accepted: provision a discount code if the offer has none, then send
  the localized acceptance email (with a "contact us" placeholder if no
  code could be provisioned)
- -> declined: send the localized decline email
- -> open / expired: nothing else

Nothing moves offers to `expired` automatically; it is an admin action only.
"""

import logging
from dataclasses import dataclass

from offerdesk.models import Offer, OfferStatus
from offerdesk.services.discounts import DiscountProvisioner, ProvisionedDiscount
from offerdesk.services.errors import InvalidStatus, OfferError, OfferNotFound
from offerdesk.services.mailer import Delivery
from offerdesk.services.notifications import NotificationDispatcher
from offerdesk.stores.offer_store import OfferStore

logger = logging.getLogger("uvicorn.error")


def parse_status(value: object) -> OfferStatus:
    try:
        return OfferStatus(str(value or "").strip().lower())
    except ValueError as e:
        raise InvalidStatus() from e


@dataclass
class TransitionOutcome:
    offer_id: int
    status: OfferStatus
    discount: ProvisionedDiscount | None = None
    discount_error: str | None = None
    notification: Delivery | None = None


class OfferTransitions:
    """Status changes and the manual discount retry."""

    def __init__(
        self,
        store: OfferStore,
        provisioner: DiscountProvisioner,
        notifier: NotificationDispatcher,
    ):
        self.store = store
        self.provisioner = provisioner
        self.notifier = notifier

    async def _load(self, offer_id: int) -> Offer:
        offer = await self.store.get(offer_id)
        if offer is None:
            raise OfferNotFound()
        return offer

    async def set_status(self, offer_id: int, value: object) -> TransitionOutcome:
        """Set an offer's status and run the side effects for the new state.

        Raises:
            InvalidStatus: `value` is not one of open/accepted/declined/expired.
            OfferNotFound: No offer with this id.
        """
        status = parse_status(value)
        offer = await self._load(offer_id)
        await self.store.set_status(offer.id, status)
        offer.status = status.value
        logger.info(f"[status] offer_id={offer.id} status={status.value}")

        outcome = TransitionOutcome(offer_id=offer.id, status=status)
        if status is OfferStatus.ACCEPTED:
            outcome.discount, outcome.discount_error = await self._try_discount(offer)
            outcome.notification = await self.notifier.offer_accepted(
                offer,
                code=outcome.discount.code if outcome.discount else None,
                expires_at=outcome.discount.expires_at if outcome.discount else None,
            )
        elif status is OfferStatus.DECLINED:
            outcome.notification = await self.notifier.offer_declined(offer)
        return outcome

    async def retry_discount(self, offer_id: int) -> TransitionOutcome:
        """Manual retry: provision a code for an offer that has none.

        Raises:
            OfferNotFound: No offer with this id.
        """
        offer = await self._load(offer_id)
        outcome = TransitionOutcome(offer_id=offer.id, status=OfferStatus(offer.status))
        outcome.discount, outcome.discount_error = await self._try_discount(offer)
        return outcome

    async def _try_discount(self, offer: Offer) -> tuple[ProvisionedDiscount | None, str | None]:
        try:
            return await self.provisioner.ensure_discount(offer), None
        except OfferError as e:
            logger.error(f"[discount] offer_id={offer.id} {e.code}: {e.message}")
            return None, e.code
        except Exception:
            logger.exception(f"[discount] offer_id={offer.id} unexpected provisioning error")
            return None, "UNEXPECTED_ERROR"
