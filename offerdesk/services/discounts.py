"""Discount provisioning for accepted offers.

Flow:
1. Check the offer needs a discount (offer below listed price)
2. Resolve the variant's numeric Shopify id
3. Create a fixed-amount price rule scoped to that one variant
   (usage limit 1, once per customer, valid for DISCOUNT_TTL_DAYS)
4. Attach a generated code to the rule
5. Persist code, rule id and expiry on the offer

`ensure_discount` is the idempotent entry point used by the status
transition and the manual retry: it never provisions twice for an offer
that already has a code.
"""

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta

from offerdesk.models import Offer
from offerdesk.services.errors import NoDiscountNeeded, ProvisioningFailed, UnresolvableVariant
from offerdesk.services.money import minor_to_major_str, numeric_platform_id
from offerdesk.services.shopify_client import CommercePlatformError, ShopifyClient
from offerdesk.settings import Settings
from offerdesk.stores.offer_store import OfferStore

logger = logging.getLogger("uvicorn.error")

_CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_SUFFIX_LENGTH = 6


@dataclass(frozen=True)
class ProvisionedDiscount:
    code: str
    rule_id: str
    expires_at: datetime | None


def generate_code(offer_id: int) -> str:
    """Human-legible code, e.g. OFFER-42-K7Q2ZD."""
    suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(CODE_SUFFIX_LENGTH))
    return f"OFFER-{offer_id}-{suffix}"


def discount_amount_cents(offer: Offer) -> int:
    """Listed minus offered price, in minor units.

    Raises:
        NoDiscountNeeded: If either price is missing or the offer is not below the listed price.
    """
    price = int(offer.price_cents or 0)
    offered = int(offer.offer_cents or 0)
    if price <= 0 or offered <= 0:
        raise NoDiscountNeeded("Missing price/offer")
    diff = price - offered
    if diff <= 0:
        raise NoDiscountNeeded()
    return diff


def build_price_rule(
    offer: Offer,
    *,
    variant_numeric_id: int,
    diff_cents: int,
    starts_at: datetime,
    ends_at: datetime,
) -> dict[str, object]:
    return {
        "title": f"Offer {offer.id} – {offer.product_title}",
        "target_type": "line_item",
        "target_selection": "entitled",
        "allocation_method": "each",
        "value_type": "fixed_amount",
        "value": f"-{minor_to_major_str(diff_cents)}",
        "customer_selection": "all",
        "starts_at": starts_at.isoformat(),
        "ends_at": ends_at.isoformat(),
        "usage_limit": 1,
        "once_per_customer": True,
        "entitled_variant_ids": [variant_numeric_id],
    }


class DiscountProvisioner:
    """Creates single-use, variant-scoped discount codes for accepted offers."""

    def __init__(self, settings: Settings, store: OfferStore, shopify: ShopifyClient):
        self.ttl = timedelta(days=settings.discount_ttl_days)
        self.store = store
        self.shopify = shopify

    async def provision(self, offer: Offer) -> ProvisionedDiscount:
        """Provision a discount code for `offer` and persist it.

        Raises:
            NoDiscountNeeded: Offer is at or above the listed price, or a price is missing.
            UnresolvableVariant: The variant id has no numeric platform id.
            ProvisioningFailed: Any Shopify call failed.
        """
        diff_cents = discount_amount_cents(offer)
        variant_numeric_id = numeric_platform_id(offer.variant_id)
        if variant_numeric_id is None:
            raise UnresolvableVariant(f"Bad variant_id: {offer.variant_id}")

        starts_at = self.store.now()
        ends_at = starts_at + self.ttl
        price_rule = build_price_rule(
            offer,
            variant_numeric_id=variant_numeric_id,
            diff_cents=diff_cents,
            starts_at=starts_at,
            ends_at=ends_at,
        )

        try:
            rule_id = await self.shopify.create_price_rule(price_rule)
            code = await self.shopify.create_discount_code(rule_id, generate_code(offer.id))
        except CommercePlatformError as e:
            raise ProvisioningFailed(f"Discount creation failed for offer {offer.id}: {e}") from e

        await self.store.set_discount(offer.id, code=code, rule_id=rule_id, expires_at=ends_at)
        offer.discount_code = code
        offer.price_rule_id = rule_id
        offer.discount_expires_at = ends_at
        logger.info(
            f"[discount] offer_id={offer.id} code={code} rule_id={rule_id} "
            f"amount_cents={diff_cents} ends_at={ends_at.isoformat()}"
        )
        return ProvisionedDiscount(code=code, rule_id=rule_id, expires_at=ends_at)

    async def ensure_discount(self, offer: Offer) -> ProvisionedDiscount:
        """Return the offer's existing discount, or provision one if it has none."""
        if offer.discount_code:
            return ProvisionedDiscount(
                code=offer.discount_code,
                rule_id=offer.price_rule_id or "",
                expires_at=offer.discount_expires_at,
            )
        return await self.provision(offer)
