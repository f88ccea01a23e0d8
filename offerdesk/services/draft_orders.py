"""Draft order bundling.

Collects every accepted, not-yet-drafted offer for one buyer (email_norm)
on one shop and turns them into a single Shopify draft order priced in the
shop market's presentment currency.

Flow:
1. Load bundle candidates (accepted, no draft_order_id)
2. Resolve market (currency/country) from the shop host
3. Build one line item per offer with a price override; skip offers whose
   variant id has no numeric platform id
4. Create the draft order
5. Mark the bundled offers with the draft order id (one UPDATE); if this fails
   the orphaned draft id is logged and DraftNotRecorded is raised
6. Ask Shopify to email the invoice (best-effort)

Already-drafted offers are excluded by step 1, so re-running for the same
buyer/shop is safe.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from offerdesk.models import Offer
from offerdesk.services.errors import DraftNotRecorded, DraftOrderFailed, NothingToBundle, NoValidLineItems
from offerdesk.services.markets import Market, resolve_market
from offerdesk.services.money import minor_to_major_str, numeric_platform_id
from offerdesk.services.shopify_client import CommercePlatformError, ShopifyClient, to_gid
from offerdesk.settings import Settings
from offerdesk.stores.offer_store import OfferStore

logger = logging.getLogger("uvicorn.error")

DRAFT_ORDER_TAG = "make-offer"
INVOICE_SUBJECT = "Your offer checkout"
INVOICE_MESSAGE = "We’ve bundled the items you offered on. Complete checkout when ready."


@dataclass
class BundleResult:
    order_id: str
    item_count: int
    currency: str
    country: str
    email: str
    offer_ids: list[int] = field(default_factory=list)
    skipped_offer_ids: list[int] = field(default_factory=list)
    invoice_sent: bool = False


def build_line_item(offer: Offer, variant_numeric_id: int, currency: str) -> dict[str, object]:
    return {
        "variantId": to_gid("ProductVariant", variant_numeric_id),
        "quantity": 1,
        "priceOverride": {
            "amount": minor_to_major_str(offer.offer_cents),
            "currencyCode": currency,
        },
        "customAttributes": [{"key": "OfferID", "value": str(offer.id)}],
    }


class DraftOrderBundler:
    """Bundles a buyer's accepted offers into one draft order."""

    def __init__(self, settings: Settings, store: OfferStore, shopify: ShopifyClient):
        self.market_table = settings.market_map
        self.base_market = Market(currency=settings.base_currency, country=settings.base_country)
        self.store = store
        self.shopify = shopify

    async def bundle(self, email_norm: str, shop_domain: str) -> BundleResult:
        """Create one draft order for all of a buyer's undrafted accepted offers on a shop.

        Args:
            email_norm: Normalized (lower-cased) buyer email.
            shop_domain: Shop host the offers were made on.

        Returns:
            BundleResult with the draft order id and which offers were bundled.

        Raises:
            NothingToBundle: No accepted, undrafted offers.
            NoValidLineItems: Every candidate had an unresolvable variant id.
            DraftOrderFailed: Shopify rejected or failed the draft order.
            DraftNotRecorded: The draft exists on Shopify but marking the offers failed.
        """
        offers = await self.store.list_bundle_candidates(email_norm, shop_domain)
        if not offers:
            raise NothingToBundle()

        market = resolve_market(shop_domain, self.market_table, base=self.base_market)
        email = offers[0].email

        line_items: list[dict[str, object]] = []
        bundled: list[int] = []
        skipped: list[int] = []
        for offer in offers:
            variant_numeric_id = numeric_platform_id(offer.variant_id)
            if variant_numeric_id is None:
                logger.error(f"[draft] skip offer_id={offer.id} bad variant_id={offer.variant_id!r}")
                skipped.append(offer.id)
                continue
            line_items.append(build_line_item(offer, variant_numeric_id, market.currency))
            bundled.append(offer.id)

        if not line_items:
            raise NoValidLineItems()

        draft_input = {
            "email": email,
            "lineItems": line_items,
            "presentmentCurrencyCode": market.currency,
            "note": f"Offers: {', '.join(str(i) for i in bundled)} (market {market.country}/{market.currency})",
            "tags": [DRAFT_ORDER_TAG],
        }

        try:
            draft = await self.shopify.create_draft_order(draft_input)
        except CommercePlatformError as e:
            raise DraftOrderFailed(str(e)) from e

        order_id = str(draft["id"])
        try:
            await self.store.mark_drafted(bundled, draft_order_id=order_id)
        except SQLAlchemyError as e:
            logger.error(
                f"[draft] orphaned draft_order_id={order_id}: created on Shopify but not recorded "
                f"for offers={bundled}: {e}"
            )
            raise DraftNotRecorded(f"Draft order {order_id} was created but not recorded") from e
        logger.info(
            f"[draft] created draft_order_id={order_id} email={email_norm} shop={shop_domain} "
            f"offers={bundled} skipped={skipped} currency={market.currency}"
        )

        invoice_sent = False
        try:
            await self.shopify.send_draft_invoice(
                order_id,
                to=email,
                subject=INVOICE_SUBJECT,
                message=INVOICE_MESSAGE,
            )
            invoice_sent = True
        except CommercePlatformError as e:
            logger.error(f"[draft] send_invoice failed draft_order_id={order_id}: {e}")

        return BundleResult(
            order_id=order_id,
            item_count=len(bundled),
            currency=market.currency,
            country=market.country,
            email=email,
            offer_ids=bundled,
            skipped_offer_ids=skipped,
            invoice_sent=invoice_sent,
        )
