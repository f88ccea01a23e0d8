"""Tests for bundling accepted offers into a draft order."""

import logging

import pytest
from sqlalchemy.exc import SQLAlchemyError

from offerdesk.models import OfferStatus
from offerdesk.services.draft_orders import DRAFT_ORDER_TAG, DraftOrderBundler
from offerdesk.services.errors import DraftNotRecorded, DraftOrderFailed, NothingToBundle, NoValidLineItems


def _fields(variant_id: str, offer_cents: int, **overrides) -> dict:
    fields = {
        "shop_domain": "shop.example.jp",
        "product_id": "1",
        "product_title": "Tea bowl",
        "variant_id": variant_id,
        "currency": "JPY",
        "price_cents": 900000,
        "offer_cents": offer_cents,
        "email": "Buyer@Example.com",
        "email_norm": "buyer@example.com",
    }
    fields.update(overrides)
    return fields


async def _accepted(store, *args, **kwargs):
    offer = await store.insert(_fields(*args, **kwargs))
    await store.set_status(offer.id, OfferStatus.ACCEPTED)
    return offer


@pytest.fixture
def bundler(settings, store, shopify) -> DraftOrderBundler:
    return DraftOrderBundler(settings, store, shopify)


@pytest.mark.asyncio
async def test_bundle_creates_one_draft_in_market_currency(bundler, store, shopify_stub, load_offer):
    a = await _accepted(store, "gid://shopify/ProductVariant/11", 500000)
    b = await _accepted(store, "22", 612345)
    await store.insert(_fields("33", 100000))  # still open

    result = await bundler.bundle("buyer@example.com", "shop.example.jp")

    assert result.order_id == "gid://shopify/DraftOrder/777"
    assert result.item_count == 2
    assert (result.currency, result.country) == ("JPY", "JP")
    assert result.offer_ids == [a.id, b.id]
    assert result.invoice_sent is True

    (variables,) = shopify_stub.graphql_calls("draftOrderCreate")
    draft = variables["input"]
    assert draft["email"] == "Buyer@Example.com"
    assert draft["presentmentCurrencyCode"] == "JPY"
    assert draft["tags"] == [DRAFT_ORDER_TAG]
    assert draft["note"] == f"Offers: {a.id}, {b.id} (market JP/JPY)"
    assert draft["lineItems"][0] == {
        "variantId": "gid://shopify/ProductVariant/11",
        "quantity": 1,
        "priceOverride": {"amount": "5000.00", "currencyCode": "JPY"},
        "customAttributes": [{"key": "OfferID", "value": str(a.id)}],
    }
    assert draft["lineItems"][1]["priceOverride"]["amount"] == "6123.45"

    (invoice,) = shopify_stub.graphql_calls("draftOrderInvoiceSend")
    assert invoice["id"] == result.order_id
    assert invoice["email"]["to"] == "Buyer@Example.com"

    for offer_id in (a.id, b.id):
        stored = await load_offer(offer_id)
        assert stored.draft_order_id == result.order_id
        assert stored.drafted_at is not None


@pytest.mark.asyncio
async def test_second_bundle_has_nothing_to_do(bundler, store, shopify_stub):
    await _accepted(store, "11", 500000)
    await bundler.bundle("buyer@example.com", "shop.example.jp")

    with pytest.raises(NothingToBundle):
        await bundler.bundle("buyer@example.com", "shop.example.jp")
    assert len(shopify_stub.graphql_calls("draftOrderCreate")) == 1


@pytest.mark.asyncio
async def test_bad_variant_is_skipped_not_fatal(bundler, store, shopify_stub, load_offer):
    first = await _accepted(store, "11", 500000)
    bad = await _accepted(store, "gid://shopify/ProductVariant/", 400000)
    third = await _accepted(store, "33", 300000)

    result = await bundler.bundle("buyer@example.com", "shop.example.jp")

    assert result.offer_ids == [first.id, third.id]
    assert result.skipped_offer_ids == [bad.id]
    assert result.item_count == 2

    (variables,) = shopify_stub.graphql_calls("draftOrderCreate")
    line_items = variables["input"]["lineItems"]
    assert [item["variantId"] for item in line_items] == [
        "gid://shopify/ProductVariant/11",
        "gid://shopify/ProductVariant/33",
    ]

    drafted = [o for o in (first, bad, third) if (await load_offer(o.id)).draft_order_id == result.order_id]
    assert drafted == [first, third]
    assert (await load_offer(bad.id)).draft_order_id is None


@pytest.mark.asyncio
async def test_all_variants_bad(bundler, store, shopify_stub):
    await _accepted(store, "not-a-number", 500000)

    with pytest.raises(NoValidLineItems):
        await bundler.bundle("buyer@example.com", "shop.example.jp")
    assert shopify_stub.requests == []


@pytest.mark.asyncio
async def test_bundle_is_scoped_to_shop(bundler, store):
    await _accepted(store, "11", 500000, shop_domain="other.example.com")

    with pytest.raises(NothingToBundle):
        await bundler.bundle("buyer@example.com", "shop.example.jp")


@pytest.mark.asyncio
async def test_unknown_host_uses_tld_then_base_market(bundler, store):
    await _accepted(store, "11", 5000, shop_domain="store.example.de", currency="EUR")

    result = await bundler.bundle("buyer@example.com", "store.example.de")
    assert (result.currency, result.country) == ("GBP", "GB")


@pytest.mark.asyncio
async def test_invoice_failure_still_marks_offers(bundler, store, shopify_stub, load_offer):
    shopify_stub.invoice_errors = [{"field": "email", "message": "Email is invalid"}]
    offer = await _accepted(store, "11", 500000)

    result = await bundler.bundle("buyer@example.com", "shop.example.jp")

    assert result.invoice_sent is False
    assert (await load_offer(offer.id)).draft_order_id == result.order_id


@pytest.mark.asyncio
async def test_draft_rejection_leaves_offers_undrafted(bundler, store, shopify_stub, load_offer):
    shopify_stub.draft_user_errors = [{"field": "lineItems", "message": "Variant not found"}]
    offer = await _accepted(store, "11", 500000)

    with pytest.raises(DraftOrderFailed):
        await bundler.bundle("buyer@example.com", "shop.example.jp")
    assert (await load_offer(offer.id)).draft_order_id is None


@pytest.mark.asyncio
async def test_store_failure_after_draft_names_orphaned_draft(
    bundler, store, shopify_stub, load_offer, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
):
    offer = await _accepted(store, "11", 500000)

    async def failing_mark_drafted(*args, **kwargs):
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(store, "mark_drafted", failing_mark_drafted)

    with caplog.at_level(logging.ERROR, logger="uvicorn.error"):
        with pytest.raises(DraftNotRecorded) as exc_info:
            await bundler.bundle("buyer@example.com", "shop.example.jp")

    assert "gid://shopify/DraftOrder/777" in exc_info.value.message
    assert "orphaned draft_order_id=gid://shopify/DraftOrder/777" in caplog.text
    assert shopify_stub.graphql_calls("draftOrderInvoiceSend") == []
    assert (await load_offer(offer.id)).draft_order_id is None
