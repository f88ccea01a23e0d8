"""Tests for the admin moderation routes."""

import logging

import pytest
from httpx import AsyncClient

from offerdesk.models import OfferStatus

KEY = "s3cret"
LIST_URL = f"/admin/offers?key={KEY}"

FIELDS = {
    "shop_domain": "shop.example.com",
    "product_id": "123",
    "product_title": "Linen <Shirt>",
    "variant_id": "gid://shopify/ProductVariant/999",
    "variant_title": "M",
    "currency": "GBP",
    "price_cents": 10000,
    "offer_cents": 5000,
    "email": "a@b.com",
    "email_norm": "a@b.com",
    "lang": "en",
}


@pytest.mark.asyncio
@pytest.mark.parametrize("key", [None, "", "wrong"])
async def test_admin_requires_key(client: AsyncClient, key):
    params = {} if key is None else {"key": key}
    response = await client.get("/admin/offers", params=params)

    assert response.status_code == 403
    assert response.text == "Forbidden"


@pytest.mark.asyncio
async def test_admin_disabled_without_configured_key(app, client: AsyncClient, settings):
    from offerdesk.routes import deps

    app.dependency_overrides[deps.get_app_settings] = lambda: settings.model_copy(update={"admin_key": ""})
    response = await client.get("/admin/offers", params={"key": ""})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_offers_renders_escaped_rows(client: AsyncClient, store):
    offer = await store.insert(dict(FIELDS))

    response = await client.get("/admin/offers", params={"key": KEY})

    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "Linen &lt;Shirt&gt;" in response.text
    assert "Linen <Shirt>" not in response.text
    assert f"/admin/offers/{offer.id}/status?value=accepted&key={KEY}" in response.text
    assert f"/admin/offers/{offer.id}/create-code?key={KEY}" in response.text
    assert "GBP 50.00" in response.text


@pytest.mark.asyncio
async def test_accept_redirects_and_provisions(client: AsyncClient, store, shopify_stub, mailer, load_offer):
    offer = await store.insert(dict(FIELDS))

    response = await client.get(f"/admin/offers/{offer.id}/status", params={"value": "accepted", "key": KEY})

    assert response.status_code == 302
    assert response.headers["location"] == LIST_URL
    stored = await load_offer(offer.id)
    assert stored.status == OfferStatus.ACCEPTED.value
    assert stored.discount_code
    assert len(mailer.to("a@b.com")) == 1

    listing = await client.get("/admin/offers", params={"key": KEY})
    assert stored.discount_code in listing.text
    assert "Open with item" in listing.text
    assert f"/admin/offers/{offer.id}/draft?key={KEY}" in listing.text


@pytest.mark.asyncio
async def test_accept_with_platform_down_still_redirects(client: AsyncClient, store, shopify_stub, load_offer):
    shopify_stub.fail_price_rule = True
    offer = await store.insert(dict(FIELDS))

    response = await client.get(f"/admin/offers/{offer.id}/status", params={"value": "accepted", "key": KEY})

    assert response.status_code == 302
    assert (await load_offer(offer.id)).status == "accepted"


@pytest.mark.asyncio
async def test_bad_status_and_missing_offer(client: AsyncClient, store):
    offer = await store.insert(dict(FIELDS))

    bad = await client.get(f"/admin/offers/{offer.id}/status", params={"value": "approved", "key": KEY})
    assert bad.status_code == 400
    assert bad.text == "Bad status"

    missing = await client.get("/admin/offers/999999/status", params={"value": "declined", "key": KEY})
    assert missing.status_code == 404
    assert missing.text == "Offer not found"


@pytest.mark.asyncio
async def test_create_code_retry(client: AsyncClient, store, shopify_stub, load_offer):
    offer = await store.insert(dict(FIELDS))

    first = await client.get(f"/admin/offers/{offer.id}/create-code", params={"key": KEY})
    second = await client.get(f"/admin/offers/{offer.id}/create-code", params={"key": KEY})

    assert first.status_code == second.status_code == 302
    assert (await load_offer(offer.id)).discount_code
    assert len(shopify_stub.calls("/price_rules.json")) == 1


@pytest.mark.asyncio
async def test_draft_bundles_accepted_offers_and_notifies(client: AsyncClient, store, shopify_stub, mailer, load_offer):
    a = await store.insert(dict(FIELDS))
    b = await store.insert({**FIELDS, "variant_id": "1001", "offer_cents": 7000})
    await store.set_status(a.id, OfferStatus.ACCEPTED)
    await store.set_status(b.id, OfferStatus.ACCEPTED)

    response = await client.get(f"/admin/offers/{a.id}/draft", params={"key": KEY})

    assert response.status_code == 302
    (variables,) = shopify_stub.graphql_calls("draftOrderCreate")
    assert len(variables["input"]["lineItems"]) == 2
    assert variables["input"]["presentmentCurrencyCode"] == "GBP"
    assert (await load_offer(b.id)).draft_order_id == "gid://shopify/DraftOrder/777"
    (notice,) = mailer.to("a@b.com")
    assert notice.subject == "Your offers are ready to checkout"

    # Nothing left to bundle: logged, still a redirect, no second draft.
    again = await client.get(f"/admin/offers/{a.id}/draft", params={"key": KEY})
    assert again.status_code == 302
    assert len(shopify_stub.graphql_calls("draftOrderCreate")) == 1


@pytest.mark.asyncio
async def test_draft_store_failure_still_redirects(
    client: AsyncClient, store, shopify_stub, mailer, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
):
    from sqlalchemy.exc import SQLAlchemyError

    from offerdesk.stores.offer_store import OfferStore

    offer = await store.insert(dict(FIELDS))
    await store.set_status(offer.id, OfferStatus.ACCEPTED)

    async def failing_mark_drafted(self, *args, **kwargs):
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(OfferStore, "mark_drafted", failing_mark_drafted)

    with caplog.at_level(logging.ERROR, logger="uvicorn.error"):
        response = await client.get(f"/admin/offers/{offer.id}/draft", params={"key": KEY})

    assert response.status_code == 302
    assert response.headers["location"] == LIST_URL
    assert "gid://shopify/DraftOrder/777" in caplog.text
    assert mailer.sent == []


@pytest.mark.asyncio
async def test_offer_lifecycle_end_to_end(client: AsyncClient, shopify_stub, mailer, load_offer):
    """Buyer submits, admin accepts one offer and declines another."""
    submitted = await client.post(
        "/api/offer",
        json={
            "shop_domain": "shop.example.com",
            "product_id": "123",
            "product_title": "Linen Shirt",
            "variant_id": "gid://shopify/ProductVariant/999",
            "price_cents": 10000,
            "offer": "50.00",
            "email": "a@b.com",
            "lang": "en",
        },
    )
    assert submitted.status_code == 200
    accepted_id = submitted.json()["id"]
    assert (await load_offer(accepted_id)).offer_cents == 5000

    other = await client.post(
        "/api/offer",
        json={
            "shop_domain": "shop.example.com",
            "product_id": "124",
            "product_title": "Wool Scarf",
            "variant_id": "gid://shopify/ProductVariant/1000",
            "price_cents": 4000,
            "offer": "30",
            "email": "c@d.com",
            "lang": "en",
        },
    )
    declined_id = other.json()["id"]

    accept = await client.get(f"/admin/offers/{accepted_id}/status", params={"value": "accepted", "key": KEY})
    assert accept.status_code == 302

    (rule_body,) = shopify_stub.calls("/price_rules.json")
    rule = rule_body["price_rule"]
    assert rule["value"] == "-50.00"
    assert rule["usage_limit"] == 1
    assert rule["entitled_variant_ids"] == [999]
    code = (await load_offer(accepted_id)).discount_code
    assert code
    acceptance = [m for m in mailer.to("a@b.com") if m.html and code in m.html]
    assert len(acceptance) == 1

    decline = await client.get(f"/admin/offers/{declined_id}/status", params={"value": "declined", "key": KEY})
    assert decline.status_code == 302

    declined = await load_offer(declined_id)
    assert declined.status == "declined"
    assert declined.discount_code is None
    (decline_mail,) = [m for m in mailer.to("c@d.com") if m.subject.startswith("Offer update")]
    assert "OFFER-" not in decline_mail.html
    assert len(shopify_stub.calls("/price_rules.json")) == 1
