"""Tests for POST /api/offer."""

import pytest
from httpx import AsyncClient

from offerdesk.services import rate_limit

PAYLOAD = {
    "shop_domain": "shop.example.com",
    "product_id": 123,
    "product_handle": "linen-shirt",
    "product_title": "Linen Shirt",
    "variant_id": "gid://shopify/ProductVariant/999",
    "variant_title": "M",
    "currency": "GBP",
    "price_cents": 10000,
    "offer": "50.00",
    "email": "a@b.com",
    "note": "",
    "lang": "en",
}


@pytest.mark.asyncio
async def test_submit_offer(client: AsyncClient, mailer, load_offer):
    response = await client.post(
        "/api/offer",
        json=PAYLOAD,
        headers={"x-forwarded-for": "198.51.100.7, 10.0.0.1", "user-agent": "widget/1.0"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True

    offer = await load_offer(data["id"])
    assert offer.offer_cents == 5000
    assert offer.status == "open"
    assert offer.ip == "198.51.100.7"
    assert offer.ua == "widget/1.0"

    # Buyer auto-reply and ops alert run after the response.
    (receipt,) = mailer.to("a@b.com")
    assert receipt.subject == "We received your offer – Linen Shirt"
    assert "£50.00" in receipt.text
    (alert,) = mailer.to("ops@example.com")
    assert alert.subject.startswith("New offer: GBP 50.00")


@pytest.mark.asyncio
async def test_mail_failure_does_not_affect_response(client: AsyncClient, mailer):
    mailer.fail_with = "smtp down"
    response = await client.post("/api/offer", json=PAYLOAD)
    assert response.status_code == 200
    assert response.json()["ok"] is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("overrides", "status", "code"),
    [
        ({"email": "bad"}, 400, "INVALID_EMAIL"),
        ({"variant_id": ""}, 400, "MISSING_IDENTIFIERS"),
        ({"offer": "0"}, 400, "INVALID_OFFER_AMOUNT"),
    ],
)
async def test_rejected_input(client: AsyncClient, mailer, overrides, status, code):
    response = await client.post("/api/offer", json={**PAYLOAD, **overrides})

    assert response.status_code == status
    assert response.json()["ok"] is False
    assert response.json()["code"] == code
    assert mailer.sent == []


@pytest.mark.asyncio
async def test_duplicate_offer_is_429(client: AsyncClient):
    first = await client.post("/api/offer", json=PAYLOAD)
    assert first.status_code == 200

    second = await client.post("/api/offer", json={**PAYLOAD, "email": "A@B.COM"})
    assert second.status_code == 429
    assert second.json() == {
        "ok": False,
        "error": "You already made an offer for this variant in the last 24 hours.",
        "code": "DUPLICATE_RECENT_OFFER",
    }


@pytest.mark.asyncio
async def test_rate_limited(client: AsyncClient, settings, monkeypatch: pytest.MonkeyPatch):
    hits: dict[str, int] = {}

    async def fake_counter(client_key: str, window_seconds: int) -> int:
        hits[client_key] = hits.get(client_key, 0) + 1
        return hits[client_key]

    monkeypatch.setattr(rate_limit, "hit_rate_limit_counter", fake_counter)

    statuses = []
    for i in range(settings.rate_limit_max + 1):
        response = await client.post(
            "/api/offer",
            json={**PAYLOAD, "variant_id": str(1000 + i)},
            headers={"cf-connecting-ip": "192.0.2.1"},
        )
        statuses.append(response.status_code)

    assert statuses[:-1] == [200] * settings.rate_limit_max
    assert statuses[-1] == 429
    assert hits == {"192.0.2.1": settings.rate_limit_max + 1}


@pytest.mark.asyncio
async def test_forbidden_origin(app, client: AsyncClient, settings):
    from offerdesk.routes import deps

    restricted = settings.model_copy(update={"allowed_origins": ["https://shop.example.com"]})
    app.dependency_overrides[deps.get_app_settings] = lambda: restricted

    denied = await client.post("/api/offer", json=PAYLOAD, headers={"origin": "https://evil.test"})
    assert denied.status_code == 403
    assert denied.json()["code"] == "FORBIDDEN_ORIGIN"

    allowed = await client.post("/api/offer", json=PAYLOAD, headers={"origin": "https://shop.example.com"})
    assert allowed.status_code == 200


@pytest.mark.asyncio
async def test_huge_offer_is_rejected_as_client_error(client: AsyncClient):
    response = await client.post("/api/offer", json={**PAYLOAD, "offer": "1e30"})

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_OFFER_AMOUNT"


@pytest.mark.asyncio
async def test_huge_price_is_stored_as_zero(client: AsyncClient, load_offer):
    response = await client.post("/api/offer", json={**PAYLOAD, "price_cents": "1e30"})

    assert response.status_code == 200
    offer = await load_offer(response.json()["id"])
    assert offer.price_cents == 0


@pytest.mark.asyncio
async def test_overlong_language_tag_is_stored_truncated(client: AsyncClient, load_offer):
    response = await client.post(
        "/api/offer",
        json={**PAYLOAD, "lang": "en-GB-x-private-tag"},
        headers={"x-forwarded-for": "9" * 100},
    )

    assert response.status_code == 200
    offer = await load_offer(response.json()["id"])
    assert offer.lang == "en-gb-x-private-"
    assert len(offer.ip) == 64
