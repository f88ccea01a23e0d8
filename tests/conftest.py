"""Shared fixtures: temporary SQLite store, fake mailer, stubbed Shopify."""

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from offerdesk.routes import deps
from offerdesk.services.mailer import Delivered, Delivery, Failed, OutgoingMail
from offerdesk.services.shopify_client import ShopifyClient
from offerdesk.settings import Settings
from offerdesk.stores.offer_store import OfferStore
from offerdesk.stores.postgres import close_db, create_tables, get_session, init_db


class FakeClock:
    """Settable UTC clock for the store."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current = self.current + delta


class RecordingMailer:
    """Stands in for Mailer; keeps every message instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[OutgoingMail] = []
        self.fail_with: str | None = None

    async def send(self, mail: OutgoingMail) -> Delivery:
        if self.fail_with:
            return Failed(self.fail_with)
        self.sent.append(mail)
        return Delivered(recipient=mail.to)

    def to(self, recipient: str) -> list[OutgoingMail]:
        return [m for m in self.sent if m.to == recipient]


class ShopifyStub:
    """httpx.MockTransport handler emulating the Admin API calls we make."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, str, dict]] = []
        self.fail_price_rule = False
        self.invoice_errors: list[dict[str, str]] = []
        self.draft_user_errors: list[dict[str, str]] = []
        self.next_rule_id = 9001
        self.next_draft_id = 777

    def calls(self, path_suffix: str) -> list[dict]:
        return [body for _, path, body in self.requests if path.endswith(path_suffix)]

    def graphql_calls(self, operation: str) -> list[dict]:
        return [body["variables"] for body in self.calls("/graphql.json") if operation in body["query"]]

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content or b"{}")
        path = request.url.path
        self.requests.append((request.method, path, body))

        if path.endswith("/price_rules.json"):
            if self.fail_price_rule:
                return httpx.Response(422, json={"errors": {"value": ["is invalid"]}})
            rule_id = self.next_rule_id
            self.next_rule_id += 1
            return httpx.Response(201, json={"price_rule": {"id": rule_id, **body["price_rule"]}})

        if path.endswith("/discount_codes.json"):
            return httpx.Response(201, json={"discount_code": {"id": 1, "code": body["discount_code"]["code"]}})

        if path.endswith("/graphql.json"):
            query = body["query"]
            if "draftOrderCreate" in query:
                if self.draft_user_errors:
                    payload = {"draftOrder": None, "userErrors": self.draft_user_errors}
                else:
                    draft_id = f"gid://shopify/DraftOrder/{self.next_draft_id}"
                    self.next_draft_id += 1
                    payload = {
                        "draftOrder": {
                            "id": draft_id,
                            "invoiceUrl": "https://example.test/invoice",
                            "presentmentCurrencyCode": body["variables"]["input"]["presentmentCurrencyCode"],
                        },
                        "userErrors": [],
                    }
                return httpx.Response(200, json={"data": {"draftOrderCreate": payload}})
            if "draftOrderInvoiceSend" in query:
                payload = {"draftOrder": {"id": body["variables"]["id"]}, "userErrors": self.invoice_errors}
                return httpx.Response(200, json={"data": {"draftOrderInvoiceSend": payload}})

        return httpx.Response(404, json={"errors": "Not Found"})

    def client(self, settings: Settings) -> ShopifyClient:
        return ShopifyClient(settings, transport=httpx.MockTransport(self.handler))


# ============================================================
# Fixtures
# ============================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'offers.db'}",
        admin_key="s3cret",
        shopify_shop="test-shop.myshopify.com",
        shopify_admin_token="shpat_test",
        offer_to_email="ops@example.com",
        fallback_shop_domain="shop.example.com",
        market_map=[{"host": "shop.example.jp", "currency": "JPY", "country": "JP"}],
    )


@pytest.fixture
async def db(settings: Settings):
    await init_db(settings)
    await create_tables()
    yield
    await close_db()


@pytest.fixture
async def store(db, clock: FakeClock):
    async with get_session() as session:
        yield OfferStore(session, clock=clock)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def shopify_stub() -> ShopifyStub:
    return ShopifyStub()


@pytest.fixture
async def shopify(settings: Settings, shopify_stub: ShopifyStub):
    client = shopify_stub.client(settings)
    yield client
    await client.close()


@pytest.fixture
async def load_offer(db):
    """Read an offer through a fresh session, bypassing any identity map."""

    async def _load(offer_id: int):
        async with get_session() as session:
            return await OfferStore(session).get(offer_id)

    return _load


@pytest.fixture
def app(db, settings: Settings, clock: FakeClock, mailer: RecordingMailer, shopify_stub: ShopifyStub):
    """App with all collaborators swapped for fakes."""
    from offerdesk.main import create_app

    app = create_app()

    async def _store():
        async with get_session() as session:
            yield OfferStore(session, clock=clock)

    async def _shopify():
        shop = shopify_stub.client(settings)
        try:
            yield shop
        finally:
            await shop.close()

    app.dependency_overrides[deps.get_app_settings] = lambda: settings
    app.dependency_overrides[deps.get_store] = _store
    app.dependency_overrides[deps.get_mailer] = lambda: mailer
    app.dependency_overrides[deps.get_shopify] = _shopify
    return app


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
