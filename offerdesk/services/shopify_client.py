"""Shopify Admin API client.

Two transports, same credentials:
- REST: price rules and discount codes
- GraphQL: draft orders and invoice sending

Every failure (not configured, non-2xx, GraphQL `errors`, mutation
`userErrors`) is raised as CommercePlatformError; callers decide whether
that is fatal.
"""

import logging
from typing import Any

import httpx

from offerdesk.settings import Settings

logger = logging.getLogger("uvicorn.error")


class CommercePlatformError(RuntimeError):
    pass


def to_gid(kind: str, numeric_id: int) -> str:
    """Build a Shopify global id, e.g. ("ProductVariant", 42) -> "gid://shopify/ProductVariant/42"."""
    return f"gid://shopify/{kind}/{numeric_id}"


DRAFT_ORDER_CREATE = """
mutation CreateDraft($input: DraftOrderInput!) {
  draftOrderCreate(input: $input) {
    draftOrder { id invoiceUrl presentmentCurrencyCode }
    userErrors { field message }
  }
}
"""

DRAFT_ORDER_INVOICE_SEND = """
mutation SendInvoice($id: ID!, $email: EmailInput) {
  draftOrderInvoiceSend(id: $id, email: $email) {
    draftOrder { id invoiceUrl }
    userErrors { field message }
  }
}
"""


class ShopifyClient:
    """Async client for the Shopify Admin REST and GraphQL endpoints."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.shop = settings.shopify_shop.strip()
        self.token = settings.shopify_admin_token.strip()
        self.api_version = settings.shopify_api_version
        self.timeout = settings.shopify_timeout_seconds
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    @property
    def configured(self) -> bool:
        return bool(self.shop and self.token)

    @property
    def base_url(self) -> str:
        return f"https://{self.shop}/admin/api/{self.api_version}"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    "X-Shopify-Access-Token": self.token,
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    # ============================================================
    # Transports
    # ============================================================

    async def rest(self, method: str, path: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        if not self.configured:
            raise CommercePlatformError("Shopify admin not configured")
        client = await self._get_client()
        try:
            resp = await client.request(method, f"{self.base_url}{path}", json=body)
        except httpx.HTTPError as e:
            raise CommercePlatformError(f"Shopify REST {method} {path} failed: {e}") from e
        if resp.status_code >= 400:
            logger.error(f"Shopify REST {method} {path} {resp.status_code}: {resp.text[:500]}")
            raise CommercePlatformError(f"Shopify REST {resp.status_code}")
        data = resp.json()
        if not isinstance(data, dict):
            raise CommercePlatformError("Unexpected response from Shopify REST")
        return data

    async def graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        if not self.configured:
            raise CommercePlatformError("Shopify admin not configured")
        client = await self._get_client()
        try:
            resp = await client.post(
                f"{self.base_url}/graphql.json",
                json={"query": query, "variables": variables},
            )
        except httpx.HTTPError as e:
            raise CommercePlatformError(f"Shopify GraphQL request failed: {e}") from e
        try:
            payload = resp.json()
        except ValueError:
            payload = None
        if resp.status_code >= 400 or not isinstance(payload, dict) or payload.get("errors"):
            logger.error(f"Shopify GQL error {resp.status_code}: {resp.text[:500]}")
            raise CommercePlatformError("Shopify GraphQL error")
        data = payload.get("data")
        if not isinstance(data, dict):
            raise CommercePlatformError("Shopify GraphQL response has no data")
        return data

    # ============================================================
    # Discounts (REST)
    # ============================================================

    async def create_price_rule(self, price_rule: dict[str, Any]) -> str:
        """Create a price rule and return its id."""
        data = await self.rest("POST", "/price_rules.json", {"price_rule": price_rule})
        rule_id = (data.get("price_rule") or {}).get("id")
        if not rule_id:
            raise CommercePlatformError("No price_rule.id returned")
        return str(rule_id)

    async def create_discount_code(self, price_rule_id: str, code: str) -> str:
        """Attach a code to a price rule; returns the code as stored by Shopify."""
        data = await self.rest(
            "POST",
            f"/price_rules/{price_rule_id}/discount_codes.json",
            {"discount_code": {"code": code}},
        )
        return str((data.get("discount_code") or {}).get("code") or code)

    # ============================================================
    # Draft orders (GraphQL)
    # ============================================================

    async def create_draft_order(self, draft_input: dict[str, Any]) -> dict[str, Any]:
        """Create a draft order; returns the draftOrder object (id, invoiceUrl, ...)."""
        data = await self.graphql(DRAFT_ORDER_CREATE, {"input": draft_input})
        payload = data.get("draftOrderCreate") or {}
        draft = payload.get("draftOrder") or {}
        if not draft.get("id"):
            errors = "; ".join(str(e.get("message")) for e in payload.get("userErrors") or [])
            raise CommercePlatformError(f"Draft create failed: {errors or 'no id'}")
        return draft

    async def send_draft_invoice(self, draft_id: str, *, to: str, subject: str, message: str) -> None:
        data = await self.graphql(
            DRAFT_ORDER_INVOICE_SEND,
            {"id": draft_id, "email": {"to": to, "subject": subject, "customMessage": message}},
        )
        payload = data.get("draftOrderInvoiceSend") or {}
        errors = payload.get("userErrors") or []
        if errors:
            raise CommercePlatformError(
                "Invoice send failed: " + "; ".join(str(e.get("message")) for e in errors)
            )
