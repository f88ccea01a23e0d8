"""Admin endpoints for offer moderation.

All routes require ?key=<OFFER_ADMIN_KEY>. Action routes always redirect
back to the offer list; failures of side effects (discount codes, emails,
draft orders) are logged, not shown.

GET /admin/offers                        - HTML table of recent offers
GET /admin/offers/{id}/status?value=...  - accept / decline / reopen / expire
GET /admin/offers/{id}/create-code       - retry discount provisioning
GET /admin/offers/{id}/draft             - bundle the buyer's accepted offers into a draft order
"""

import logging
from html import escape
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from fastapi.responses import HTMLResponse, RedirectResponse

from offerdesk.models import Offer, OfferStatus
from offerdesk.routes.deps import (
    get_app_settings,
    get_bundler,
    get_notifier,
    get_store,
    get_transitions,
    require_admin_key,
)
from offerdesk.services.draft_orders import DraftOrderBundler
from offerdesk.services.errors import InvalidStatus, OfferError, OfferNotFound
from offerdesk.services.money import minor_to_major_str, numeric_platform_id
from offerdesk.services.notifications import NotificationDispatcher, discount_links
from offerdesk.services.transitions import OfferTransitions, parse_status
from offerdesk.settings import Settings
from offerdesk.stores.offer_store import OfferStore

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


def _list_url(key: str) -> str:
    return f"/admin/offers?key={quote(key, safe='')}"


def _back_to_list(key: str) -> RedirectResponse:
    return RedirectResponse(url=_list_url(key), status_code=302)


# ============================================================
# Offer list
# ============================================================


_PAGE_STYLE = (
    "body{font:14px system-ui;margin:20px}table{border-collapse:collapse;width:100%}"
    "td,th{border:1px solid #ddd;padding:6px}th{background:#f6f6f6}"
)


def _money(offer: Offer, cents: int | None) -> str:
    return f"{escape(offer.currency)} {minor_to_major_str(cents or 0)}"


def _render_row(offer: Offer, key: str) -> str:
    k = quote(key, safe="")
    base = f"/admin/offers/{offer.id}"

    if offer.discount_code:
        with_item, _ = discount_links(offer.shop_domain, offer.discount_code, numeric_platform_id(offer.variant_id))
        code_link = f'<br><a href="{escape(with_item)}" target="_blank">Open with item</a>'
    else:
        code_link = f'<br><a href="{base}/create-code?key={k}">Create code</a>'
    draft_link = (
        f'<br><a href="{base}/draft?key={k}">Draft for this email</a>'
        if offer.status == OfferStatus.ACCEPTED.value
        else ""
    )

    status_cell = escape(offer.status)
    if offer.discount_code:
        status_cell += f"<br><small>Code: {escape(offer.discount_code)}</small>"
    if offer.draft_order_id:
        status_cell += f"<br><small>Draft: {escape(offer.draft_order_id)}</small>"

    actions = " · ".join(
        f'<a href="{base}/status?value={status.value}&key={k}">{label}</a>'
        for status, label in (
            (OfferStatus.ACCEPTED, "Accept"),
            (OfferStatus.DECLINED, "Decline"),
            (OfferStatus.OPEN, "Reopen"),
            (OfferStatus.EXPIRED, "Expire"),
        )
    )
    lang = f"<br><small>Lang: {escape(offer.lang)}</small>" if offer.lang else ""
    created = offer.created_at.isoformat(sep=" ", timespec="seconds") if offer.created_at else ""

    return (
        "<tr>"
        f"<td>{offer.id}</td><td>{escape(created)}</td>"
        f"<td>{escape(offer.product_title)}<br><small>{escape(offer.variant_title)}</small></td>"
        f"<td>{_money(offer, offer.price_cents)}</td>"
        f"<td><b>{_money(offer, offer.offer_cents)}</b></td>"
        f"<td>{escape(offer.email)}{lang}</td>"
        f"<td>{status_cell}</td>"
        f"<td>{actions}{code_link}{draft_link}</td>"
        "</tr>"
    )


def render_offer_table(offers: list[Offer], key: str) -> str:
    rows = "\n".join(_render_row(o, key) for o in offers)
    return (
        f'<!doctype html><meta charset="utf-8"><title>Offers</title><style>{_PAGE_STYLE}</style>'
        "<h2>Offers</h2>"
        "<table><tr><th>ID</th><th>Time</th><th>Product</th><th>Price</th><th>Offer</th>"
        "<th>Email</th><th>Status</th><th>Action</th></tr>"
        f"{rows}</table>"
    )


@router.get("/offers", response_class=HTMLResponse)
async def list_offers(
    key: str = Depends(require_admin_key),
    settings: Settings = Depends(get_app_settings),
    store: OfferStore = Depends(get_store),
) -> HTMLResponse:
    """Recent offers, newest first."""
    offers = await store.list_recent(limit=settings.admin_list_limit)
    return HTMLResponse(render_offer_table(offers, key))


# ============================================================
# Actions
# ============================================================


@router.get("/offers/{offer_id}/status")
async def set_offer_status(
    offer_id: int = Path(ge=1),
    value: str = Query(default="open"),
    key: str = Depends(require_admin_key),
    transitions: OfferTransitions = Depends(get_transitions),
) -> RedirectResponse:
    """Change status; accepting provisions a code and emails the buyer."""
    try:
        parse_status(value)
    except InvalidStatus:
        raise HTTPException(status_code=400, detail="Bad status")

    try:
        outcome = await transitions.set_status(offer_id, value)
    except OfferNotFound:
        raise HTTPException(status_code=404, detail="Offer not found")

    logger.info(
        f"[admin] status offer_id={offer_id} status={outcome.status.value} "
        f"code={'yes' if outcome.discount else 'no'} discount_error={outcome.discount_error} "
        f"email={'sent' if outcome.notification and outcome.notification.ok else 'not sent'}"
    )
    return _back_to_list(key)


@router.get("/offers/{offer_id}/create-code")
async def create_offer_code(
    offer_id: int = Path(ge=1),
    key: str = Depends(require_admin_key),
    transitions: OfferTransitions = Depends(get_transitions),
) -> RedirectResponse:
    """Manual retry of discount provisioning (no-op if a code exists)."""
    try:
        outcome = await transitions.retry_discount(offer_id)
    except OfferNotFound:
        raise HTTPException(status_code=404, detail="Offer not found")

    if outcome.discount_error:
        logger.error(f"[admin] manual discount creation failed offer_id={offer_id}: {outcome.discount_error}")
    return _back_to_list(key)


@router.get("/offers/{offer_id}/draft")
async def create_offer_draft(
    offer_id: int = Path(ge=1),
    key: str = Depends(require_admin_key),
    store: OfferStore = Depends(get_store),
    bundler: DraftOrderBundler = Depends(get_bundler),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> RedirectResponse:
    """Bundle all accepted offers for this offer's buyer and shop into one draft order."""
    offer = await store.get(offer_id)
    if offer is None:
        raise HTTPException(status_code=404, detail="Offer not found")

    try:
        result = await bundler.bundle(offer.email_norm, offer.shop_domain)
    except OfferError as e:
        logger.error(f"[admin] draft order creation failed offer_id={offer_id}: {e.code} {e.message}")
        return _back_to_list(key)

    await notifier.bundle_ready(result.email)
    return _back_to_list(key)
