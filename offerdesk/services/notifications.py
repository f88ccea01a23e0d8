"""Notification dispatcher.

Turns offer events into localized emails:
- received: auto-reply to the buyer after intake (plain text)
- alert: internal "new offer" email to the operations mailbox (English)
- accepted: discount code + deep links (HTML)
- declined: polite decline (HTML)
- bundle_ready: notice that a checkout was created for accepted offers

Every send is best-effort: the dispatcher logs failures and returns a
Delivery value instead of raising, so callers can ignore the outcome.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from html import escape
from typing import Any
from urllib.parse import quote

from babel.core import UnknownLocaleError
from babel.dates import format_date as babel_format_date
from babel.numbers import format_currency

from offerdesk.models import Offer
from offerdesk.services.i18n import (
    AcceptedParams,
    Language,
    babel_locale,
    catalog_for,
    resolve_language,
)
from offerdesk.services.mailer import Delivery, Failed, Mailer, OutgoingMail
from offerdesk.services.money import minor_to_major_str, numeric_platform_id
from offerdesk.settings import Settings

logger = logging.getLogger("uvicorn.error")


class NotificationKind(str, Enum):
    RECEIVED = "received"
    ALERT = "alert"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    BUNDLE_READY = "bundle_ready"


# ============================================================
# Formatting
# ============================================================


def format_money(cents: int | None, currency: str, language: Language) -> str:
    """Locale-aware money, e.g. 5000 GBP in en -> "£50.00".

    Falls back to "GBP 50.00" when Babel cannot format for this locale/currency.
    """
    cents = int(cents or 0)
    try:
        return format_currency(Decimal(cents) / 100, currency, locale=babel_locale(language))
    except (UnknownLocaleError, ValueError, LookupError, TypeError):
        return f"{currency} {minor_to_major_str(cents)}"


def format_date(value: datetime | str | None, language: Language) -> str:
    """Locale-aware date; falls back to the raw value as a string."""
    if value is None or value == "":
        return ""
    raw = value if isinstance(value, str) else value.isoformat()
    try:
        dt = value if isinstance(value, datetime) else datetime.fromisoformat(value.replace("Z", "+00:00"))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return babel_format_date(dt, format="medium", locale=babel_locale(language))
    except (UnknownLocaleError, ValueError, LookupError, TypeError, AttributeError):
        return raw


def discount_links(host: str, code: str, variant_numeric_id: int | None) -> tuple[str, str]:
    """Storefront deep links for a discount code.

    Returns:
        (with_item, apply_only): the first adds the variant to the cart and then
        applies the code, the second only applies the code and opens the cart.
    """
    code_part = quote(code or "", safe="")
    add_path = f"/cart/add?id={variant_numeric_id or ''}&quantity=1&return_to=%2Fcart"
    with_item = f"https://{host}/discount/{code_part}?redirect={quote(add_path, safe='')}"
    apply_only = f"https://{host}/discount/{code_part}?redirect=%2Fcart"
    return with_item, apply_only


# ============================================================
# Dispatcher
# ============================================================


class NotificationDispatcher:
    """Render and send buyer/ops notifications. Never raises."""

    def __init__(self, settings: Settings, mailer: Mailer):
        self.settings = settings
        self.mailer = mailer

    async def notify(
        self,
        kind: NotificationKind,
        recipient: str,
        language: str | Language | None,
        params: dict[str, Any],
    ) -> Delivery:
        """Render the message for `kind` in the buyer's language and send it."""
        lang = language if isinstance(language, Language) else resolve_language(language)
        try:
            mail = self._render(kind, recipient, lang, params)
        except (KeyError, ValueError, TypeError) as e:
            logger.error("Could not render %s notification for %s: %s", kind.value, recipient, e)
            return Failed(f"render failed: {e}")
        try:
            delivery = await self.mailer.send(mail)
        except Exception as e:
            logger.exception("Unexpected error sending %s notification to %s", kind.value, recipient)
            return Failed(str(e) or e.__class__.__name__)
        if not delivery.ok:
            logger.warning("%s notification to %s not delivered: %s", kind.value, recipient, delivery.reason)
        return delivery

    def _render(
        self,
        kind: NotificationKind,
        recipient: str,
        lang: Language,
        params: dict[str, Any],
    ) -> OutgoingMail:
        catalog = catalog_for(lang)
        if kind is NotificationKind.RECEIVED:
            subject, text = catalog.received(amount=params["amount"], title=params["title"])
            return OutgoingMail(to=recipient, subject=subject, text=text)
        if kind is NotificationKind.ACCEPTED:
            subject, html = catalog.accepted(
                AcceptedParams(
                    amount=params["amount"],
                    title=params["title"],
                    variant_title=params.get("variant_title", ""),
                    code=params.get("code") or catalog.contact_us,
                    ends_at=params.get("ends_at", ""),
                    with_item_url=params["with_item_url"],
                    apply_only_url=params["apply_only_url"],
                )
            )
            return OutgoingMail(to=recipient, subject=subject, html=html)
        if kind is NotificationKind.DECLINED:
            subject, html = catalog.declined(title=params["title"])
            return OutgoingMail(to=recipient, subject=subject, html=html)
        if kind is NotificationKind.ALERT:
            return OutgoingMail(to=recipient, subject=params["subject"], html=params["html"])
        if kind is NotificationKind.BUNDLE_READY:
            return OutgoingMail(
                to=recipient,
                subject="Your offers are ready to checkout",
                html=(
                    "<p>We’ve created a checkout for your accepted items in your local currency. "
                    "An invoice has been emailed to you.</p>"
                ),
            )
        raise ValueError(f"Unknown notification kind: {kind}")

    # --------------------------------------------------------
    # Offer events
    # --------------------------------------------------------

    async def offer_received(self, offer: Offer) -> Delivery:
        lang = resolve_language(offer.lang)
        return await self.notify(
            NotificationKind.RECEIVED,
            offer.email,
            lang,
            {
                "amount": format_money(offer.offer_cents, offer.currency, lang),
                "title": offer.product_title,
            },
        )

    async def offer_alert(self, offer: Offer) -> Delivery:
        """Internal heads-up to the operations mailbox, if one is configured."""
        to = self.settings.offer_to_email.strip()
        if not to:
            return Failed("alert mailbox not configured")
        price = f"{offer.currency} {minor_to_major_str(offer.price_cents or 0)}"
        amount = f"{offer.currency} {minor_to_major_str(offer.offer_cents)}"
        subject = f"New offer: {amount} – {offer.product_title} ({offer.variant_title})"
        rows = [
            ("Product", f"{offer.product_title} ({offer.product_handle})"),
            ("Variant", f"{offer.variant_title} (#{offer.variant_id})"),
            ("Price", price),
            ("Offer", amount),
            ("Email", offer.email),
            ("Note", offer.note or "-"),
            ("Shop", offer.shop_domain),
            ("Lang", offer.lang or "-"),
        ]
        items = "\n".join(f"<li>{label}: {escape(str(value))}</li>" for label, value in rows)
        html = f"<p><b>New offer received</b> (#{offer.id})</p>\n<ul>\n{items}\n</ul>"
        return await self.notify(NotificationKind.ALERT, to, Language.EN, {"subject": subject, "html": html})

    async def offer_accepted(
        self,
        offer: Offer,
        *,
        code: str | None,
        expires_at: datetime | str | None,
    ) -> Delivery:
        lang = resolve_language(offer.lang)
        host = offer.shop_domain or self.settings.fallback_shop_domain or self.settings.shopify_shop
        with_item, apply_only = discount_links(host, code or "", numeric_platform_id(offer.variant_id))
        return await self.notify(
            NotificationKind.ACCEPTED,
            offer.email,
            lang,
            {
                "amount": format_money(offer.offer_cents, offer.currency, lang),
                "title": offer.product_title,
                "variant_title": offer.variant_title,
                "code": code,
                "ends_at": format_date(expires_at, lang) if code else "",
                "with_item_url": with_item,
                "apply_only_url": apply_only,
            },
        )

    async def offer_declined(self, offer: Offer) -> Delivery:
        return await self.notify(
            NotificationKind.DECLINED,
            offer.email,
            offer.lang,
            {"title": offer.product_title},
        )

    async def bundle_ready(self, email: str) -> Delivery:
        return await self.notify(NotificationKind.BUNDLE_READY, email, Language.EN, {})
