"""Offer intake: validate, normalize, dedupe, insert.

Validation runs in a fixed order and stops at the first failure:
1. Origin allow-list (if configured)   -> ForbiddenOrigin
2. Email shape                          -> InvalidEmail
3. product_id / variant_id present      -> MissingIdentifiers
4. Offer amount > 0 after rounding      -> InvalidOfferAmount
5. Normalize fields
6. No open offer for the same email+variant in the last 24h -> DuplicateRecentOffer
7. Insert (status=open)

Notifications are not sent here; the route schedules them after the
response so they can never affect it.

The dedupe check and the insert are two statements, so two simultaneous
submissions can both pass the check. That yields a duplicate open offer,
which the admin can decline.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta

from offerdesk.models import Offer
from offerdesk.schemas.offer import OfferSubmission
from offerdesk.services.errors import (
    DuplicateRecentOffer,
    ForbiddenOrigin,
    InvalidEmail,
    InvalidOfferAmount,
    MissingIdentifiers,
)
from offerdesk.services.money import to_minor_units, to_non_negative_int
from offerdesk.settings import Settings
from offerdesk.stores.offer_store import OfferStore

logger = logging.getLogger("uvicorn.error")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]{2,}$")
NOTE_MAX_LENGTH = 2000
DEDUPE_WINDOW = timedelta(hours=24)


def _column_width(name: str) -> int:
    return Offer.__table__.c[name].type.length


# Widths of the bounded String columns, read from the model.
EMAIL_MAX_LENGTH = _column_width("email")
IDENTIFIER_MAX_LENGTH = min(_column_width("product_id"), _column_width("variant_id"))


@dataclass(frozen=True)
class RequestContext:
    """What intake needs to know about the HTTP request."""

    origin: str = ""
    client_ip: str = ""
    user_agent: str = ""


def client_ip_from(headers: Mapping[str, str], peer: str | None) -> str:
    """Client IP, preferring proxy headers (Cloudflare, then X-Forwarded-For) over the socket peer."""
    raw = headers.get("cf-connecting-ip") or headers.get("x-forwarded-for") or peer or ""
    return str(raw).split(",")[0].strip()


def _text(value: object) -> str:
    if value is None:
        return ""
    return str(value)


def _clamp(value: str, column: str) -> str:
    """Cut free-form text to the width of its String column."""
    return value[: _column_width(column)]


@dataclass(frozen=True)
class SubmitResult:
    id: int
    offer: Offer


class OfferIntake:
    """Accepts buyer offers."""

    def __init__(self, settings: Settings, store: OfferStore):
        self.allowed_origins = list(settings.allowed_origins)
        self.default_currency = settings.default_currency
        self.store = store

    def normalize(self, raw: OfferSubmission, ctx: RequestContext) -> dict[str, object]:
        """Validate steps 1-5 and return the column values for a new offer."""
        if self.allowed_origins and ctx.origin not in self.allowed_origins:
            raise ForbiddenOrigin()

        email = _text(raw.email).strip()
        if len(email) > EMAIL_MAX_LENGTH or not EMAIL_PATTERN.match(email):
            raise InvalidEmail()

        product_id = _text(raw.product_id).strip()
        variant_id = _text(raw.variant_id).strip()
        if not product_id or not variant_id or max(len(product_id), len(variant_id)) > IDENTIFIER_MAX_LENGTH:
            raise MissingIdentifiers()

        offer_cents = to_minor_units(raw.offer)
        if offer_cents is None or offer_cents <= 0:
            raise InvalidOfferAmount()

        return {
            "shop_domain": _clamp(_text(raw.shop_domain).strip(), "shop_domain"),
            "product_id": product_id,
            "product_handle": _clamp(_text(raw.product_handle), "product_handle"),
            "product_title": _text(raw.product_title),
            "variant_id": variant_id,
            "variant_title": _text(raw.variant_title),
            "currency": _clamp(_text(raw.currency).strip().upper(), "currency") or self.default_currency,
            "price_cents": to_non_negative_int(raw.price_cents),
            "offer_cents": offer_cents,
            "email": email,
            "email_norm": email.lower(),
            "note": _text(raw.note)[:NOTE_MAX_LENGTH],
            "lang": _clamp(_text(raw.lang).strip().lower(), "lang"),
            "ip": _clamp(ctx.client_ip, "ip"),
            "ua": ctx.user_agent,
        }

    async def submit(self, raw: OfferSubmission, ctx: RequestContext) -> SubmitResult:
        """Validate and store a new open offer.

        Raises:
            OfferError: One of the intake errors, in validation order.
        """
        fields = self.normalize(raw, ctx)

        existing = await self.store.find_recent_open(
            str(fields["email_norm"]),
            str(fields["variant_id"]),
            window=DEDUPE_WINDOW,
        )
        if existing is not None:
            logger.info(
                f"[intake] duplicate offer email={fields['email_norm']} variant_id={fields['variant_id']} "
                f"existing_id={existing.id}"
            )
            raise DuplicateRecentOffer()

        offer = await self.store.insert(fields)
        logger.info(
            f"[intake] offer_id={offer.id} shop={offer.shop_domain} variant_id={offer.variant_id} "
            f"offer_cents={offer.offer_cents} {offer.currency}"
        )
        return SubmitResult(id=offer.id, offer=offer)
