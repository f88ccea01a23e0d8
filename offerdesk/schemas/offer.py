"""Schemas for the public offer endpoint (POST /api/offer)."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class OfferSubmission(BaseModel):
    """Raw offer as posted by the storefront widget.

    Fields are deliberately loose (Any): the storefront sends numbers as
    strings and ids as numbers, and intake does its own coercion so that
    each problem maps to a specific error.
    """

    model_config = ConfigDict(extra="ignore")

    shop_domain: Any = ""
    product_id: Any = ""
    product_handle: Any = ""
    product_title: Any = ""
    variant_id: Any = ""
    variant_title: Any = ""
    currency: Any = None
    price_cents: Any = 0
    offer: Any = None
    email: Any = ""
    note: Any = ""
    lang: Any = ""


class OfferCreated(BaseModel):
    ok: bool = True
    id: int


class OfferRejected(BaseModel):
    ok: bool = False
    error: str
    code: str
