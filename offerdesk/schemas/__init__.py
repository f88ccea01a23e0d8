"""Pydantic schemas for API request/response validation."""

from offerdesk.schemas.common import ErrorDetail, ErrorResponse
from offerdesk.schemas.offer import OfferCreated, OfferRejected, OfferSubmission

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "OfferCreated",
    "OfferRejected",
    "OfferSubmission",
]
