"""Domain errors.

Each error carries a stable `code` (safe to return to clients and to grep in
logs) and the HTTP status it maps to when it reaches a route.
"""


class OfferError(Exception):
    """Base class for offer workflow errors."""

    code = "OFFER_ERROR"
    status_code = 400
    default_message = "Offer error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ============================================================
# Intake (client input)
# ============================================================


class ForbiddenOrigin(OfferError):
    code = "FORBIDDEN_ORIGIN"
    status_code = 403
    default_message = "Forbidden origin"


class InvalidEmail(OfferError):
    code = "INVALID_EMAIL"
    default_message = "Invalid email"


class MissingIdentifiers(OfferError):
    code = "MISSING_IDENTIFIERS"
    default_message = "Missing product/variant"


class InvalidOfferAmount(OfferError):
    code = "INVALID_OFFER_AMOUNT"
    default_message = "Offer required"


class DuplicateRecentOffer(OfferError):
    code = "DUPLICATE_RECENT_OFFER"
    status_code = 429
    default_message = "You already made an offer for this variant in the last 24 hours."


class RateLimited(OfferError):
    code = "RATE_LIMITED"
    status_code = 429
    default_message = "Too many offers from this address, please try again later."


# ============================================================
# Admin
# ============================================================


class OfferNotFound(OfferError):
    code = "OFFER_NOT_FOUND"
    status_code = 404
    default_message = "Offer not found"


class InvalidStatus(OfferError):
    code = "INVALID_STATUS"
    default_message = "Bad status"


# ============================================================
# Discount provisioning
# ============================================================


class NoDiscountNeeded(OfferError):
    code = "NO_DISCOUNT_NEEDED"
    status_code = 422
    default_message = "Offer is at or above the listed price; no discount needed"


class UnresolvableVariant(OfferError):
    code = "UNRESOLVABLE_VARIANT"
    status_code = 422
    default_message = "Variant id has no numeric platform id"


class ProvisioningFailed(OfferError):
    code = "PROVISIONING_FAILED"
    status_code = 502
    default_message = "Discount provisioning failed"


# ============================================================
# Draft order bundling
# ============================================================


class NothingToBundle(OfferError):
    code = "NOTHING_TO_BUNDLE"
    status_code = 409
    default_message = "No accepted offers to draft"


class NoValidLineItems(OfferError):
    code = "NO_VALID_LINE_ITEMS"
    status_code = 422
    default_message = "No valid line items from offers"


class DraftOrderFailed(OfferError):
    code = "DRAFT_ORDER_FAILED"
    status_code = 502
    default_message = "Draft order creation failed"


class DraftNotRecorded(OfferError):
    code = "DRAFT_NOT_RECORDED"
    status_code = 500
    default_message = "Draft order was created but could not be recorded on the offers"
