"""SQLAlchemy ORM models.

Models represent database tables:
- offers: buyer offers and their admin workflow state
"""

from offerdesk.models.offer import Offer, OfferStatus, utcnow

__all__ = ["Offer", "OfferStatus", "utcnow"]
