"""FastAPI dependencies: settings, store, platform client, services.

This is the only place (besides the app factory) that reads global
settings; everything below it receives its collaborators explicitly.
Tests swap collaborators with `app.dependency_overrides`.
"""

import secrets
from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, Query

from offerdesk.services.discounts import DiscountProvisioner
from offerdesk.services.draft_orders import DraftOrderBundler
from offerdesk.services.intake import OfferIntake
from offerdesk.services.mailer import Mailer
from offerdesk.services.notifications import NotificationDispatcher
from offerdesk.services.shopify_client import ShopifyClient
from offerdesk.services.transitions import OfferTransitions
from offerdesk.settings import Settings, get_settings
from offerdesk.stores.offer_store import OfferStore
from offerdesk.stores.postgres import get_session


def get_app_settings() -> Settings:
    return get_settings()


async def get_store() -> AsyncGenerator[OfferStore, None]:
    async with get_session() as session:
        yield OfferStore(session)


async def get_shopify(settings: Settings = Depends(get_app_settings)) -> AsyncGenerator[ShopifyClient, None]:
    client = ShopifyClient(settings)
    try:
        yield client
    finally:
        await client.close()


def get_mailer(settings: Settings = Depends(get_app_settings)) -> Mailer:
    return Mailer(settings)


def get_notifier(
    settings: Settings = Depends(get_app_settings),
    mailer: Mailer = Depends(get_mailer),
) -> NotificationDispatcher:
    return NotificationDispatcher(settings, mailer)


def get_intake(
    settings: Settings = Depends(get_app_settings),
    store: OfferStore = Depends(get_store),
) -> OfferIntake:
    return OfferIntake(settings, store)


def get_transitions(
    settings: Settings = Depends(get_app_settings),
    store: OfferStore = Depends(get_store),
    shopify: ShopifyClient = Depends(get_shopify),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> OfferTransitions:
    return OfferTransitions(store, DiscountProvisioner(settings, store, shopify), notifier)


def get_bundler(
    settings: Settings = Depends(get_app_settings),
    store: OfferStore = Depends(get_store),
    shopify: ShopifyClient = Depends(get_shopify),
) -> DraftOrderBundler:
    return DraftOrderBundler(settings, store, shopify)


def require_admin_key(
    key: str = Query(default=""),
    settings: Settings = Depends(get_app_settings),
) -> str:
    """Shared-secret check for admin routes. Same 403 for every failure."""
    expected = settings.admin_key
    if not expected or not secrets.compare_digest(key.encode(), expected.encode()):
        raise HTTPException(status_code=403, detail="Forbidden")
    return key
