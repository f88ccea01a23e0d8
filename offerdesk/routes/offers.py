"""Public offer endpoint.

POST /api/offer - submit a buyer offer from the storefront.

Responses:
- 200 {"ok": true, "id": 123}
- 400/403/429 {"ok": false, "error": "...", "code": "..."} for rejected input
- 500 {"ok": false, "error": "DB error", "code": "DB_ERROR"} if the store fails

The buyer auto-reply and the ops alert are sent after the response via
BackgroundTasks and cannot change it.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from offerdesk.models import Offer
from offerdesk.routes.deps import get_app_settings, get_intake, get_notifier
from offerdesk.schemas import OfferCreated, OfferRejected, OfferSubmission
from offerdesk.services.errors import OfferError
from offerdesk.services.intake import OfferIntake, RequestContext, client_ip_from
from offerdesk.services.notifications import NotificationDispatcher
from offerdesk.services.rate_limit import enforce_rate_limit
from offerdesk.settings import Settings

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


async def send_intake_notifications(notifier: NotificationDispatcher, offer: Offer) -> None:
    """Buyer auto-reply and ops alert. Outcomes are logged by the dispatcher."""
    await notifier.offer_alert(offer)
    await notifier.offer_received(offer)


def _rejected(error: OfferError) -> JSONResponse:
    body = OfferRejected(error=error.message, code=error.code)
    return JSONResponse(status_code=error.status_code, content=body.model_dump())


@router.post("/offer", response_model=OfferCreated, responses={400: {"model": OfferRejected}})
async def submit_offer(
    payload: OfferSubmission,
    request: Request,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_app_settings),
    intake: OfferIntake = Depends(get_intake),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> OfferCreated | JSONResponse:
    """Validate, dedupe and store a buyer offer."""
    ctx = RequestContext(
        origin=request.headers.get("origin", ""),
        client_ip=client_ip_from(request.headers, request.client.host if request.client else None),
        user_agent=request.headers.get("user-agent", ""),
    )

    try:
        await enforce_rate_limit(ctx.client_ip, settings)
        result = await intake.submit(payload, ctx)
    except OfferError as e:
        return _rejected(e)
    except SQLAlchemyError:
        logger.exception("[intake] store failure")
        return JSONResponse(
            status_code=500,
            content=OfferRejected(error="DB error", code="DB_ERROR").model_dump(),
        )

    background_tasks.add_task(send_intake_notifications, notifier, result.offer)
    return OfferCreated(id=result.id)
