"""Payment router — checkout for signed-in users, IPN endpoints for providers."""

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from nextmove.database.session import get_db
from nextmove.models.enums import PaymentProvider
from nextmove.modules.auth.dependencies import AuthenticatedUser, get_current_user
from nextmove.modules.payments.providers.base import WebhookRequest
from nextmove.modules.payments.schemas import (
    CheckoutCreate,
    CheckoutResponse,
    TransactionResponse,
    WebhookAck,
)
from nextmove.modules.payments.service import PaymentService

limiter = Limiter(key_func=get_remote_address)

router = APIRouter(prefix="/payments", tags=["payments"])
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/{provider}/checkout", response_model=CheckoutResponse, status_code=201)
async def create_checkout(
    provider: PaymentProvider,
    body: CheckoutCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = PaymentService(db)
    transaction, payload, payment_url = await svc.create_checkout(
        provider, user, **body.model_dump()
    )
    return CheckoutResponse(
        transaction=TransactionResponse.model_validate(transaction),
        payment_url=payment_url,
        checkout=payload,
    )


@webhook_router.post("/{provider}", response_model=WebhookAck)
@limiter.limit("120/minute")
async def receive_webhook(
    request: Request,
    provider: PaymentProvider,
    db: AsyncSession = Depends(get_db),
):
    """Provider IPN. Wave posts JSON; CinetPay and PayTech post forms."""
    body = await request.body()
    form: dict[str, str] = {}
    if request.headers.get("content-type", "").startswith(
        ("application/x-www-form-urlencoded", "multipart/form-data")
    ):
        form = {key: str(value) for key, value in (await request.form()).items()}

    webhook = WebhookRequest(headers=dict(request.headers), body=body, form=form)
    transaction = await PaymentService(db).handle_webhook(provider, webhook)
    if transaction is None:
        return WebhookAck()
    return WebhookAck(reference=transaction.reference, status=transaction.status)
