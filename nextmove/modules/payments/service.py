"""Payment service — hosted checkouts and webhook settlement."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from nextmove.exceptions import (
    BusinessRuleException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from nextmove.models.enums import (
    CouponContext,
    NotificationType,
    PaymentProvider,
    PaymentStatus,
    TransactionStatus,
)
from nextmove.models.payment_gateway import PaymentGateway
from nextmove.models.profile import Profile
from nextmove.models.shipment import Shipment
from nextmove.models.transaction import Transaction
from nextmove.modules.auth.dependencies import AuthenticatedUser
from nextmove.modules.coupon.service import CouponService, compute_discount
from nextmove.modules.notifications.service import NotificationService
from nextmove.modules.payments.constants import (
    DEFAULT_CURRENCY,
    PAYMENT_NOTIFICATION_LINK,
    PAYMENT_NOTIFICATION_MESSAGE,
    PAYMENT_NOTIFICATION_TITLE,
    REFERENCE_PREFIX,
)
from nextmove.modules.payments.providers.base import (
    CheckoutRequest,
    PaymentProviderBase,
    WebhookRequest,
)
from nextmove.modules.payments.providers.factory import get_provider

logger = logging.getLogger(__name__)


def new_reference() -> str:
    return f"{REFERENCE_PREFIX}-{uuid.uuid4().hex[:12].upper()}"


class PaymentService:
    def __init__(
        self,
        db: AsyncSession,
        provider_factory: Callable[[PaymentProvider], PaymentProviderBase] = get_provider,
    ):
        self.db = db
        self.provider_factory = provider_factory

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_gateway(self, provider: PaymentProvider) -> PaymentGateway | None:
        result = await self.db.execute(
            select(PaymentGateway).where(PaymentGateway.provider == provider)
        )
        return result.scalar_one_or_none()

    async def _get_active_gateway(self, provider: PaymentProvider) -> PaymentGateway:
        gateway = await self._get_gateway(provider)
        if gateway is None or not gateway.is_active:
            logger.warning("Checkout requested on unavailable gateway %s", provider.value)
            raise BusinessRuleException("Payment method not available")
        return gateway

    async def _get_payable_shipment(
        self, shipment_id: uuid.UUID, user: AuthenticatedUser
    ) -> Shipment:
        result = await self.db.execute(select(Shipment).where(Shipment.id == shipment_id))
        shipment = result.scalar_one_or_none()
        if shipment is None:
            raise NotFoundException(f"Shipment {shipment_id} not found")
        if not user.is_admin and shipment.client_id != user.id:
            raise ForbiddenException("You can only pay for your own shipments")
        if shipment.payment_status == PaymentStatus.PAID:
            raise BusinessRuleException("This shipment is already paid")
        return shipment

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    async def create_checkout(
        self,
        provider: PaymentProvider,
        user: AuthenticatedUser,
        amount: Decimal | None = None,
        currency: str | None = None,
        shipment_id: uuid.UUID | None = None,
        description: str | None = None,
        success_url: str | None = None,
        cancel_url: str | None = None,
        coupon_code: str | None = None,
    ) -> tuple[Transaction, dict, str | None]:
        """Record a pending transaction and open a hosted checkout for it.

        Returns the transaction, the provider payload and the redirect URL.
        Shipment payments default to the shipment's agreed price and currency.
        A promo code is validated against the purchase and its discount taken
        off the amount; the code is recorded on the transaction and counted
        once the payment completes.
        """
        gateway = await self._get_active_gateway(provider)

        shipment = None
        if shipment_id is not None:
            shipment = await self._get_payable_shipment(shipment_id, user)
            amount = amount if amount is not None else shipment.price
            currency = currency or shipment.currency
        if amount is None or amount <= 0:
            raise ValidationException("A positive amount is required")
        currency = (currency or DEFAULT_CURRENCY).upper()

        metadata: dict = {}
        if coupon_code:
            coupon = await CouponService(self.db).validate_coupon(
                coupon_code,
                CouponContext.SERVICE if shipment else CouponContext.SUBSCRIPTION,
                forwarder_id=shipment.forwarder_id if shipment else None,
            )
            discount = compute_discount(coupon, amount)
            metadata["coupon"] = {
                "code": coupon.code,
                "discount": str(discount),
                "original_amount": str(amount),
            }
            amount = Decimal(amount) - discount
            if amount <= 0:
                raise BusinessRuleException("Nothing left to pay after the discount")

        profile = await self.db.get(Profile, user.id)
        transaction = Transaction(
            user_id=user.id,
            shipment_id=shipment_id,
            reference=new_reference(),
            amount=amount,
            currency=currency,
            provider=provider,
            status=TransactionStatus.PENDING,
            metadata_extra=metadata,
        )
        self.db.add(transaction)
        await self.db.flush()

        checkout = CheckoutRequest(
            reference=transaction.reference,
            amount=Decimal(amount),
            currency=currency,
            description=description
            or (f"Shipment {shipment.tracking_number}" if shipment else "NextMove Cargo payment"),
            shipment_id=shipment_id,
            success_url=success_url,
            cancel_url=cancel_url,
            customer={
                "name": profile.full_name if profile else None,
                "email": profile.email if profile else user.email,
                "phone": profile.phone if profile else None,
            },
        )
        adapter = self.provider_factory(provider)
        payload = await adapter.create_checkout(
            gateway.config or {}, checkout, is_test_mode=gateway.is_test_mode
        )

        transaction.metadata_extra = {**transaction.metadata_extra, "checkout": payload}
        await self.db.flush()
        logger.info(
            "Opened %s checkout %s for %s %s (user %s)",
            provider.value, transaction.reference, amount, currency, user.id,
        )
        return transaction, payload, adapter.payment_url(payload)

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    async def handle_webhook(
        self, provider: PaymentProvider, request: WebhookRequest
    ) -> Transaction | None:
        """Verify a provider notification and settle the matching transaction."""
        gateway = await self._get_gateway(provider)
        config = gateway.config if gateway is not None and gateway.config else {}

        result = self.provider_factory(provider).parse_webhook(config, request)
        if result is None:
            return None
        return await self.apply_payment_result(
            result.reference, result.status, result.shipment_id, payload=result.payload
        )

    async def apply_payment_result(
        self,
        reference: str,
        status: TransactionStatus,
        shipment_id: uuid.UUID | None = None,
        payload: dict | None = None,
    ) -> Transaction:
        """Settle a transaction. Only pending transactions change; replays are no-ops."""
        result = await self.db.execute(
            select(Transaction).where(Transaction.reference == reference).with_for_update()
        )
        transaction = result.scalar_one_or_none()
        if transaction is None:
            raise NotFoundException(f"Transaction {reference} not found")

        if transaction.status != TransactionStatus.PENDING:
            logger.info(
                "Transaction %s already %s, ignoring %s notification",
                reference, transaction.status.value, status.value,
            )
            return transaction

        transaction.status = status
        if payload:
            transaction.metadata_extra = {**(transaction.metadata_extra or {}), **payload}

        if status == TransactionStatus.COMPLETED:
            target = shipment_id or transaction.shipment_id
            if target is not None:
                await self.db.execute(
                    update(Shipment)
                    .where(Shipment.id == target)
                    .values(payment_status=PaymentStatus.PAID)
                )
            coupon = (transaction.metadata_extra or {}).get("coupon")
            if coupon:
                await CouponService(self.db).record_redemption(coupon["code"])
            if transaction.user_id is not None:
                await NotificationService(self.db).create_notification(
                    user_id=transaction.user_id,
                    type=NotificationType.PAYMENT,
                    title=PAYMENT_NOTIFICATION_TITLE,
                    message=PAYMENT_NOTIFICATION_MESSAGE.format(
                        reference=reference,
                        amount=transaction.amount,
                        currency=transaction.currency,
                    ),
                    link=PAYMENT_NOTIFICATION_LINK,
                )

        await self.db.flush()
        logger.info("Transaction %s settled as %s", reference, status.value)
        return transaction
