# Import all models so SQLAlchemy metadata is complete before create_all / mapper configuration
from nextmove.models.coupon import Coupon
from nextmove.models.email_queue import EmailQueue
from nextmove.models.enums import (
    CouponContext,
    CouponScope,
    DiscountType,
    EmailStatus,
    NotificationType,
    OfferStatus,
    PaymentProvider,
    PaymentStatus,
    PodStatus,
    PosSessionStatus,
    ProfileRole,
    RecipientGroup,
    RfqStatus,
    ServiceType,
    ShipmentStatus,
    TransactionStatus,
    TransportMode,
)
from nextmove.models.notification import Notification
from nextmove.models.payment_gateway import PaymentGateway
from nextmove.models.pod import Pod
from nextmove.models.pos_session import PosSession
from nextmove.models.profile import Profile
from nextmove.models.rfq import RfqRequest
from nextmove.models.rfq_offer import RfqOffer
from nextmove.models.shipment import Shipment
from nextmove.models.shipment_event import ShipmentEvent
from nextmove.models.transaction import Transaction

__all__ = [
    "Coupon",
    "CouponContext",
    "CouponScope",
    "DiscountType",
    "EmailQueue",
    "EmailStatus",
    "Notification",
    "NotificationType",
    "OfferStatus",
    "PaymentGateway",
    "PaymentProvider",
    "PaymentStatus",
    "Pod",
    "PodStatus",
    "PosSession",
    "PosSessionStatus",
    "Profile",
    "ProfileRole",
    "RecipientGroup",
    "RfqOffer",
    "RfqRequest",
    "RfqStatus",
    "ServiceType",
    "Shipment",
    "ShipmentEvent",
    "ShipmentStatus",
    "Transaction",
    "TransactionStatus",
    "TransportMode",
]
