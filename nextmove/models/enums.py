import enum


class ProfileRole(str, enum.Enum):
    CLIENT = "client"
    FORWARDER = "forwarder"
    ADMIN = "admin"
    DRIVER = "driver"
    AGENT = "agent"


class RfqStatus(str, enum.Enum):
    OPEN = "open"
    OFFER_ACCEPTED = "offer_accepted"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class OfferStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class TransportMode(str, enum.Enum):
    SEA = "sea"
    AIR = "air"
    ROAD = "road"


class ServiceType(str, enum.Enum):
    STANDARD = "standard"
    EXPRESS = "express"


class ShipmentStatus(str, enum.Enum):
    PENDING_PAYMENT = "pending_payment"
    PENDING = "pending"
    IN_TRANSIT = "in_transit"
    CUSTOMS = "customs"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class PodStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class NotificationType(str, enum.Enum):
    FEEDBACK_REQUEST = "feedback_request"
    RFQ_STALE = "rfq_stale"
    SHIPMENT_UPDATE = "shipment_update"
    PAYMENT = "payment"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentProvider(str, enum.Enum):
    WAVE = "wave"
    CINETPAY = "cinetpay"
    PAYTECH = "paytech"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class CouponScope(str, enum.Enum):
    PLATFORM = "platform"
    FORWARDER = "forwarder"


class CouponContext(str, enum.Enum):
    SUBSCRIPTION = "subscription"
    SERVICE = "service"


class PosSessionStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class EmailStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SENT = "sent"
    FAILED = "failed"


class RecipientGroup(str, enum.Enum):
    ALL = "all"
    CLIENTS = "clients"
    FORWARDERS = "forwarders"
    SPECIFIC = "specific"
