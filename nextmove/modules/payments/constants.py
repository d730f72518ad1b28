"""Payment constants."""

DEFAULT_CURRENCY = "XOF"

REFERENCE_PREFIX = "NMC"

WAVE_COMPLETED_EVENT = "checkout.session.completed"
WAVE_FAILED_EVENT = "checkout.session.payment_failed"
WAVE_SIGNATURE_HEADER = "wave-signature"

CINETPAY_SUCCESS_RESULT = "00"
CINETPAY_CREATED_CODE = "201"

PAYTECH_SALE_EVENT = "sale"

PAYMENT_SUCCESS_PATH = "/dashboard/client/payments?status=success"
PAYMENT_ERROR_PATH = "/dashboard/client/payments?status=error"

PAYMENT_NOTIFICATION_TITLE = "Payment confirmed"
PAYMENT_NOTIFICATION_MESSAGE = "Your payment {reference} of {amount} {currency} has been confirmed."
PAYMENT_NOTIFICATION_LINK = "/dashboard/client/payments"
