"""Fixed texts and defaults used by the automation workflows."""

from __future__ import annotations

SIBLING_REJECTION_REASON = "Another offer was accepted (Automation)"

# Fallbacks when the RFQ or forwarder profile leaves a field empty
DEFAULT_COUNTRY_CODE = "XX"
DEFAULT_CARRIER_NAME = "Forwarder"
DEFAULT_PACKAGE_COUNT = 1

# Delivery feedback request
FEEDBACK_SETTING_KEY = "delivery_feedback_enabled"
FEEDBACK_TITLE = "Your package has arrived!"
FEEDBACK_MESSAGE = "Confirm receipt and rate the service."
CLIENT_SHIPMENT_LINK = "/dashboard/client/shipments/{shipment_id}"

# Stale RFQ reminder
STALE_RFQ_TITLE = "Your request has no offers yet"
STALE_RFQ_MESSAGE = "Your RFQ {short_id} has not received any offers yet. Would you like to edit it?"
CLIENT_RFQ_LINK = "/dashboard/client/rfq/{rfq_id}"

# Queued emails
CLIENT_ACCEPTANCE_SUBJECT = "Offer acceptance confirmation - RFQ {short_id}"
CLIENT_ACCEPTANCE_BODY = """
<div style="font-family: sans-serif; padding: 20px;">
    <h2 style="color: #2563eb;">Offer accepted!</h2>
    <p>Hello,</p>
    <p>You accepted the transport offer from <strong>{carrier}</strong>.</p>
    <p><strong>Shipment details:</strong></p>
    <ul>
        <li>Tracking number: <strong>{tracking_number}</strong></li>
        <li>Amount: {amount} {currency}</li>
        <li>Estimated departure: {departure}</li>
    </ul>
    <p>Your shipment has been created and is awaiting payment.</p>
</div>
"""

FORWARDER_CONTRACT_SUBJECT = "New contract won - RFQ {short_id}"
FORWARDER_CONTRACT_BODY = """
<div style="font-family: sans-serif; padding: 20px;">
    <h2 style="color: #16a34a;">Congratulations!</h2>
    <p>Your offer was selected for the quote request.</p>
    <p>A new shipment file has been created: <strong>{tracking_number}</strong>.</p>
    <p>Please prepare the required documents.</p>
</div>
"""

FEEDBACK_SUBJECT = "Delivery completed - {tracking_number}"
FEEDBACK_BODY = """
<div style="font-family: sans-serif; padding: 20px;">
    <h2 style="color: #2563eb;">Your package has arrived!</h2>
    <p>We hope you are happy with your experience.</p>
    <p>Please take a moment to rate your forwarder.</p>
    <div style="margin-top: 20px;">
        <a href="{link}" style="background-color: #fbbf24; color: black; padding: 10px 20px; text-decoration: none; border-radius: 5px; font-weight: bold;">
           Leave a review
        </a>
    </div>
</div>
"""
