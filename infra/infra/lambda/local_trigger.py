import json
import os

from signature import sign_payload
from webhook_handler import handler

# Local test trigger: signs a sample Stripe event with STRIPE_WEBHOOK_SECRET when it is set
payload = json.dumps({
    "id": "evt_local_1",
    "type": "payment_intent.succeeded",
    "data": {"object": {"id": "pi_local_1", "amount": 1200, "currency": "jpy"}},
})

event = {"body": payload, "headers": {}}
secret = os.environ.get("STRIPE_WEBHOOK_SECRET", "")
if secret:
    event["headers"]["Stripe-Signature"] = sign_payload(payload, secret)

print(handler(event, None))

# AppSync resolver shape
print(handler({"arguments": {"body": payload, "signature": event["headers"].get("Stripe-Signature")}}, None))
