"""Errors the webhook handler turns into HTTP responses."""


class WebhookError(Exception):
    status_code = 500
    prefix = "❌ Webhook error"

    def message(self) -> str:
        return f"{self.prefix}: {self}"


class MalformedPayload(WebhookError):
    """Body is missing, undecodable or not valid JSON."""

    status_code = 400
    prefix = "❌ Error parsing event data"


class Unauthenticated(WebhookError):
    """Signature gate rejected the request."""

    status_code = 401
    prefix = "❌ Invalid webhook signature"


class Misconfigured(WebhookError):
    """Environment is invalid or the signing secret cannot be read."""

    status_code = 500
    prefix = "❌ Webhook handler misconfigured"
