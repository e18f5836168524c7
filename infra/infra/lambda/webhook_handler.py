"""
Webhook handler - receives a Stripe event through the AppSync resolver
(or any HTTP-shaped front door), extracts data.object and acknowledges it.

Input event, either of:
{
  "body": "<json text>",
  "headers": {"Stripe-Signature": "t=...,v1=..."},
  "isBase64Encoded": false
}
{
  "arguments": {"body": "<json text>", "signature": "t=...,v1=..."}
}
"""
import base64
import binascii
import json
import logging
import os

from event_recorder import LoggingRecorder, Recorder
from signature import SignatureVerificationError, verify_signature
from webhook_config import WebhookConfig, load_config
from webhook_errors import MalformedPayload, Unauthenticated, WebhookError

logger = logging.getLogger()
logger.setLevel(logging.INFO)

ACK_PREFIX = "✅ Webhook received successfully!. Data: "
# v1 keeps the placeholder text earlier clients already match on
LEGACY_PLACEHOLDER = "${eventData}"

SIGNATURE_HEADER = "stripe-signature"


def _response(status_code: int, payload: dict) -> dict:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(payload),
    }


def _safe_record(recorder: Recorder, level: int, message: str) -> None:
    try:
        recorder.record(level, message)
    except Exception as e:
        logger.warning(f"Recorder failed, dropping record: {e}")


def _dump(value) -> str:
    try:
        return json.dumps(value, default=str)
    except ValueError:
        return repr(value)


def _unwrap(event) -> tuple:
    """Return (body, signature header, is_base64) from either envelope shape."""
    if not isinstance(event, dict):
        return None, None, False

    args = event.get("arguments")
    if "body" not in event and isinstance(args, dict):
        return args.get("body"), args.get("signature"), False

    raw_headers = event.get("headers")
    if not isinstance(raw_headers, dict):
        raw_headers = {}
    headers = {str(k).lower(): v for k, v in raw_headers.items()}
    return event.get("body"), headers.get(SIGNATURE_HEADER), bool(event.get("isBase64Encoded"))


def _raw_body(body, is_base64: bool) -> str:
    if body is None:
        raise MalformedPayload("body is missing")
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedPayload(f"body is not UTF-8: {e}")
    if not isinstance(body, str):
        raise MalformedPayload(f"body must be a string, got {type(body).__name__}")

    if is_base64:
        try:
            return base64.b64decode(body, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise MalformedPayload(f"body is not valid base64: {e}")
    return body


def parse_body(raw: str):
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedPayload(str(e))
    except RecursionError:
        raise MalformedPayload("body nests too deeply")


def extract_object(document):
    """Lenient data.object lookup: any non-object along the path yields None."""
    data = document.get("data") if isinstance(document, dict) else None
    return data.get("object") if isinstance(data, dict) else None


def ack_message(event_data, version: str) -> str:
    if version == "v1":
        return ACK_PREFIX + LEGACY_PLACEHOLDER
    return ACK_PREFIX + _dump(event_data)


def _process(event, config: WebhookConfig, recorder: Recorder) -> dict:
    body, sig_header, is_base64 = _unwrap(event)
    raw = _raw_body(body, is_base64)

    if config.verify_signatures:
        try:
            verify_signature(raw, sig_header, config.signing_secret, tolerance=config.tolerance)
        except SignatureVerificationError as e:
            raise Unauthenticated(str(e))

    document = parse_body(raw)
    event_data = extract_object(document)
    if isinstance(document, dict):
        _safe_record(recorder, logging.DEBUG, f"Event id={document.get('id')} type={document.get('type')}")

    outcome = "acknowledged"
    if event_data is None:
        outcome = "no_op"
        _safe_record(recorder, logging.WARNING, "⚠️ Event has no data.object, acknowledging as no-op")

    message = ack_message(event_data, config.ack_message_version)
    _safe_record(recorder, logging.INFO, message)
    return _response(200, {"message": message, "outcome": outcome})


def handle_event(event, recorder: Recorder, config: WebhookConfig | None = None) -> dict:
    """Turn one envelope into exactly one acknowledgment or rejection."""
    _safe_record(recorder, logging.INFO, f"🎫 Raw Event: {_dump(event)}")
    try:
        if config is None:
            config = load_config()
        return _process(event, config, recorder)
    except WebhookError as e:
        level = logging.WARNING if isinstance(e, Unauthenticated) else logging.ERROR
        _safe_record(recorder, level, e.message())
        return _response(e.status_code, {"message": e.message()})


def _configure_logging() -> None:
    level = logging.getLevelName(os.environ.get("LOG_LEVEL", "INFO").upper())
    logger.setLevel(level if isinstance(level, int) else logging.INFO)


def handler(event, context):
    _configure_logging()
    return handle_event(event, LoggingRecorder(logger))
