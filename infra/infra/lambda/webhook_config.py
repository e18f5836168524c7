"""
Runtime settings for the webhook handler.

Read from the environment on every invocation so a single container
picks up configuration changes made by a redeploy.
"""
import logging
import os
from dataclasses import dataclass

import boto3
from botocore.exceptions import ClientError

from signature import DEFAULT_TOLERANCE
from webhook_errors import Misconfigured

logger = logging.getLogger()

ACK_MESSAGE_VERSIONS = ("v1", "v2")

_secrets_client = None
_secret_cache: dict[str, str] = {}


@dataclass(frozen=True)
class WebhookConfig:
    signing_secret: str = ""
    tolerance: int = DEFAULT_TOLERANCE
    ack_message_version: str = "v1"

    @property
    def verify_signatures(self) -> bool:
        return bool(self.signing_secret)


def get_secrets_client():
    global _secrets_client
    if _secrets_client is None:
        _secrets_client = boto3.client("secretsmanager")
    return _secrets_client


def fetch_secret(secret_arn: str) -> str:
    """Read the signing secret from Secrets Manager, cached per ARN."""
    if secret_arn in _secret_cache:
        return _secret_cache[secret_arn]

    try:
        resp = get_secrets_client().get_secret_value(SecretId=secret_arn)
    except ClientError as e:
        code = e.response["Error"]["Code"]
        logger.error(f"Secrets Manager error ({code}) for {secret_arn}")
        raise Misconfigured(f"cannot read signing secret ({code})") from e

    secret = resp.get("SecretString") or ""
    if not secret:
        raise Misconfigured("signing secret is empty")
    _secret_cache[secret_arn] = secret
    return secret


def load_config(environ=None) -> WebhookConfig:
    env = os.environ if environ is None else environ

    version = env.get("ACK_MESSAGE_VERSION", "v1").strip() or "v1"
    if version not in ACK_MESSAGE_VERSIONS:
        raise Misconfigured(f"unknown ACK_MESSAGE_VERSION {version!r}")

    raw_tolerance = env.get("SIGNATURE_TOLERANCE_SECONDS", "").strip()
    try:
        tolerance = int(raw_tolerance) if raw_tolerance else DEFAULT_TOLERANCE
    except ValueError:
        raise Misconfigured(f"SIGNATURE_TOLERANCE_SECONDS must be an integer, got {raw_tolerance!r}")
    if tolerance < 0:
        raise Misconfigured("SIGNATURE_TOLERANCE_SECONDS must not be negative")

    secret = env.get("STRIPE_WEBHOOK_SECRET", "")
    secret_arn = env.get("STRIPE_WEBHOOK_SECRET_ARN", "")
    if not secret and secret_arn:
        secret = fetch_secret(secret_arn)

    return WebhookConfig(
        signing_secret=secret,
        tolerance=tolerance,
        ack_message_version=version,
    )
