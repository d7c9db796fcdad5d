"""Verification of inbound Pingen webhooks.

Pingen signs each webhook delivery with an HMAC-SHA256 of the raw request
body, keyed by the webhook's signing secret, and sends the lowercase hex
digest in the ``Signature`` header.
"""

import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Union

from .errors import WebhookSignatureError, header_value

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "Signature"


@dataclass(frozen=True)
class WebhookEvent:
    """A webhook payload whose signature has been verified."""

    payload: str

    def json(self) -> Any:
        return json.loads(self.payload)


def compute_signature(payload: Union[str, bytes], secret: str) -> str:
    """Lowercase hex HMAC-SHA256 of the payload. Text is signed as UTF-8."""
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return hmac.new(
        secret.encode("utf-8"),
        payload,
        hashlib.sha256,
    ).hexdigest()


def verify_header(payload: Union[str, bytes], headers: Mapping[str, str], secret: str) -> None:
    """Check the Signature header of a webhook delivery.

    Raises:
        WebhookSignatureError: If the header is missing or does not match.
    """
    signature = header_value(headers, SIGNATURE_HEADER)
    if signature is None:
        logger.warning("Webhook rejected: signature missing")
        raise WebhookSignatureError("signature missing")

    expected = compute_signature(payload, secret)
    if not hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Webhook rejected: signature mismatch")
        raise WebhookSignatureError("webhook signature matching failed")


def construct_event(payload: Union[str, bytes], headers: Mapping[str, str], secret: str) -> WebhookEvent:
    """Verify a webhook delivery and wrap its payload.

    Raw bytes are verified as received and then decoded as UTF-8.

    Raises:
        WebhookSignatureError: If the signature is missing or does not match.
        UnicodeDecodeError: If a verified bytes payload is not valid UTF-8.
    """
    verify_header(payload, headers, secret)
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    return WebhookEvent(payload=payload)
