import json
import logging
import os
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, request

from ..core.errors import WebhookSignatureError
from ..core.webhook import SIGNATURE_HEADER, construct_event

log = logging.getLogger(__name__)


def create_app(secret: Optional[str] = None) -> Flask:
    """Build the webhook receiver.

    Args:
        secret: The webhook signing secret. Defaults to $PINGEN_WEBHOOK_SECRET.
    """
    if secret is None:
        load_dotenv()

    app = Flask(__name__)
    app.config["WEBHOOK_SECRET"] = secret or os.getenv("PINGEN_WEBHOOK_SECRET", "").strip()

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.post("/webhooks/pingen")
    def pingen_webhook():
        webhook_secret = app.config["WEBHOOK_SECRET"]
        if not webhook_secret:
            log.error("Webhook received but no signing secret is configured")
            return jsonify({"error": "webhook secret not configured"}), 500

        # Verify against the raw body, not a re-serialized JSON document
        payload = request.get_data()
        headers = {}
        signature = request.headers.get(SIGNATURE_HEADER)
        if signature is not None:
            headers[SIGNATURE_HEADER] = signature

        try:
            event = construct_event(payload, headers, webhook_secret)
        except WebhookSignatureError as e:
            log.warning("Rejected webhook: %s", e)
            return jsonify({"error": e.message}), 400
        except UnicodeDecodeError:
            log.warning("Webhook payload is not valid UTF-8")
            return jsonify({"error": "payload is not valid UTF-8"}), 400

        try:
            document = event.json()
        except ValueError:
            log.warning("Webhook payload is not valid JSON: %s", event.payload[:200])
            return jsonify({"error": "invalid JSON payload"}), 400

        data = document.get("data") if isinstance(document, dict) else None
        event_type = data.get("type") if isinstance(data, dict) else None
        log.info("Webhook received: %s", json.dumps(document)[:500])
        return jsonify({"received": True, "type": event_type})

    return app


if __name__ == "__main__":
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    port = int(os.getenv("SERVER_PORT", "8080"))
    create_app().run(host="0.0.0.0", port=port)
