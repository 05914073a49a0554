"""Best-effort HTTP callbacks.

Posts a per-quality status payload to the caller. Delivery is
fire-and-forget: one attempt, bounded timeout, result logged, never raised.

Callback Request:
    - Method: POST
    - Content-Type: application/json
    - X-Webhook-Timestamp: Unix timestamp (when a secret is configured)
    - X-Webhook-Signature: sha256=HMAC-SHA256(secret, timestamp + "." + body)
"""

import hashlib
import hmac
import time
import urllib.request
from typing import Any
from urllib.error import HTTPError, URLError

from aws_lambda_powertools import Logger

from ..shared.models import CallbackPayload

logger = Logger(service="callback-notifier")

DEFAULT_TIMEOUT_SECONDS = 30.0


def sign_payload(secret: str, timestamp: str, body: str) -> str:
    """HMAC-SHA256 over ``timestamp.body``."""
    message = f"{timestamp}.{body}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def send_callback(
    callback_url: str,
    payload: CallbackPayload,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    secret: str = "",
) -> dict[str, Any]:
    """POST a status payload to the callback URL.

    Args:
        callback_url: Destination URL
        payload: Per-quality status
        timeout: Request timeout in seconds
        secret: Optional HMAC secret for signing

    Returns:
        Dictionary with success status and response details
    """
    body = payload.to_json()

    headers = {
        "Content-Type": "application/json",
        "User-Agent": "HlsConverter/1.0",
    }
    if secret:
        timestamp = str(int(time.time()))
        headers["X-Webhook-Timestamp"] = timestamp
        headers["X-Webhook-Signature"] = f"sha256={sign_payload(secret, timestamp, body)}"

    logger.info(
        "Sending callback",
        extra={
            "callback_url": callback_url,
            "media_id": payload.media_id,
            "quality": payload.quality,
            "status": payload.status.value,
        },
    )

    try:
        request = urllib.request.Request(
            callback_url,
            data=body.encode("utf-8"),
            headers=headers,
            method="POST",
        )
        with urllib.request.urlopen(request, timeout=timeout) as response:
            status_code = response.status

        logger.info(
            "Callback delivered",
            extra={"callback_url": callback_url, "status_code": status_code},
        )
        return {"success": True, "status_code": status_code}

    except HTTPError as e:
        logger.error(
            "Callback failed with HTTP error",
            extra={"callback_url": callback_url, "status_code": e.code, "reason": str(e.reason)},
        )
        return {"success": False, "error": f"HTTP {e.code}: {e.reason}"}

    except URLError as e:
        logger.error(
            "Callback failed with URL error",
            extra={"callback_url": callback_url, "error": str(e.reason)},
        )
        return {"success": False, "error": str(e.reason)}

    except Exception as e:
        logger.error(
            "Callback failed",
            extra={"callback_url": callback_url, "error": str(e)},
        )
        return {"success": False, "error": str(e)}
