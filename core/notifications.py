# core/notifications.py
import requests

from core.config import settings
from core.logging_config import logger


# -----------------------------------------------------
# 📨 Send webhook (Discord, Slack, etc.)
# -----------------------------------------------------
def send_webhook_message(message: str, webhook_url: str = None) -> bool:
    """
    Post a plain-text message to the report webhook.
    Returns True when the webhook accepted it. Delivery failures are logged,
    never raised: a missed notification must not fail the caller.
    """
    webhook_url = webhook_url or settings.REPORT_WEBHOOK_URL
    if not webhook_url:
        logger.debug("Webhook URL not configured — skipping.")
        return False

    try:
        response = requests.post(
            webhook_url,
            json={"content": message},
            timeout=settings.API_TIMEOUT_SECONDS,
        )
        logger.info(f"Webhook sent (status {response.status_code})")
        return response.ok
    except requests.RequestException as e:
        logger.warning(f"Webhook failed: {e}")
        return False
