# core/config_validator.py

from typing import List
from core.config import settings
from core.logging_config import logger
from services.workflow import FulfillmentPolicy


def validate_required_config() -> List[str]:
    """
    Validate that all required environment variables are set.
    Returns list of missing required variables.
    """
    missing = []

    if not settings.SUPABASE_URL:
        missing.append("SUPABASE_URL")
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        missing.append("SUPABASE_SERVICE_ROLE_KEY")

    return missing


def validate_optional_config() -> List[str]:
    """
    Validate optional but recommended configuration.
    Returns list of warnings.
    """
    warnings = []

    if not settings.REPORT_WEBHOOK_URL:
        warnings.append("REPORT_WEBHOOK_URL (daily report will only be logged)")

    if settings.FULFILLMENT_POLICY not in FulfillmentPolicy.list():
        warnings.append(
            f"FULFILLMENT_POLICY={settings.FULFILLMENT_POLICY!r} is unknown, "
            f"falling back to '{FulfillmentPolicy.single_match}'"
        )

    return warnings


def validate_config_on_startup():
    """
    Validate configuration on application startup.
    Raises RuntimeError if critical config is missing.
    Logs warnings for optional config.
    """
    missing_required = validate_required_config()
    missing_optional = validate_optional_config()

    if missing_required:
        error_msg = f"Missing required environment variables: {', '.join(missing_required)}"
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    for warning in missing_optional:
        logger.warning(f"Optional configuration missing or invalid: {warning}")

    logger.info("Configuration validation passed")
