import logging
import os
import sys

from entitlement_gate.rules.models import Rules

logger = logging.getLogger(__name__)

WEBHOOK_SECRET_ENV = "DODO_PAYMENTS_WEBHOOK_KEY"


def validate_ops_rules(rules: Rules) -> None:
    """
    Validate operational requirements before startup.
    """
    ops = rules.ops

    # 1. Check Required Env
    missing = [env_var for env_var in ops.required_env if not os.environ.get(env_var)]
    if missing:
        logger.critical(f"Missing required environment variables: {', '.join(missing)}")
        sys.exit(1)

    # 2. Webhooks are refused until the secret is set
    if not os.environ.get(WEBHOOK_SECRET_ENV):
        logger.warning(f"{WEBHOOK_SECRET_ENV} is not set; every webhook will be rejected")

    logger.info("Configuration validated")
