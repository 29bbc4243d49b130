"""Centralized configuration and policy logging for anthocheck runs.

These helpers log decisions for debugging and troubleshooting; they do not
overlap with the progress reporter, which is for end-user feedback only.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from anthocheck.model.options import CheckOptions

logger = logging.getLogger(__name__)


def log_check_configuration(options: CheckOptions) -> None:
    """Log the effective check configuration."""
    logger.info("Check configuration:")
    logger.info("  Orphan policy: %s", options.orphans.value)
    logger.info("  Require sections: %s", "yes" if options.require_sections else "no")
    logger.info("  Authors index: %s", options.authors_index)
    if options.unlisted:
        logger.info("  Unlisted documents: %s", ", ".join(options.unlisted))
    logger.info("  Workers: %d", options.workers)
    logger.info("  Author similarity threshold: %.2f", options.similarity)


def log_policy_decision(policy: str, decision: str, context: dict[str, Any] | None = None) -> None:
    """Log a policy decision such as how an orphan or a typo was treated."""
    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items())
        logger.info("%s: %s (%s)", policy, decision, context_str)
    else:
        logger.info("%s: %s", policy, decision)


def log_error_policy(stage: str, error_type: str, action: str, details: str | None = None) -> None:
    """Log how a failure was handled (e.g. skip the file and continue)."""
    if details:
        logger.warning("%s error policy: %s -> %s (%s)", stage, error_type, action, details)
    else:
        logger.warning("%s error policy: %s -> %s", stage, error_type, action)


__all__ = ["log_check_configuration", "log_error_policy", "log_policy_decision"]
