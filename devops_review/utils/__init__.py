"""
Utility modules for DevOps pull request review.
"""

from devops_review.utils.logging import (
    get_logger,
    setup_logging,
    log_api_call,
    log_error_with_context,
)
from devops_review.utils.resilience import retry_with_backoff

__all__ = [
    "get_logger",
    "setup_logging",
    "log_api_call",
    "log_error_with_context",
    "retry_with_backoff",
]
