"""Data models for DevOps pull request review."""

from .file_change import ChangeEntry, ChangeType, FileChangeDetail
from .pull_request import DevOpsServiceConfig, FilterConfig, PullRequestCoordinates

__all__ = [
    # File change models
    "ChangeType",
    "ChangeEntry",
    "FileChangeDetail",
    # Pull request models
    "PullRequestCoordinates",
    "FilterConfig",
    "DevOpsServiceConfig",
]
