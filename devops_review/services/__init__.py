"""DevOps provider services package."""

from devops_review.services.azure_devops import AzureDevOpsService
from devops_review.services.base_devops import UNAVAILABLE_CONTENT, BaseDevOpsService
from devops_review.services.devops_provider import DevOpsProviderService
from devops_review.services.diff_renderer import DiffRenderer, reduce_diff_output, render_added
from devops_review.services.errors import (
    CommentPostError,
    ConfigurationError,
    DevOpsServiceError,
    DiffToolError,
    NotRegisteredError,
    ResolutionError,
    UnsupportedProviderError,
)
from devops_review.services.file_filter import (
    DEFAULT_BINARY_EXTENSIONS,
    ensure_binary_extensions,
    should_include_file,
)
from devops_review.services.github_devops import GitHubDevOpsService

__all__ = [
    'AzureDevOpsService',
    'BaseDevOpsService',
    'DevOpsProviderService',
    'GitHubDevOpsService',
    'UNAVAILABLE_CONTENT',
    'DiffRenderer',
    'reduce_diff_output',
    'render_added',
    'DEFAULT_BINARY_EXTENSIONS',
    'ensure_binary_extensions',
    'should_include_file',
    'DevOpsServiceError',
    'ConfigurationError',
    'ResolutionError',
    'DiffToolError',
    'CommentPostError',
    'NotRegisteredError',
    'UnsupportedProviderError',
]
