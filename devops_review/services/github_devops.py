"""
GitHub adapter.

Resolves pull request changes from the paginated file listing, whose
entries carry an inline ``patch`` fragment, and posts review comments as
issue comments on the pull request, using PyGithub.
"""

import base64
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from github import Auth, Github, GithubException

from devops_review.models.file_change import ChangeEntry, ChangeType
from devops_review.models.pull_request import PullRequestCoordinates
from devops_review.services.base_devops import BaseDevOpsService
from devops_review.services.diff_renderer import DiffRenderer, reduce_diff_output, render_added
from devops_review.services.errors import (
    CommentPostError,
    ConfigurationError,
    ResolutionError,
    is_permission_error,
)


PUBLIC_API_HOSTS = ("github.com", "api.github.com")

_STATUS_MAP = {
    "added": ChangeType.ADD,
    "modified": ChangeType.EDIT,
    "changed": ChangeType.EDIT,
    "removed": ChangeType.DELETE,
    "renamed": ChangeType.RENAME,
}


def map_change_type(status: Optional[str], has_patch: bool = False) -> ChangeType:
    """
    Map a GitHub file status to ChangeType.

    A rename that carries a patch also changed content and maps to EDIT.
    """
    change_type = _STATUS_MAP.get((status or "").lower(), ChangeType.UNKNOWN)
    if change_type == ChangeType.RENAME and has_patch:
        return ChangeType.EDIT
    return change_type


def resolve_base_url(organization_url: Optional[str]) -> Optional[str]:
    """
    API base URL for an organization URL, or None for the public API.

    Only non github.com hosts (GitHub Enterprise) override the default.
    """
    if not organization_url:
        return None
    trimmed = organization_url.strip().rstrip('/')
    parsed = urlparse(trimmed)
    if not parsed.scheme or not parsed.hostname:
        return trimmed
    if parsed.hostname.lower() in PUBLIC_API_HOSTS:
        return None
    return trimmed


def parse_owner_repo(repository_id: str) -> str:
    """Validate an ``owner/repo`` repository id and return it normalised."""
    parts = [part for part in (repository_id or "").strip().strip('/').split('/')]
    if len(parts) < 2 or not all(parts):
        raise ConfigurationError('For GitHub provider repositoryId must be "owner/repo"')
    return '/'.join(parts)


def list_pull_files(pull) -> list:
    """Every changed file of a pull request; iterating walks all pages."""
    return list(pull.get_files())


class GitHubDevOpsService(BaseDevOpsService):
    """
    Adapter for github.com and GitHub Enterprise.

    In throttle mode an edited file is rendered from its inline patch, while
    an added file is fetched and rendered with ``"+ "`` prefixes so both
    adapters produce the same shape for new files.
    """

    provider_name = "GitHub"
    service_key = "github"

    def __init__(
        self,
        access_token: Optional[str],
        organization_url: Optional[str],
        max_retries: int = 1,
        diff_renderer: Optional[DiffRenderer] = None,
    ):
        super().__init__(access_token, organization_url, max_retries, diff_renderer)

        kwargs: Dict[str, Any] = {"auth": Auth.Token(self.access_token)}
        base_url = resolve_base_url(self.organization_url)
        if base_url:
            kwargs["base_url"] = base_url
        self.client = Github(**kwargs)
        self._repositories: Dict[str, Any] = {}

        self.logger.info(f"GitHubDevOpsService initialized for {base_url or 'api.github.com'}")

    def _validate_coordinates(self, coordinates: PullRequestCoordinates) -> None:
        super()._validate_coordinates(coordinates)
        parse_owner_repo(coordinates.repository_id)

    async def _get_repo(self, repository_id: str):
        full_name = parse_owner_repo(repository_id)
        if full_name not in self._repositories:
            self._repositories[full_name] = await self._call_sdk(self.client.get_repo, full_name)
        return self._repositories[full_name]

    async def _get_pull(self, coordinates: PullRequestCoordinates):
        repo = await self._get_repo(coordinates.repository_id)
        return await self._call_sdk(repo.get_pull, coordinates.pull_request_id)

    async def _resolve_changes(
        self, coordinates: PullRequestCoordinates
    ) -> Optional[List[ChangeEntry]]:
        pull = await self._get_pull(coordinates)

        head_sha = getattr(getattr(pull, "head", None), "sha", None)
        if not head_sha:
            raise ResolutionError("Unable to get Pull Request head commit")

        files = await self._call_sdk(list_pull_files, pull)
        if not files:
            self.logger.info("No code changes detected")
            return None

        return [
            ChangeEntry(
                path=f.filename or '',
                change_type=map_change_type(f.status, bool(f.patch)),
                object_id=head_sha,
                patch=f.patch or None,
            )
            for f in files
        ]

    async def _render_change(
        self,
        coordinates: PullRequestCoordinates,
        entry: ChangeEntry,
        enable_throttle_mode: bool,
    ) -> str:
        if entry.change_type not in (ChangeType.ADD, ChangeType.EDIT):
            return ''

        if enable_throttle_mode and entry.change_type == ChangeType.EDIT and entry.patch:
            self._log_processed_file(entry.path, entry.change_type, True)
            return reduce_diff_output(entry.patch)

        content = await self.get_file_content(coordinates, entry.path, entry.object_id)
        self._log_processed_file(entry.path, entry.change_type, enable_throttle_mode)
        if enable_throttle_mode and entry.change_type == ChangeType.ADD:
            return render_added(content)
        return content

    async def get_file_content(self, coordinates: PullRequestCoordinates, path: str, ref: Optional[str]) -> str:
        """
        Fetch a file at ``ref`` and decode its base64 body.

        A directory listing is not file content and yields an empty string.
        """
        repo = await self._get_repo(coordinates.repository_id)
        if ref:
            data = await self._call_sdk(repo.get_contents, path, ref=ref)
        else:
            data = await self._call_sdk(repo.get_contents, path)
        if isinstance(data, list) or data is None:
            return ''

        encoded = getattr(data, "content", None)
        if not encoded:
            return ''
        return base64.b64decode(encoded).decode('utf-8', errors='replace')

    async def _create_comment(self, coordinates: PullRequestCoordinates, body: str) -> int:
        try:
            pull = await self._get_pull(coordinates)
            comment = await self._call_sdk(pull.create_issue_comment, body)
        except GithubException as e:
            self.logger.error(f"Error adding comment: {e}")
            raise CommentPostError(
                f"Failed to create GitHub comment: {e}",
                permission_denied=is_permission_error(e),
            ) from e

        comment_id = getattr(comment, "id", None)
        if comment_id is None:
            raise CommentPostError("Failed to create GitHub comment")
        return int(comment_id)
