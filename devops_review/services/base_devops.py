"""
Base class shared by the DevOps provider adapters.

The change retrieval algorithm is the same for every provider:

1. Resolve the pull request's changed paths (provider specific).
2. Drop deletions, malformed entries and files rejected by the extension
   filters.
3. Fetch and render every remaining file concurrently, isolating per-file
   failures behind a sentinel content string.

Subclasses supply change resolution, per-file rendering and comment
creation.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, List, Optional, TypeVar

from pydantic import ValidationError

from devops_review.models.file_change import ChangeEntry, ChangeType, FileChangeDetail
from devops_review.models.pull_request import FilterConfig, PullRequestCoordinates
from devops_review.services.diff_renderer import DiffRenderer
from devops_review.services.errors import ConfigurationError, is_permanent_error
from devops_review.services.file_filter import (
    ensure_binary_extensions,
    normalize_extensions,
    should_include_file,
)
from devops_review.utils.logging import get_logger, log_api_call, log_error_with_context
from devops_review.utils.resilience import retry_with_backoff


logger = get_logger(__name__)

T = TypeVar('T')

UNAVAILABLE_CONTENT = "Unable to get PR change content"


class BaseDevOpsService(ABC):
    """Common behaviour for Azure DevOps and GitHub adapters."""

    provider_name: str = "DevOps"
    service_key: str = "devops"

    def __init__(
        self,
        access_token: Optional[str],
        organization_url: Optional[str],
        max_retries: int = 1,
        diff_renderer: Optional[DiffRenderer] = None,
    ):
        """
        Args:
            access_token: Personal access token for the provider
            organization_url: Organization or API base URL
            max_retries: Attempts per SDK call (1 disables retrying)
            diff_renderer: Renderer used for throttle-mode diffs

        Raises:
            ConfigurationError: If the token or URL is missing
        """
        if not access_token or not access_token.strip():
            raise ConfigurationError("Access token is missing")
        if not organization_url or not organization_url.strip():
            raise ConfigurationError("Organization URL is missing")

        self.access_token = access_token
        self.organization_url = organization_url
        self.max_retries = max_retries
        self.diff_renderer = diff_renderer or DiffRenderer()
        self.logger = logger.with_context(provider=self.provider_name)

    async def get_pull_request_changes(
        self,
        project_name: str,
        repository_id: str,
        pull_request_id: int,
        file_extensions: Optional[Iterable[str]] = None,
        binary_extensions: Optional[Iterable[str]] = None,
        enable_throttle_mode: bool = True,
        max_concurrency: Optional[int] = None,
    ) -> Optional[List[FileChangeDetail]]:
        """
        Retrieve the reviewable changes of a pull request.

        Args:
            project_name: Project containing the repository (unused by GitHub)
            repository_id: Provider shaped repository identifier
            pull_request_id: Pull request number
            file_extensions: Extensions to include; empty includes all non-binary files
            binary_extensions: Extensions to exclude; empty uses the built-in list
            enable_throttle_mode: Send diffs only instead of full file content
            max_concurrency: Upper bound on concurrent file fetches (None = unbounded)

        Returns:
            One FileChangeDetail per reviewable file, or None when there is
            nothing to review. Order is not guaranteed.
        """
        filters = FilterConfig(
            file_extensions=normalize_extensions(file_extensions),
            binary_extensions=ensure_binary_extensions(binary_extensions),
        )
        coordinates = self._build_coordinates(project_name, repository_id, pull_request_id)
        log = self.logger.with_context(
            project_name=coordinates.project_name,
            repository_id=coordinates.repository_id,
            pr_id=coordinates.pull_request_id,
        )
        self._log_retrieving_changes_start(log, filters, enable_throttle_mode)

        entries = await self._resolve_changes(coordinates)
        if not entries:
            log.info("No matching code changes detected")
            return None

        filtered = self._filter_entries(log, entries, filters)
        if not filtered:
            log.info("No matching code changes detected")
            return None

        semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None
        details = await asyncio.gather(*[
            self._get_change_detail(log, coordinates, entry, enable_throttle_mode, semaphore)
            for entry in filtered
        ])

        if enable_throttle_mode:
            log.info(f"Completed diff comparison for {len(details)} matching files")
        else:
            log.info(f"Retrieved full content for {len(details)} matching files")
        return list(details)

    async def add_pull_request_comment(
        self,
        project_name: str,
        repository_id: str,
        pull_request_id: int,
        content: str,
        comment_header: str = "",
    ) -> int:
        """
        Post a top-level comment on a pull request.

        The body is ``"# {comment_header}\\n{content}"`` when a header is
        given, else ``content``.

        Returns:
            Identifier of the created comment or thread

        Raises:
            CommentPostError: If the provider rejects the comment
        """
        coordinates = self._build_coordinates(project_name, repository_id, pull_request_id)
        log = self.logger.with_context(
            repository_id=coordinates.repository_id,
            pr_id=coordinates.pull_request_id,
        )
        log.info("Adding Pull Request comment...")

        body = f"# {comment_header}\n{content}" if comment_header else content
        comment_id = await self._create_comment(coordinates, body)

        log.info(f"Successfully added comment, ID: {comment_id}")
        return comment_id

    @abstractmethod
    async def _resolve_changes(
        self, coordinates: PullRequestCoordinates
    ) -> Optional[List[ChangeEntry]]:
        """Return the changed entries of the latest pull request state, or None."""

    @abstractmethod
    async def _render_change(
        self,
        coordinates: PullRequestCoordinates,
        entry: ChangeEntry,
        enable_throttle_mode: bool,
    ) -> str:
        """Fetch and render the review content for one entry."""

    @abstractmethod
    async def _create_comment(self, coordinates: PullRequestCoordinates, body: str) -> int:
        """Create the comment and return its identifier."""

    def _build_coordinates(
        self,
        project_name: Optional[str],
        repository_id: Optional[str],
        pull_request_id: Optional[int],
    ) -> PullRequestCoordinates:
        if not repository_id:
            raise ConfigurationError("Repository ID is missing")
        if pull_request_id is None:
            raise ConfigurationError("Pull request ID is missing")

        try:
            coordinates = PullRequestCoordinates(
                project_name=project_name or "",
                repository_id=repository_id,
                pull_request_id=pull_request_id,
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid pull request coordinates: {e}") from e

        self._validate_coordinates(coordinates)
        return coordinates

    def _validate_coordinates(self, coordinates: PullRequestCoordinates) -> None:
        if not coordinates.repository_id:
            raise ConfigurationError("Repository ID is missing")
        if coordinates.pull_request_id <= 0:
            raise ConfigurationError("Pull request ID is missing")

    def _filter_entries(
        self,
        log,
        entries: List[ChangeEntry],
        filters: FilterConfig,
    ) -> List[ChangeEntry]:
        filtered = [
            entry for entry in entries
            if entry.change_type != ChangeType.DELETE
            and entry.path
            and should_include_file(entry.path, filters.file_extensions, filters.binary_extensions)
        ]

        log.info(
            f"Total changed files: {len(entries)}, after filtering, "
            f"{len(filtered)} file changes remaining"
        )
        if filtered:
            log.info(f"Files to be processed: {', '.join(entry.path for entry in filtered)}")
        return filtered

    async def _get_change_detail(
        self,
        log,
        coordinates: PullRequestCoordinates,
        entry: ChangeEntry,
        enable_throttle_mode: bool,
        semaphore: Optional[asyncio.Semaphore] = None,
    ) -> FileChangeDetail:
        error = None
        try:
            if semaphore is not None:
                async with semaphore:
                    content = await self._render_change(coordinates, entry, enable_throttle_mode)
            else:
                content = await self._render_change(coordinates, entry, enable_throttle_mode)
        except Exception as e:
            log_error_with_context(log, f"Error getting changes for {entry.path}", e, file_path=entry.path)
            content = UNAVAILABLE_CONTENT
            error = str(e) or type(e).__name__

        return FileChangeDetail(
            path=entry.path,
            change_type=entry.change_type,
            content=content,
            error=error,
        )

    async def _call_sdk(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """
        Run a blocking SDK call in a worker thread.

        Each call is retried up to ``max_retries`` attempts unless the
        error is permanent, and logged with its duration.
        """
        @retry_with_backoff(max_retries=self.max_retries, is_permanent=is_permanent_error)
        async def _execute() -> T:
            return await asyncio.to_thread(func, *args, **kwargs)

        endpoint = getattr(func, "__name__", repr(func))
        start_time = time.time()
        try:
            result = await _execute()
        except Exception as e:
            log_api_call(
                self.logger,
                service=self.service_key,
                endpoint=endpoint,
                duration_ms=(time.time() - start_time) * 1000,
                error=str(e),
            )
            raise

        log_api_call(
            self.logger,
            service=self.service_key,
            endpoint=endpoint,
            duration_ms=(time.time() - start_time) * 1000,
        )
        return result

    def _log_retrieving_changes_start(self, log, filters: FilterConfig, enable_throttle_mode: bool) -> None:
        log.info(
            "Retrieving Pull Request changes...",
            extra={
                "file_extensions": filters.file_extensions or "None (all non-binary files)",
                "binary_extensions": filters.binary_extensions,
                "throttle_mode": "Enabled (diff only)" if enable_throttle_mode else "Disabled (full content)",
            },
        )

    def _log_processed_file(self, path: str, change_type: ChangeType, enable_throttle_mode: bool) -> None:
        label = "new" if change_type == ChangeType.ADD else "edited"
        kind = "diff" if enable_throttle_mode else "full"
        self.logger.info(f"Retrieved {kind} content for {label} file: {path}", extra={"file_path": path})
