"""
Azure DevOps adapter.

Resolves pull request changes from the latest iteration, fetches blobs by
object id and posts review comments as pull request threads, using the
Azure DevOps Python SDK.
"""

import asyncio
from typing import Any, List, Optional, Union

from azure.devops.connection import Connection
from azure.devops.v7_1.git import GitClient
from azure.devops.v7_1.git.models import Comment, GitPullRequestCommentThread
from msrest.authentication import BasicAuthentication

from devops_review.models.file_change import ChangeEntry, ChangeType
from devops_review.models.pull_request import PullRequestCoordinates
from devops_review.services.base_devops import BaseDevOpsService
from devops_review.services.diff_renderer import DiffRenderer, render_added
from devops_review.services.errors import CommentPostError, ResolutionError, is_permission_error


# VersionControlChangeType bit flags
CHANGE_FLAG_ADD = 1
CHANGE_FLAG_EDIT = 2
CHANGE_FLAG_ENCODING = 4
CHANGE_FLAG_RENAME = 8
CHANGE_FLAG_DELETE = 16

_CHANGE_FLAG_NAMES = {
    "add": CHANGE_FLAG_ADD,
    "edit": CHANGE_FLAG_EDIT,
    "encoding": CHANGE_FLAG_ENCODING,
    "rename": CHANGE_FLAG_RENAME,
    "delete": CHANGE_FLAG_DELETE,
}

COMMENT_TYPE_TEXT = 1
THREAD_STATUS_ACTIVE = 1


def map_change_type(azure_change_type: Union[int, str, None]) -> ChangeType:
    """
    Map an Azure DevOps change type to ChangeType.

    The SDK reports either the numeric flag value or its comma separated
    names (``"rename, edit"``). Delete wins over add, add over edit, and a
    rename only counts as a rename when no content edit accompanies it.
    """
    if azure_change_type is None:
        return ChangeType.UNKNOWN

    if isinstance(azure_change_type, int):
        flags = azure_change_type
    else:
        flags = 0
        for name in str(azure_change_type).replace('|', ',').split(','):
            name = name.strip().lower()
            if name.isdigit():
                flags |= int(name)
            else:
                flags |= _CHANGE_FLAG_NAMES.get(name, 0)

    if flags & CHANGE_FLAG_DELETE:
        return ChangeType.DELETE
    if flags & CHANGE_FLAG_ADD:
        return ChangeType.ADD
    if flags & CHANGE_FLAG_EDIT:
        return ChangeType.EDIT
    if flags & CHANGE_FLAG_RENAME:
        return ChangeType.RENAME
    return ChangeType.UNKNOWN


def _item_field(item: Any, key: str, attr: str) -> Optional[str]:
    # The SDK leaves change items as plain dicts
    if item is None:
        return None
    if isinstance(item, dict):
        return item.get(key)
    return getattr(item, attr, None)


class AzureDevOpsService(BaseDevOpsService):
    """Adapter for Azure DevOps Services and Server."""

    provider_name = "Azure DevOps"
    service_key = "azure_devops"

    def __init__(
        self,
        access_token: Optional[str],
        organization_url: Optional[str],
        max_retries: int = 1,
        diff_renderer: Optional[DiffRenderer] = None,
    ):
        super().__init__(access_token, organization_url, max_retries, diff_renderer)

        credentials = BasicAuthentication('', self.access_token)
        self.connection = Connection(base_url=self.organization_url, creds=credentials)
        self.git_client: GitClient = self.connection.clients.get_git_client()

        self.logger.info(f"AzureDevOpsService initialized for organization: {self.organization_url}")

    async def _resolve_changes(
        self, coordinates: PullRequestCoordinates
    ) -> Optional[List[ChangeEntry]]:
        project = coordinates.project_name or None

        pr = await self._call_sdk(
            self.git_client.get_pull_request,
            repository_id=coordinates.repository_id,
            pull_request_id=coordinates.pull_request_id,
            project=project,
        )
        if not pr or not pr.last_merge_source_commit or not pr.last_merge_target_commit:
            raise ResolutionError("Unable to get Pull Request information")

        iterations = await self._call_sdk(
            self.git_client.get_pull_request_iterations,
            repository_id=coordinates.repository_id,
            pull_request_id=coordinates.pull_request_id,
            project=project,
        )
        if not iterations:
            self.logger.info("No PR iterations found")
            return None

        latest_iteration = iterations[-1]
        if latest_iteration is None or latest_iteration.id is None:
            self.logger.info("Unable to get latest PR iteration")
            return None

        change_entries = await self._get_iteration_changes(coordinates, latest_iteration.id)
        if not change_entries:
            self.logger.info("No code changes detected")
            return None

        return [self._to_change_entry(change) for change in change_entries]

    async def _get_iteration_changes(self, coordinates: PullRequestCoordinates, iteration_id: int) -> list:
        """Collect every change entry of an iteration, following skip paging."""
        entries: list = []
        skip = None
        while True:
            changes = await self._call_sdk(
                self.git_client.get_pull_request_iteration_changes,
                repository_id=coordinates.repository_id,
                pull_request_id=coordinates.pull_request_id,
                iteration_id=iteration_id,
                project=coordinates.project_name or None,
                skip=skip,
            )
            if changes is None:
                break
            entries.extend(changes.change_entries or [])

            next_skip = getattr(changes, 'next_skip', None)
            if not isinstance(next_skip, int) or next_skip <= 0 or next_skip == skip:
                break
            skip = next_skip
        return entries

    def _to_change_entry(self, change: Any) -> ChangeEntry:
        item = change.item
        return ChangeEntry(
            path=_item_field(item, 'path', 'path') or '',
            change_type=map_change_type(change.change_type),
            object_id=_item_field(item, 'objectId', 'object_id'),
            original_object_id=_item_field(item, 'originalObjectId', 'original_object_id'),
        )

    async def _render_change(
        self,
        coordinates: PullRequestCoordinates,
        entry: ChangeEntry,
        enable_throttle_mode: bool,
    ) -> str:
        if entry.change_type not in (ChangeType.ADD, ChangeType.EDIT):
            return ''

        source_content = await self.get_file_content(coordinates, entry.object_id)

        if entry.change_type == ChangeType.ADD:
            content = render_added(source_content) if enable_throttle_mode else source_content
            self._log_processed_file(entry.path, entry.change_type, enable_throttle_mode)
            return content

        if enable_throttle_mode and entry.original_object_id:
            target_content = await self.get_file_content(coordinates, entry.original_object_id)
            content = await self.diff_renderer.render_diff(source_content, target_content)
            self._log_processed_file(entry.path, entry.change_type, True)
            return content

        self._log_processed_file(entry.path, entry.change_type, False)
        return source_content

    async def get_file_content(self, coordinates: PullRequestCoordinates, object_id: Optional[str]) -> str:
        """
        Download a blob by object id and decode it as UTF-8.

        A response that is not a byte stream yields an empty string.
        """
        if not object_id:
            raise ResolutionError("Change entry has no object id")

        blob = await self._call_sdk(
            self.git_client.get_blob_content,
            repository_id=coordinates.repository_id,
            sha1=object_id,
            project=coordinates.project_name or None,
            download=True,
        )
        return await self._read_stream_content(blob)

    async def _read_stream_content(self, blob: Any) -> str:
        if blob is None or isinstance(blob, str):
            return ''
        if isinstance(blob, (bytes, bytearray)):
            return bytes(blob).decode('utf-8', errors='replace')
        if not hasattr(blob, '__iter__'):
            return ''

        chunks = await asyncio.to_thread(list, blob)
        return b''.join(chunks).decode('utf-8', errors='replace')

    async def _create_comment(self, coordinates: PullRequestCoordinates, body: str) -> int:
        thread = GitPullRequestCommentThread(
            comments=[Comment(parent_comment_id=0, content=body, comment_type=COMMENT_TYPE_TEXT)],
            status=THREAD_STATUS_ACTIVE,
        )

        try:
            created = await self._call_sdk(
                self.git_client.create_thread,
                comment_thread=thread,
                repository_id=coordinates.repository_id,
                pull_request_id=coordinates.pull_request_id,
                project=coordinates.project_name or None,
            )
        except Exception as e:
            self.logger.error(f"Error adding comment: {e}")
            raise CommentPostError(
                f"Failed to create comment thread: {e}",
                permission_denied=is_permission_error(e),
            ) from e

        if not created or not created.id:
            raise CommentPostError("Failed to create comment thread")
        return created.id
