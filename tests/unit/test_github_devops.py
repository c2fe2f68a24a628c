"""Unit tests for the GitHub adapter."""

import base64

import pytest
from unittest.mock import Mock, patch
from github import GithubException

from devops_review.models.file_change import ChangeType
from devops_review.services.base_devops import UNAVAILABLE_CONTENT
from devops_review.services.errors import CommentPostError, ConfigurationError, ResolutionError
from devops_review.services.github_devops import (
    GitHubDevOpsService,
    map_change_type,
    parse_owner_repo,
    resolve_base_url,
)


PATCH = "@@ -1,2 +1,2 @@\n line 1\n-line 2\n+line two"


def make_file(filename, status, patch=None):
    f = Mock()
    f.filename = filename
    f.status = status
    f.patch = patch
    return f


def encoded(text):
    return Mock(content=base64.b64encode(text.encode("utf-8")).decode("ascii"))


@pytest.fixture
def mock_repo():
    repo = Mock()
    pull = Mock()
    pull.head.sha = "headsha"
    repo.get_pull.return_value = pull
    repo.get_contents.side_effect = lambda path, ref=None: encoded(f"content of {path}")
    return repo


@pytest.fixture
def mock_client(mock_repo):
    client = Mock()
    client.get_repo.return_value = mock_repo
    return client


@pytest.fixture
def service(mock_client):
    with patch('devops_review.services.github_devops.Github') as mock_github:
        mock_github.return_value = mock_client
        return GitHubDevOpsService(access_token="ghp_test", organization_url="https://github.com")


def set_files(mock_repo, files):
    mock_repo.get_pull.return_value.get_files.return_value = iter(files)


class TestHelpers:
    """Test suite for GitHub helper functions."""

    def test_map_change_type(self):
        assert map_change_type("added") == ChangeType.ADD
        assert map_change_type("modified") == ChangeType.EDIT
        assert map_change_type("removed") == ChangeType.DELETE
        assert map_change_type("renamed") == ChangeType.RENAME
        assert map_change_type("renamed", has_patch=True) == ChangeType.EDIT
        assert map_change_type("copied") == ChangeType.UNKNOWN
        assert map_change_type(None) == ChangeType.UNKNOWN

    def test_resolve_base_url(self):
        assert resolve_base_url("https://github.com") is None
        assert resolve_base_url("https://github.com/my-org/") is None
        assert resolve_base_url("https://api.github.com") is None
        assert resolve_base_url(" https://ghe.example.com/api/v3/ ") == "https://ghe.example.com/api/v3"
        assert resolve_base_url("ghe.internal/api/v3/") == "ghe.internal/api/v3"
        assert resolve_base_url(None) is None

    def test_parse_owner_repo(self):
        assert parse_owner_repo("octo/hello") == "octo/hello"
        with pytest.raises(ConfigurationError):
            parse_owner_repo("hello")
        with pytest.raises(ConfigurationError):
            parse_owner_repo("octo/")

    def test_enterprise_base_url_is_passed(self):
        with patch('devops_review.services.github_devops.Github') as mock_github:
            GitHubDevOpsService(access_token="t", organization_url="https://ghe.example.com/api/v3/")

            assert mock_github.call_args.kwargs["base_url"] == "https://ghe.example.com/api/v3"

    def test_public_url_uses_default_base(self):
        with patch('devops_review.services.github_devops.Github') as mock_github:
            GitHubDevOpsService(access_token="t", organization_url="https://github.com")

            assert "base_url" not in mock_github.call_args.kwargs


class TestGitHubDevOpsService:
    """Test suite for GitHubDevOpsService change retrieval."""

    @pytest.mark.asyncio
    async def test_invalid_repository_id(self, service, mock_client):
        with pytest.raises(ConfigurationError):
            await service.get_pull_request_changes("", "no-slash", 1)

        mock_client.get_repo.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_repository_id(self, service, mock_client):
        with pytest.raises(ConfigurationError):
            await service.get_pull_request_changes("", None, 1)

        mock_client.get_repo.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_head_sha(self, service, mock_repo):
        mock_repo.get_pull.return_value.head.sha = None

        with pytest.raises(ResolutionError):
            await service.get_pull_request_changes("", "octo/hello", 1)

    @pytest.mark.asyncio
    async def test_no_files_returns_none(self, service, mock_repo):
        set_files(mock_repo, [])

        assert await service.get_pull_request_changes("", "octo/hello", 1) is None

    @pytest.mark.asyncio
    async def test_throttle_mode_uses_patch(self, service, mock_repo):
        set_files(mock_repo, [make_file("src/util.py", "modified", PATCH)])

        result = await service.get_pull_request_changes("", "octo/hello", 1)

        assert len(result) == 1
        assert result[0].change_type == ChangeType.EDIT
        assert result[0].content == "@@ -1,2 +1,2 @@\n-line 2\n+line two"
        mock_repo.get_contents.assert_not_called()

    @pytest.mark.asyncio
    async def test_throttle_mode_without_patch_fetches_content(self, service, mock_repo):
        set_files(mock_repo, [
            make_file("src/big.py", "modified"),
            make_file("src/new.py", "added"),
        ])

        result = await service.get_pull_request_changes("", "octo/hello", 1)

        by_path = {detail.path: detail for detail in result}
        assert by_path["src/big.py"].content == "content of src/big.py"
        assert by_path["src/new.py"].content == "+ content of src/new.py"
        mock_repo.get_contents.assert_any_call("src/big.py", ref="headsha")

    @pytest.mark.asyncio
    async def test_added_file_renders_like_azure_devops(self, service, mock_repo):
        set_files(mock_repo, [make_file("src/new.py", "added", "@@ -0,0 +1 @@\n+content of src/new.py")])

        result = await service.get_pull_request_changes("", "octo/hello", 1)

        assert result[0].change_type == ChangeType.ADD
        assert result[0].content == "+ content of src/new.py"
        mock_repo.get_contents.assert_called_once_with("src/new.py", ref="headsha")

    @pytest.mark.asyncio
    async def test_unknown_status_with_patch_has_empty_content(self, service, mock_repo):
        set_files(mock_repo, [make_file("src/copy.py", "copied", PATCH)])

        result = await service.get_pull_request_changes("", "octo/hello", 1)

        assert result[0].change_type == ChangeType.UNKNOWN
        assert result[0].content == ""
        mock_repo.get_contents.assert_not_called()

    @pytest.mark.asyncio
    async def test_file_listing_is_logged_by_name(self, service, mock_repo):
        set_files(mock_repo, [make_file("src/util.py", "modified", PATCH)])

        with patch('devops_review.services.base_devops.log_api_call') as mock_log_api_call:
            await service.get_pull_request_changes("", "octo/hello", 1)

        endpoints = [call.kwargs["endpoint"] for call in mock_log_api_call.call_args_list]
        assert "list_pull_files" in endpoints
        assert "list" not in endpoints

    @pytest.mark.asyncio
    async def test_full_content_mode(self, service, mock_repo):
        set_files(mock_repo, [make_file("src/util.py", "modified", PATCH)])

        result = await service.get_pull_request_changes("", "octo/hello", 1, enable_throttle_mode=False)

        assert result[0].content == "content of src/util.py"

    @pytest.mark.asyncio
    async def test_filters_removed_and_binary(self, service, mock_repo):
        set_files(mock_repo, [
            make_file("src/old.py", "removed", "@@ -1 +0,0 @@\n-x"),
            make_file("assets/logo.png", "added"),
            make_file("README.md", "modified", PATCH),
            make_file("main.ts", "added", "@@ -0,0 +1 @@\n+const a = 1;"),
        ])

        result = await service.get_pull_request_changes("", "octo/hello", 1)

        assert [detail.path for detail in result] == ["main.ts"]
        assert result[0].change_type == ChangeType.ADD

    @pytest.mark.asyncio
    async def test_all_filtered_returns_none(self, service, mock_repo):
        set_files(mock_repo, [make_file("README.md", "modified", PATCH)])

        assert await service.get_pull_request_changes("", "octo/hello", 1) is None

    @pytest.mark.asyncio
    async def test_directory_listing_is_empty_content(self, service, mock_repo):
        set_files(mock_repo, [make_file("src", "modified")])
        mock_repo.get_contents.side_effect = lambda path, ref=None: [Mock(), Mock()]

        result = await service.get_pull_request_changes("", "octo/hello", 1)

        assert result[0].content == ""

    @pytest.mark.asyncio
    async def test_per_file_failure_is_isolated(self, service, mock_repo):
        def get_contents(path, ref=None):
            if path == "b.py":
                raise GithubException(500, {"message": "Server Error"}, None)
            return encoded(f"content of {path}")

        mock_repo.get_contents.side_effect = get_contents
        set_files(mock_repo, [
            make_file("a.py", "modified"),
            make_file("b.py", "modified"),
            make_file("c.py", "modified"),
        ])

        result = await service.get_pull_request_changes("", "octo/hello", 1)

        assert [detail.content for detail in result] == [
            "content of a.py",
            UNAVAILABLE_CONTENT,
            "content of c.py",
        ]

    @pytest.mark.asyncio
    async def test_repository_is_looked_up_once(self, service, mock_client, mock_repo):
        set_files(mock_repo, [make_file("a.py", "modified"), make_file("b.py", "modified")])

        await service.get_pull_request_changes("", "octo/hello", 1, enable_throttle_mode=False)

        mock_client.get_repo.assert_called_once_with("octo/hello")


class TestAddComment:
    """Test suite for GitHub comment creation."""

    @pytest.mark.asyncio
    async def test_add_comment(self, service, mock_repo):
        pull = mock_repo.get_pull.return_value
        pull.create_issue_comment.return_value = Mock(id=987654321)

        comment_id = await service.add_pull_request_comment("", "octo/hello", 5, "Body", "Review")

        assert comment_id == 987654321
        pull.create_issue_comment.assert_called_once_with("# Review\nBody")
        mock_repo.get_pull.assert_called_with(5)

    @pytest.mark.asyncio
    async def test_add_comment_forbidden(self, service, mock_repo):
        pull = mock_repo.get_pull.return_value
        pull.create_issue_comment.side_effect = GithubException(403, {"message": "Resource not accessible"}, None)

        with pytest.raises(CommentPostError) as exc_info:
            await service.add_pull_request_comment("", "octo/hello", 5, "Body")

        assert exc_info.value.permission_denied is True

    @pytest.mark.asyncio
    async def test_add_comment_server_error(self, service, mock_repo):
        pull = mock_repo.get_pull.return_value
        pull.create_issue_comment.side_effect = GithubException(422, {"message": "Validation Failed"}, None)

        with pytest.raises(CommentPostError) as exc_info:
            await service.add_pull_request_comment("", "octo/hello", 5, "Body")

        assert exc_info.value.permission_denied is False
