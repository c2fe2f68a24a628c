"""Unit tests for the diff renderer."""

import os
import shutil
from unittest.mock import patch

import pytest

from devops_review.services.diff_renderer import DiffRenderer, reduce_diff_output, render_added
from devops_review.services.errors import DiffToolError


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def test_render_added():
    """Every line is prefixed with '+ '."""
    assert render_added("a\nb") == "+ a\n+ b"


def test_render_added_empty():
    assert render_added("") == "+ "


def test_renderer_only_exposes_diffing():
    assert not hasattr(DiffRenderer, "render_added")


def test_reduce_diff_output_strips_headers_and_context():
    """Only hunk headers and changed lines survive."""
    output = (
        "diff --git a/old.tmp b/new.tmp\n"
        "index 1111111..2222222 100644\n"
        "--- a/old.tmp\n"
        "+++ b/new.tmp\n"
        "@@ -1,3 +1,3 @@\n"
        " line 1\n"
        "-line 2\n"
        "+line two\n"
        " line 3\n"
        "\\ No newline at end of file\n"
    )

    assert reduce_diff_output(output) == "@@ -1,3 +1,3 @@\n-line 2\n+line two"


def test_reduce_diff_output_without_hunk():
    assert reduce_diff_output("Binary files a and b differ") == ""
    assert reduce_diff_output("") == ""


@requires_git
class TestDiffRenderer:
    """Tests that run the real git binary."""

    @pytest.mark.asyncio
    async def test_identical_content_yields_empty_diff(self):
        renderer = DiffRenderer()

        assert await renderer.render_diff("same\ncontent\n", "same\ncontent\n") == ""

    @pytest.mark.asyncio
    async def test_changed_content(self):
        renderer = DiffRenderer()

        result = await renderer.render_diff("line 1\nline two\nline 3\n", "line 1\nline 2\nline 3\n")

        assert result.startswith("@@")
        assert "-line 2" in result
        assert "+line two" in result
        assert " line 1" not in result
        assert "---" not in result

    @pytest.mark.asyncio
    async def test_empty_old_content(self):
        """An empty side is compared like any other content."""
        renderer = DiffRenderer()

        result = await renderer.render_diff("new line\n", "")

        assert "+new line" in result

    @pytest.mark.asyncio
    async def test_temp_files_removed(self, tmp_path):
        renderer = DiffRenderer(temp_dir=str(tmp_path))

        await renderer.render_diff("a\n", "b\n")

        assert os.listdir(tmp_path) == []


@pytest.mark.asyncio
async def test_missing_diff_tool_raises_and_cleans_up(tmp_path):
    """A missing executable is an invocation failure, and temp files still go."""
    renderer = DiffRenderer(diff_command="definitely-not-a-real-git", temp_dir=str(tmp_path))

    with pytest.raises(DiffToolError):
        await renderer.render_diff("a\n", "b\n")

    assert os.listdir(tmp_path) == []


@pytest.mark.asyncio
async def test_unexpected_exit_status_raises(tmp_path):
    """Exit statuses other than 0 and 1 are failures."""

    class FakeProcess:
        returncode = 128

        async def communicate(self):
            return b"", b"fatal: bad things"

    async def fake_exec(*args, **kwargs):
        return FakeProcess()

    renderer = DiffRenderer(temp_dir=str(tmp_path))

    with patch("devops_review.services.diff_renderer.asyncio.create_subprocess_exec", fake_exec):
        with pytest.raises(DiffToolError, match="bad things"):
            await renderer.render_diff("a\n", "b\n")

    assert os.listdir(tmp_path) == []


@pytest.mark.asyncio
async def test_differences_exit_status_is_success(tmp_path):
    """Exit status 1 (differences found) returns the reduced output."""

    class FakeProcess:
        returncode = 1

        async def communicate(self):
            return b"--- a\n+++ b\n@@ -1 +1 @@\n-a\n+b\n", b""

    async def fake_exec(*args, **kwargs):
        return FakeProcess()

    renderer = DiffRenderer(temp_dir=str(tmp_path))

    with patch("devops_review.services.diff_renderer.asyncio.create_subprocess_exec", fake_exec):
        result = await renderer.render_diff("b\n", "a\n")

    assert result == "@@ -1 +1 @@\n-a\n+b"
