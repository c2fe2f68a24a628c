"""
Diff rendering for review payloads.

Produces the reduced textual form of a change that is sent to the review
stage: hunk headers plus added and removed lines only. Diffs are computed
by the external ``git diff --no-index`` command on two temporary files.
"""

import asyncio
import os
import secrets
import tempfile
from pathlib import Path
from typing import Optional

from devops_review.services.errors import DiffToolError
from devops_review.utils.logging import get_logger


logger = get_logger(__name__)

# git diff --no-index exit codes
_NO_DIFFERENCES = 0
_DIFFERENCES_FOUND = 1


def render_added(content: str) -> str:
    """Render a whole file as added lines, each prefixed with ``"+ "``."""
    return '\n'.join(f'+ {line}' for line in content.split('\n'))


def reduce_diff_output(output: str) -> str:
    """
    Reduce unified diff output to hunk headers and changed lines.

    Everything before the first ``@@`` header (file headers, index lines)
    is discarded, as are context lines. Returns an empty string when the
    output has no hunk.
    """
    lines = output.split('\n')
    start = next((i for i, line in enumerate(lines) if line.startswith('@@')), None)
    if start is None:
        return ''

    return '\n'.join(
        line for line in lines[start:]
        if line.startswith(('+', '-', '@@'))
    )


class DiffRenderer:
    """Computes reduced diffs between two file versions using git."""

    def __init__(self, diff_command: str = "git", temp_dir: Optional[str] = None):
        """
        Args:
            diff_command: Executable providing ``diff --no-index``
            temp_dir: Directory for the temporary file pair (OS default when None)
        """
        self.diff_command = diff_command
        self.temp_dir = temp_dir

    async def render_diff(self, new_content: str, old_content: str) -> str:
        """
        Render the reduced diff from ``old_content`` to ``new_content``.

        Either side may be empty. The temporary files are removed on every
        exit path.

        Raises:
            DiffToolError: If the diff command is missing or fails
        """
        temp_path = Path(self.temp_dir or tempfile.gettempdir())
        random_id = secrets.token_hex(8)
        old_file = temp_path / f"old-{random_id}.tmp"
        new_file = temp_path / f"new-{random_id}.tmp"

        try:
            await asyncio.to_thread(old_file.write_text, old_content or '', encoding='utf-8')
            await asyncio.to_thread(new_file.write_text, new_content or '', encoding='utf-8')

            output = await self._run_diff(str(old_file), str(new_file))
            return reduce_diff_output(output)
        finally:
            for path in (old_file, new_file):
                try:
                    os.unlink(path)
                except OSError:
                    pass

    async def _run_diff(self, old_path: str, new_path: str) -> str:
        try:
            process = await asyncio.create_subprocess_exec(
                self.diff_command, "diff", "--no-index", "--no-color", "--no-ext-diff",
                old_path, new_path,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise DiffToolError(f"Unable to run {self.diff_command} diff: {e}") from e

        stdout, stderr = await process.communicate()

        # Exit code 1 means the files differ, which is the normal case
        if process.returncode in (_NO_DIFFERENCES, _DIFFERENCES_FOUND):
            return stdout.decode('utf-8', errors='replace')

        message = stderr.decode('utf-8', errors='replace').strip()
        logger.error(f"{self.diff_command} diff exited with {process.returncode}: {message}")
        raise DiffToolError(f"Error in {self.diff_command} diff: {message or process.returncode}")
