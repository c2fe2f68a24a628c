"""
File classification by extension.

Decides which changed paths are worth sending for review: anything in the
binary deny-list is dropped, and when an allow-list is given only matching
extensions survive.
"""

import posixpath
from typing import Iterable, List, Optional


DEFAULT_BINARY_EXTENSIONS: tuple[str, ...] = (
    '.jpg', '.jpeg', '.png', '.gif', '.bmp', '.ico', '.webp',
    '.pdf', '.doc', '.docx', '.ppt', '.pptx', '.xls', '.xlsx',
    '.zip', '.tar', '.gz', '.rar', '.7z',
    '.exe', '.dll', '.so', '.dylib',
    '.bin', '.dat', '.class',
    '.mp3', '.mp4', '.avi', '.mov', '.flv',
    '.md', '.markdown', '.txt', '.gitignore',
)


def get_extension(file_path: str) -> str:
    """
    Lower-cased extension of the last path segment, including the dot.

    Names without a dot, and dot-files such as ``.gitignore``, have an
    empty extension.
    """
    _, ext = posixpath.splitext(file_path.replace('\\', '/'))
    return ext.lower()


def normalize_extensions(extensions: Optional[Iterable[str]]) -> List[str]:
    """Trim, lower-case and dot-prefix user supplied extensions, dropping blanks."""
    normalized = []
    for ext in extensions or []:
        ext = ext.strip().lower()
        if not ext:
            continue
        if not ext.startswith('.'):
            ext = f'.{ext}'
        if ext not in normalized:
            normalized.append(ext)
    return normalized


def ensure_binary_extensions(binary_extensions: Optional[Iterable[str]]) -> List[str]:
    """Fall back to the built-in deny-list when none was supplied."""
    normalized = normalize_extensions(binary_extensions)
    return normalized or list(DEFAULT_BINARY_EXTENSIONS)


def should_include_file(
    file_path: str,
    file_extensions: Iterable[str],
    binary_extensions: Iterable[str],
) -> bool:
    """
    Check whether a changed file should be reviewed.

    Args:
        file_path: Repository relative path
        file_extensions: Allow-list; empty allows every non-binary file
        binary_extensions: Deny-list; takes priority over the allow-list

    Returns:
        True if the file should be included
    """
    file_ext = get_extension(file_path)

    if file_ext in {ext.lower() for ext in binary_extensions}:
        return False

    allowed = {ext.lower() for ext in file_extensions}
    if allowed:
        return file_ext in allowed

    return True
