"""File change data models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ChangeType(str, Enum):
    """Type of file change, normalised across providers."""

    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"
    RENAME = "rename"
    UNKNOWN = "unknown"


class ChangeEntry(BaseModel):
    """A changed path as reported by a provider, before any content is fetched."""

    path: str = ""
    change_type: ChangeType = ChangeType.UNKNOWN
    object_id: Optional[str] = None  # new version: blob id (Azure DevOps) or head sha (GitHub)
    original_object_id: Optional[str] = None  # blob id of the prior version (Azure DevOps)
    patch: Optional[str] = None  # inline unified diff fragment (GitHub)


class FileChangeDetail(BaseModel):
    """Normalised per-file change handed to the review stage."""

    model_config = ConfigDict(frozen=True)

    path: str
    change_type: ChangeType
    content: str = ""
    error: Optional[str] = None
