"""Pull request coordinate and provider configuration models."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class PullRequestCoordinates(BaseModel):
    """Identifies one pull request on a provider.

    ``repository_id`` is provider shaped: a GUID or name on Azure DevOps,
    ``owner/repo`` on GitHub. Each adapter interprets it.
    """

    model_config = ConfigDict(frozen=True)

    project_name: str = ""
    repository_id: str
    pull_request_id: int


class FilterConfig(BaseModel):
    """Extension allow-list and binary deny-list, lower-cased with leading dots."""

    file_extensions: List[str] = []
    binary_extensions: List[str] = []


class DevOpsServiceConfig(BaseModel):
    """Connection settings for one registered provider."""

    access_token: str
    organization_url: Optional[str] = None
    max_retries: int = 1
    diff_command: str = "git"
