"""
Application configuration management.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from devops_review.services.file_filter import normalize_extensions


class Settings(BaseSettings):
    """Pipeline inputs loaded from environment variables or a .env file."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # DevOps connection
    devops_access_token: str
    devops_org_url: str
    devops_provider: Optional[str] = None  # detected from devops_org_url when unset

    # Pull request coordinates
    devops_project_name: str = ""
    devops_repository_id: str = ""
    devops_pr_id: int = 0

    # Change retrieval
    file_extensions: str = ""  # comma separated allow-list
    binary_extensions: str = ""  # comma separated deny-list, empty uses the default
    enable_throttle_mode: bool = True
    max_concurrency: Optional[int] = None
    max_retries: int = 1
    diff_command: str = "git"

    # Comments
    comment_header: str = ""

    # Application
    log_level: str = "INFO"

    def file_extension_list(self) -> List[str]:
        return normalize_extensions(self.file_extensions.split(','))

    def binary_extension_list(self) -> List[str]:
        return normalize_extensions(self.binary_extensions.split(','))


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
