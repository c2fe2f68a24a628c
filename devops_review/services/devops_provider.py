"""
Provider registry.

Holds connection settings per provider name and lazily builds one adapter
per name on first use. Names are case-insensitive.
"""

from typing import Dict, Optional, Type, Union

from pydantic import ValidationError

from devops_review.models.pull_request import DevOpsServiceConfig
from devops_review.services.azure_devops import AzureDevOpsService
from devops_review.services.base_devops import BaseDevOpsService
from devops_review.services.diff_renderer import DiffRenderer
from devops_review.services.errors import (
    ConfigurationError,
    NotRegisteredError,
    UnsupportedProviderError,
)
from devops_review.services.github_devops import GitHubDevOpsService
from devops_review.utils.logging import get_logger


logger = get_logger(__name__)

PROVIDER_FAMILIES: Dict[str, Type[BaseDevOpsService]] = {
    "azure": AzureDevOpsService,
    "azuredevops": AzureDevOpsService,
    "github": GitHubDevOpsService,
}


class DevOpsProviderService:
    """Registry of DevOps provider adapters keyed by provider name."""

    def __init__(self):
        self._configs: Dict[str, DevOpsServiceConfig] = {}
        self._services: Dict[str, Optional[BaseDevOpsService]] = {}

    def register_service(self, provider: str, config: Union[DevOpsServiceConfig, dict]) -> None:
        """
        Store connection settings for a provider without connecting.

        Raises:
            ConfigurationError: If the access token is missing or the
                settings are malformed
        """
        if isinstance(config, dict):
            if not config.get("access_token"):
                raise ConfigurationError("Access token is required")
            try:
                config = DevOpsServiceConfig(**config)
            except ValidationError as e:
                raise ConfigurationError(f"Invalid configuration for {provider}: {e}") from e
        if not config.access_token or not config.access_token.strip():
            raise ConfigurationError("Access token is required")

        name = provider.lower()
        self._configs[name] = config
        self._services[name] = None
        logger.debug(f"Registered DevOps provider: {name}")

    def get_service(self, provider: str) -> BaseDevOpsService:
        """
        Return the adapter for a provider, creating it on first use.

        Raises:
            NotRegisteredError: If no settings were registered for the name
            UnsupportedProviderError: If the name is not a known provider family
        """
        name = provider.lower()

        service = self._services.get(name)
        if service is not None:
            return service

        config = self._configs.get(name)
        if config is None:
            raise NotRegisteredError(f"Service {provider} is not registered")

        service_class = PROVIDER_FAMILIES.get(name)
        if service_class is None:
            raise UnsupportedProviderError(f"Unsupported DevOps provider: {provider}")

        service = service_class(
            config.access_token,
            config.organization_url,
            max_retries=config.max_retries,
            diff_renderer=DiffRenderer(config.diff_command),
        )
        self._services[name] = service
        return service

    get = get_service

    def has_service(self, provider: str) -> bool:
        return provider.lower() in self._configs

    def remove_service(self, provider: str) -> None:
        name = provider.lower()
        self._configs.pop(name, None)
        self._services.pop(name, None)

    @staticmethod
    def detect_provider(organization_url: Optional[str]) -> str:
        """Guess the provider family from an organization URL (Azure by default)."""
        logger.info(f"Detecting provider from organizationUrl: {organization_url}")
        if organization_url and "github" in organization_url.lower():
            return "github"
        return "azure"
