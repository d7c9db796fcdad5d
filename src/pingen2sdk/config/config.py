import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

PRODUCTION = "production"
STAGING = "staging"

DEFAULT_REQUEST_TIMEOUT = 20.0
USER_AGENT = "PINGEN.SDK.PYTHON"


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""

    pass


@dataclass
class Config:
    client_id: str
    client_secret: str
    environment: str = PRODUCTION
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    api_production_url: str = "https://api.pingen.com"
    auth_production_url: str = "https://identity.pingen.com"
    api_staging_url: str = "https://api-staging.pingen.com"
    auth_staging_url: str = "https://identity-staging.pingen.com"
    webhook_secret: Optional[str] = None

    def __post_init__(self):
        if not self.environment:
            self.environment = PRODUCTION
        self.validate()

    def validate(self) -> None:
        if not self.client_id or not self.client_secret:
            raise ConfigurationError("missing required credentials (client_id, client_secret)")

    @property
    def is_production(self) -> bool:
        return self.environment == PRODUCTION

    @property
    def api_base_url(self) -> str:
        return self.api_production_url if self.is_production else self.api_staging_url

    @property
    def auth_base_url(self) -> str:
        return self.auth_production_url if self.is_production else self.auth_staging_url

    @property
    def user_agent(self) -> str:
        return USER_AGENT

    def set_api_base_url(self, url: str) -> None:
        """Retarget API calls, e.g. at a local test server."""
        if self.is_production:
            self.api_production_url = url
        else:
            self.api_staging_url = url


def _load_settings_file(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        settings = yaml.safe_load(f) or {}
    if not isinstance(settings, dict):
        raise ConfigurationError(f"Settings file {path} must contain a mapping")
    # Allow the settings to be nested under a top-level "pingen" key
    return settings.get("pingen", settings)


def load_config(path: Optional[str] = None) -> Config:
    """Load and validate client configuration from environment and an optional YAML file.

    Environment variables take precedence over values from the settings file.

    Args:
        path: Optional YAML settings file. Defaults to $PINGEN_CONFIG_FILE.

    Returns:
        A validated Config instance.

    Raises:
        ConfigurationError: If credentials are missing or a value is invalid.
        FileNotFoundError: If the settings file does not exist.
        yaml.YAMLError: If the settings file contains invalid syntax.
    """
    path = path or os.getenv("PINGEN_CONFIG_FILE", "").strip() or None
    settings = _load_settings_file(path) if path else {}

    def setting(env_name: str, key: str) -> str:
        value = os.getenv(env_name, "").strip()
        if value:
            return value
        file_value = settings.get(key)
        return str(file_value).strip() if file_value is not None else ""

    raw_timeout = setting("PINGEN_REQUEST_TIMEOUT", "request_timeout")
    try:
        timeout = float(raw_timeout) if raw_timeout else DEFAULT_REQUEST_TIMEOUT
    except ValueError:
        raise ConfigurationError(f"Invalid request timeout: {raw_timeout!r}")

    config = Config(
        client_id=setting("PINGEN_CLIENT_ID", "client_id"),
        client_secret=setting("PINGEN_CLIENT_SECRET", "client_secret"),
        environment=setting("PINGEN_ENVIRONMENT", "environment") or PRODUCTION,
        request_timeout=timeout,
        webhook_secret=setting("PINGEN_WEBHOOK_SECRET", "webhook_secret") or None,
    )

    api_base_url = setting("PINGEN_API_BASE_URL", "api_base_url")
    if api_base_url:
        config.set_api_base_url(api_base_url)

    return config
