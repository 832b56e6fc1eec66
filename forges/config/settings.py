"""
Configuration system using Pydantic for type-safe settings management.

Settings come from ``FORGES_``-prefixed environment variables or from a YAML
file with ``${VAR}`` interpolation, for example::

    tokens:
      github.com: ${GITHUB_TOKEN}
      codeberg.org: ${CODEBERG_TOKEN:-}
    instances:
      - domain: git.example.com
        forge_type: forgejo
        token: ${EXAMPLE_TOKEN}
    timeout: 20
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from forges.exceptions import ConfigurationError
from forges.providers.bitbucket_rest import BITBUCKET_API_URL
from forges.utils.connection_pool import DEFAULT_USER_AGENT

# ${NAME} or ${NAME:-fallback}
ENV_REFERENCE = re.compile(r"\$\{(?P<name>[A-Z_][A-Z0-9_]*)(?::-(?P<fallback>[^}]*))?\}")


def _resolve_reference(match: re.Match[str]) -> str:
    name = match.group("name")
    value = os.environ.get(name)
    if value is not None:
        return value
    fallback = match.group("fallback")
    if fallback is None:
        raise ValueError(f"Environment variable {name} is not set")
    return fallback


def interpolate_env_vars(content: str) -> str:
    """Replace ${NAME} and ${NAME:-fallback} references with environment values.

    Lines that are YAML comments are returned unchanged, so commented-out
    examples may mention variables that are not set.

    Raises:
        ValueError: If a reference without fallback names an unset variable
    """
    lines = []
    for line in content.splitlines(keepends=True):
        if not line.lstrip().startswith("#"):
            line = ENV_REFERENCE.sub(_resolve_reference, line)
        lines.append(line)
    return "".join(lines)


class ForgeInstanceConfig(BaseModel):
    """A self-hosted forge registered under its own domain."""

    domain: str = Field(..., min_length=1, description="Domain the instance is served from")
    forge_type: Literal["github", "gitlab", "gitea", "forgejo", "bitbucket"] = Field(
        ..., description="Forge software the instance runs"
    )
    base_url: str | None = Field(default=None, description="Web root; defaults to https://{domain}")
    token: SecretStr | None = Field(default=None, description="API token for this instance")

    @field_validator("domain")
    @classmethod
    def normalize_domain(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def effective_base_url(self) -> str:
        """Base URL used to build the adapter."""
        return (self.base_url or f"https://{self.domain}").rstrip("/")


class ForgesSettings(BaseSettings):
    """Client settings.

    Tokens in ``tokens`` apply to the default forges and to domains later
    registered by detection; self-hosted instances carry their own token.
    """

    model_config = SettingsConfigDict(
        env_prefix="FORGES_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    tokens: dict[str, SecretStr] = Field(default_factory=dict, description="API tokens keyed by domain")
    instances: list[ForgeInstanceConfig] = Field(default_factory=list, description="Self-hosted forges")
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent header sent with every request")
    bitbucket_api_url: str = Field(default=BITBUCKET_API_URL, description="Bitbucket Cloud API root")

    def token_map(self) -> dict[str, str]:
        """Plain-text tokens keyed by lower-cased domain."""
        return {domain.strip().lower(): secret.get_secret_value() for domain, secret in self.tokens.items()}

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> ForgesSettings:
        """Load settings from YAML file with environment variable interpolation.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            ForgesSettings instance

        Raises:
            ConfigurationError: If config file is missing, unreadable or invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            yaml_content = config_file.read_text()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            yaml_content = interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e

        # An empty file means "all defaults"
        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")

        try:
            return cls(**config_dict)
        except (TypeError, ValidationError) as e:
            raise ConfigurationError(f"Failed to validate configuration: {e}") from e
