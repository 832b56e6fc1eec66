"""Configuration for the forges client.

Key Components:
    - ForgesSettings: Tokens, self-hosted instances and transport options,
      loadable from the environment or a YAML file
    - ForgeInstanceConfig: One self-hosted forge registration

Example:
    >>> from forges.config import ForgesSettings
    >>> settings = ForgesSettings.from_yaml("forges.yaml")
    >>> client = Client.from_settings(settings)
"""

from forges.config.settings import ForgeInstanceConfig, ForgesSettings

__all__ = ["ForgeInstanceConfig", "ForgesSettings"]
