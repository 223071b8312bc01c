"""Configuration loader with YAML parsing and environment variable substitution."""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from okta_connector.clients.exceptions import ConfigurationError
from okta_connector.config.models import ConnectorSettings
from okta_connector.security.validation import (
    sanitize_log_input,
    validate_environment_variable_name,
)

CONFIG_FILE_NAMES = ("okta-connector.yaml", "okta-connector.yml")


class EnvironmentVariableError(ConfigurationError):
    """Raised when environment variable substitution fails."""
    pass


# Only these variables may be referenced from a configuration file
ALLOWED_ENV_VARS: Set[str] = {
    "OKTA_HOST",
    "OKTA_API_TOKEN",
    "OKTA_API_VERSION",
    "OKTA_TIMEOUT_SECONDS",
    "OKTA_RATE_LIMIT_PER_MINUTE",
    "LOG_LEVEL",
    "LOG_FORMAT",
}


def _validate_env_var_name(var_name: str) -> None:
    if not validate_environment_variable_name(var_name):
        raise EnvironmentVariableError(
            f"Invalid environment variable name format: '{sanitize_log_input(var_name)}'"
        )
    if var_name not in ALLOWED_ENV_VARS:
        raise EnvironmentVariableError(
            f"Environment variable '{sanitize_log_input(var_name)}' is not in allowlist. "
            f"Allowed variables: {sorted(ALLOWED_ENV_VARS)}"
        )


class ConfigLoader:
    """Configuration loader with environment variable substitution."""

    # ${VAR_NAME} or ${VAR_NAME:default_value}
    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*?)(?::([^}]*))?\}')

    def __init__(self, require_env_vars: bool = True, load_env_file: bool = True) -> None:
        """Initialize the configuration loader.

        Args:
            require_env_vars: Whether a referenced variable without default must exist
            load_env_file: Whether to read a ``.env`` file into the environment first
        """
        self.require_env_vars = require_env_vars
        if load_env_file:
            load_dotenv()

    def load_config(self, config_path: Path) -> ConnectorSettings:
        """Load and validate configuration from a YAML file.

        Raises:
            ConfigurationError: If loading or validation fails
        """
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            raw_content = config_path.read_text(encoding="utf-8")
            substituted_content = self._substitute_env_vars(raw_content)
            config_data = yaml.safe_load(substituted_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigurationError("Configuration file must contain a YAML object")

        return self.load_dict(config_data)

    def load_dict(self, config_data: Dict[str, Any]) -> ConnectorSettings:
        """Validate an already parsed configuration mapping."""
        try:
            return ConnectorSettings.model_validate(config_data)
        except ValidationError as e:
            # pydantic does not echo SecretStr input, but tokens may hide in other fields
            raise ConfigurationError(
                f"Configuration validation failed: {sanitize_log_input(str(e))}"
            ) from e

    def _substitute_env_vars(self, content: str) -> str:
        """Substitute ``${VAR}`` and ``${VAR:default}`` references.

        Raises:
            EnvironmentVariableError: If a variable is not allowed, or required and unset
        """
        missing_vars: List[str] = []

        def replace_env_var(match: re.Match) -> str:
            var_name = match.group(1)
            default_value = match.group(2)

            _validate_env_var_name(var_name)

            env_value = os.getenv(var_name)
            if env_value is not None:
                return env_value.strip()
            if default_value is not None:
                return default_value
            if self.require_env_vars:
                missing_vars.append(var_name)
            return match.group(0)

        result = self.ENV_VAR_PATTERN.sub(replace_env_var, content)

        if missing_vars:
            raise EnvironmentVariableError(
                f"Required environment variables are not set: {', '.join(sorted(set(missing_vars)))}"
            )
        return result


def find_config_file(start_path: Optional[Path] = None) -> Optional[Path]:
    """Search the given directory and its parents for a configuration file.

    Args:
        start_path: Directory to start from (defaults to the working directory)

    Returns:
        Path to the first configuration file found, or None
    """
    current_path = (start_path or Path.cwd()).resolve()

    while True:
        for name in CONFIG_FILE_NAMES:
            config_path = current_path / name
            if config_path.is_file():
                return config_path

        parent = current_path.parent
        if parent == current_path:  # Reached root
            return None
        current_path = parent
