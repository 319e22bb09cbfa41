"""Settings for google-source-auth, validated with pydantic-settings.

Settings can come from a YAML file, from ``GOOGLE_SOURCE_AUTH_*``
environment variables, or both.

Example configuration::

    log_level: INFO
    robots:
      - id: ci-robot
        key: "@keyring:google-source/ci-robot"
        scopes:
          - https://www.googleapis.com/auth/source.read_write
      - id: gerrit-robot
        key: ${GERRIT_ROBOT_KEY_JSON}
    installed_plugins: [git, mercurial]
"""

from __future__ import annotations

import os
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from google_source_auth.exceptions import ConfigurationError

ENV_REFERENCE = re.compile(r"\$\{(?P<name>[A-Z_][A-Z0-9_]*)(?::-(?P<default>[^}]*))?\}")


class RobotConfig(BaseModel):
    """A service-account robot credential made available to the provider.

    The key supports three forms:
    - key: "@keyring:service/key"
    - key: "/path/to/key.json"
    - key: '{"type": "service_account", ...}' (usually via ${ENV})
    """

    id: str = Field(..., description="Stable credential id")
    key: SecretStr = Field(..., description="Key reference, key file path or inline key JSON")
    scopes: list[str] | None = Field(
        default=None,
        description="OAuth scopes the robot may be used for (all when omitted)",
    )
    description: str | None = Field(default=None, description="Human-readable description")

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Robot id must not be empty")
        return v.strip()


class SourceAuthSettings(BaseSettings):
    """Main settings.

    Combines logging options, configured robots and the host plugins the
    SCM metadata extractors may rely on.
    """

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SOURCE_AUTH_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    log_level: str = Field(default="INFO", description="Minimum log level")
    json_logs: bool = Field(default=True, description="Render logs as JSON lines")
    robots: list[RobotConfig] = Field(default_factory=list)
    installed_plugins: list[str] = Field(
        default_factory=lambda: ["git"],
        description="Host SCM plugins available (git, mercurial, multiple-scms)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("robots")
    @classmethod
    def validate_unique_robot_ids(cls, v: list[RobotConfig]) -> list[RobotConfig]:
        seen: set[str] = set()
        for robot in v:
            if robot.id in seen:
                raise ValueError(f"Duplicate robot id: {robot.id}")
            seen.add(robot.id)
        return v

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> SourceAuthSettings:
        """Load settings from a YAML file.

        ``${VAR}`` and ``${VAR:-default}`` references are expanded from the
        environment before the YAML is parsed; environment variables with the
        ``GOOGLE_SOURCE_AUTH_`` prefix still apply to fields the file omits.

        Raises:
            ConfigurationError: If the file is missing or unreadable, a
                referenced variable is unset, or the content does not validate
        """
        path = Path(config_path)
        if not path.is_file():
            raise ConfigurationError(f"Configuration file not found: {path}")

        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Unable to read configuration file {path}: {e}") from e

        try:
            data = yaml.safe_load(expand_env_references(raw))
        except KeyError as e:
            raise ConfigurationError(
                f"Environment variable {e.args[0]} referenced in {path} is not set"
            ) from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        data = data or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Top level of {path} must be a YAML object")

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Failed to validate {path}: {e}") from e


def expand_env_references(text: str) -> str:
    """Replace ``${VAR}`` / ``${VAR:-default}`` with environment values.

    Lines whose first non-blank character is ``#`` are kept as written.

    Raises:
        KeyError: Naming the first referenced variable that is unset and has
            no default
    """

    def substitute(match: re.Match[str]) -> str:
        name, default = match.group("name"), match.group("default")
        value = os.environ.get(name, default)
        if value is None:
            raise KeyError(name)
        return value

    return "\n".join(
        line if line.lstrip().startswith("#") else ENV_REFERENCE.sub(substitute, line)
        for line in text.split("\n")
    )
