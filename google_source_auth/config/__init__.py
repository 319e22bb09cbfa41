"""Configuration for google-source-auth.

This package provides type-safe configuration management using Pydantic.

Key Components:
    - SourceAuthSettings: Main configuration container with YAML loading support
    - RobotConfig: A configured service-account robot credential

Example:
    >>> from google_source_auth.config import SourceAuthSettings
    >>> settings = SourceAuthSettings.from_yaml("google-source-auth.yaml")
    >>> [robot.id for robot in settings.robots]
"""

from google_source_auth.config.settings import RobotConfig, SourceAuthSettings

__all__ = ["RobotConfig", "SourceAuthSettings"]
