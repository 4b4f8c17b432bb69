"""
Configuration for the field trial manager.
There are three levels of configuration in order of priority
1. cli options
2. yaml config file
3. environment variables
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fieldtrial_manager.models import CACHE_SUFFIX, UpdateModePolicy


class Settings(BaseSettings):
    """
    Application configuration with support for:
    - Environment variables (``FTM_`` prefix)
    - YAML configuration file
    - CLI argument overrides

    Precedence: CLI args > YAML config > Environment variables > Defaults

    Instances are frozen; use :meth:`merge_overrides` to derive a new one.
    """

    model_config = SettingsConfigDict(
        env_prefix="FTM_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ===== Core directories =====
    data_root: Path = Field(
        default=Path("./data"),
        description="Directory holding the JSON document collections",
    )
    index_root: Path = Field(
        default=Path("./.index"),
        description="Directory used by the file-backed search index",
    )

    # ===== Study cache =====
    study_cache_root: Optional[Path] = Field(
        default=None,
        description="Directory of cached study documents; cache jobs are idle when unset",
    )
    cache_suffix: str = Field(
        default=CACHE_SUFFIX,
        description="File suffix identifying cache entries",
    )

    # ===== Frictionless Data packages =====
    fd_package_root: Optional[Path] = Field(
        default=None,
        description="Directory for generated study data packages; generation is idle when unset",
    )

    # ===== Reindexing =====
    reindex_update_policy: UpdateModePolicy = Field(
        default=UpdateModePolicy.FORCE_AFTER_FIRST,
        description=(
            "How the update flag is applied across types: 'force_after_first' "
            "uses it for the first type only, 'as_requested' for every type"
        ),
    )

    # ===== Logging / display =====
    log_level: str = Field(
        default="INFO",
        description="Minimum level for console log output",
    )
    log_to_file: bool = Field(
        default=False,
        description="Persist logs to a file (defaults to <data_root>/logs/manager.log)",
    )
    log_to_console: bool = Field(
        default=True,
        description="Emit selected logs to the console",
    )
    log_file: Optional[Path] = Field(
        default=None,
        description="Optional override for log file path",
    )
    show_progress: bool = Field(
        default=True,
        description="Show tqdm progress bars on the console",
    )

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> Settings:
        """
        Load settings from a YAML file.

        The YAML file values will override defaults but can still be
        overridden by CLI arguments.

        Parameters
        ----------
        yaml_path : Path
            Path to YAML configuration file

        Returns
        -------
        Settings
            Configured settings instance
        """
        if not yaml_path.exists():
            raise FileNotFoundError(f"Settings file not found: {yaml_path}")

        with yaml_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}

        if not isinstance(data, dict):
            raise ValueError("Settings YAML must contain a mapping at the root")

        return cls(**data)

    def merge_overrides(self, overrides: Dict[str, Any]) -> Settings:
        """
        Create a new Settings instance with specific values overridden.

        Parameters
        ----------
        overrides : dict
            Dictionary of values to override (typically from CLI args)

        Returns
        -------
        Settings
            New validated settings instance with overrides applied
        """
        overrides = overrides or {}
        if not overrides:
            return self

        merged = self.model_dump()
        merged.update(overrides)
        return type(self)(**merged)

    def ensure_directories(self) -> None:
        """Create the configured directories if they don't exist."""
        for directory in (self.data_root, self.index_root):
            directory.mkdir(parents=True, exist_ok=True)

        for optional_dir in (self.study_cache_root, self.fd_package_root):
            if isinstance(optional_dir, Path):
                optional_dir.mkdir(parents=True, exist_ok=True)


def load_settings(
    yaml_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Settings:
    """
    Load settings with proper precedence handling.

    Precedence order (highest to lowest):
    1. Overrides (typically from CLI args)
    2. YAML config file
    3. Environment variables
    4. Defaults

    Parameters
    ----------
    yaml_path : Path, optional
        Path to YAML configuration file
    overrides : dict, optional
        Dictionary of override values (typically from CLI)

    Returns
    -------
    Settings
        Configured settings instance
    """
    overrides = overrides or {}

    settings = Settings()

    if yaml_path is not None:
        yaml_settings = Settings.from_yaml(yaml_path)
        settings = settings.merge_overrides(yaml_settings.model_dump(exclude_unset=True))

    if overrides:
        settings = settings.merge_overrides(overrides)

    settings.ensure_directories()
    return settings


__all__ = ["Settings", "load_settings"]
