"""Custom YAML config source with conf.d directory support.

Extends pydantic-settings YamlConfigSettingsSource to support:
- Main YAML file (e.g., conf/scheduler.yaml)
- conf.d directory merging (e.g., conf/scheduler.d/*.yaml)
- Alphabetical file ordering in conf.d

Each settings domain gets a factory that points the source at its own files.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic_settings.sources.providers.yaml import YamlConfigSettingsSource

if TYPE_CHECKING:
    from pydantic_settings import BaseSettings


class ConfDYamlConfigSettingsSource(YamlConfigSettingsSource):
    """YAML settings source with conf.d directory support.

    Supports the standard Linux conf.d pattern:
    - conf/<name>.yaml        (base configuration)
    - conf/<name>.d/*.yaml    (override files, merged alphabetically)

    The base directory can be moved with an environment variable
    (e.g. SCHEDULER_CONFIG_DIR=/etc/report-scheduler).
    """

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: str = "scheduler.yaml",
        confd_dir: str | None = "scheduler.d",
        config_dir_env: str = "CONFIG_DIR",
        base_dir: str = "conf",
        yaml_file_encoding: str | None = "utf-8",
    ) -> None:
        """Initialize the conf.d YAML source.

        Args:
            settings_cls: The settings class being configured.
            yaml_file: Main YAML file name.
            confd_dir: conf.d subdirectory name, or None to disable.
            config_dir_env: Environment variable to override base directory.
            base_dir: Default base directory for config files.
            yaml_file_encoding: File encoding for YAML files.
        """
        config_base = Path(os.getenv(config_dir_env, base_dir))

        yaml_files: list[Path] = []

        main_file = config_base / yaml_file
        if main_file.exists():
            yaml_files.append(main_file)

        # conf.d files sorted alphabetically for deterministic order
        if confd_dir:
            confd_path = config_base / confd_dir
            if confd_path.exists() and confd_path.is_dir():
                yaml_files.extend(sorted(confd_path.glob("*.yaml")))
                yaml_files.extend(sorted(confd_path.glob("*.yml")))

        self._yaml_files = yaml_files

        super().__init__(
            settings_cls=settings_cls,
            yaml_file=yaml_files if yaml_files else None,
            yaml_file_encoding=yaml_file_encoding,
        )

    def __repr__(self) -> str:
        files_str = ", ".join(str(f) for f in self._yaml_files)
        return f"{self.__class__.__name__}(yaml_files=[{files_str}])"


def _create_source(settings_cls: type[BaseSettings], name: str) -> ConfDYamlConfigSettingsSource:
    return ConfDYamlConfigSettingsSource(
        settings_cls,
        yaml_file=f"{name}.yaml",
        confd_dir=f"{name}.d",
        config_dir_env=f"{name.upper()}_CONFIG_DIR",
    )


# ============================================================================
# Convenience factory functions for each settings domain
# ============================================================================


def create_report_server_yaml_source(
    settings_cls: type[BaseSettings],
) -> ConfDYamlConfigSettingsSource:
    """Load conf/report_server.yaml and conf/report_server.d/*.yaml.

    Override directory with: REPORT_SERVER_CONFIG_DIR=/custom/path
    """
    return _create_source(settings_cls, "report_server")


def create_output_yaml_source(settings_cls: type[BaseSettings]) -> ConfDYamlConfigSettingsSource:
    """Load conf/output.yaml and conf/output.d/*.yaml."""
    return _create_source(settings_cls, "output")


def create_sftp_yaml_source(settings_cls: type[BaseSettings]) -> ConfDYamlConfigSettingsSource:
    """Load conf/sftp.yaml and conf/sftp.d/*.yaml."""
    return _create_source(settings_cls, "sftp")


def create_email_yaml_source(settings_cls: type[BaseSettings]) -> ConfDYamlConfigSettingsSource:
    """Load conf/email.yaml and conf/email.d/*.yaml."""
    return _create_source(settings_cls, "email")


def create_task_source_yaml_source(
    settings_cls: type[BaseSettings],
) -> ConfDYamlConfigSettingsSource:
    """Load conf/task_source.yaml and conf/task_source.d/*.yaml."""
    return _create_source(settings_cls, "task_source")


def create_scheduler_yaml_source(
    settings_cls: type[BaseSettings],
) -> ConfDYamlConfigSettingsSource:
    """Load conf/scheduler.yaml and conf/scheduler.d/*.yaml.

    The canonical report task list normally lives here.
    Override directory with: SCHEDULER_CONFIG_DIR=/custom/path
    """
    return _create_source(settings_cls, "scheduler")


def create_logging_yaml_source(settings_cls: type[BaseSettings]) -> ConfDYamlConfigSettingsSource:
    """Load conf/logging.yaml and conf/logging.d/*.yaml."""
    return _create_source(settings_cls, "logging")
