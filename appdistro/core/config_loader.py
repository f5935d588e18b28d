"""Configuration management for appdistro projects"""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from appdistro.constants import (
    APP_ID_ENV_VARS,
    BACKENDS,
    CONFIG_FILENAME,
    DOTENV_FILENAME,
    ENV_GROUPS,
)
from appdistro.core.validator import parse_list
from appdistro.exceptions import ConfigurationError
from appdistro.models import (
    CredentialSettings,
    DistributionSettings,
    Platform,
    TargetConfig,
)

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z0-9_]+)\s*\}\}")


def _optional_str(value: Any) -> Optional[str]:
    """YAML scalars such as 1.2 or true arrive as numbers and booleans."""
    if value is None:
        return None
    return str(value)


def _positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(f"Invalid distribution {name}: {value} (must be > 0)")
    return value


class AppDistroConfig:
    """Represents a loaded and validated appdistro configuration"""

    def __init__(self, config_dict: dict, config_path: Optional[Path] = None):
        """
        Initialize configuration

        Args:
            config_dict: Raw configuration dictionary from appdistro.yml
            config_path: Path to the config file (its directory is the project root)
        """
        self.raw_config = config_dict
        self.config_path = config_path
        self.root_dir = config_path.parent if config_path else Path.cwd()

        self.project_name = self._parse_project_name()
        self.credentials = self._parse_credentials()
        self.distribution = self._parse_distribution()
        self.targets = self._parse_targets()
        self.github_repo: Optional[str] = (self.raw_config.get("github") or {}).get(
            "repo"
        )

    def _section(self, name: str) -> dict:
        value = self.raw_config.get(name) or {}
        if not isinstance(value, dict):
            raise ConfigurationError(f"Invalid '{name}' section: must be a mapping")
        return value

    def _parse_project_name(self) -> str:
        project = self._section("project")
        return project.get("name") or self.root_dir.name

    def _parse_credentials(self) -> CredentialSettings:
        section = self._section("credentials")
        settings = CredentialSettings()
        if section.get("file"):
            settings.file = str(section["file"])
        if section.get("env"):
            settings.env_var = str(section["env"])
        return settings

    def _parse_distribution(self) -> DistributionSettings:
        section = self._section("distribution")
        settings = DistributionSettings()

        backend = section.get("backend", settings.backend)
        if backend not in BACKENDS:
            raise ConfigurationError(
                f"Unknown distribution backend '{backend}'",
                context=f"Supported backends: {', '.join(BACKENDS)}",
            )
        settings.backend = backend

        if section.get("command"):
            settings.command = str(section["command"])
        settings.credentials_flag = section.get("credentials_flag")
        settings.groups = parse_list(section.get("groups"))
        settings.testers = parse_list(section.get("testers"))
        settings.release_notes = _optional_str(section.get("release_notes")) or ""
        settings.release_notes_file = _optional_str(section.get("release_notes_file"))

        settings.timeout = _positive_int(
            section.get("timeout", settings.timeout), "timeout"
        )
        build_timeout = section.get("build_timeout")
        if build_timeout is not None:
            settings.build_timeout = _positive_int(build_timeout, "build_timeout")

        # CI secret wins over the file
        env_groups = os.environ.get(ENV_GROUPS)
        if env_groups:
            settings.groups = parse_list(env_groups)

        return settings

    def _parse_targets(self) -> Dict[Platform, TargetConfig]:
        section = self._section("targets")
        if not section:
            raise ConfigurationError(
                "Missing required section: 'targets'",
                context="Define at least one of: targets.android, targets.ios",
            )

        targets: Dict[Platform, TargetConfig] = {}
        for name, values in section.items():
            try:
                platform = Platform.from_name(name)
            except ValueError as e:
                raise ConfigurationError(str(e))

            values = values or {}
            if not isinstance(values, dict):
                raise ConfigurationError(f"Invalid target '{name}': must be a mapping")

            app_id = str(values.get("app_id") or "").strip()
            if not app_id:
                app_id = os.environ.get(APP_ID_ENV_VARS[platform.value], "").strip()

            targets[platform] = TargetConfig(
                platform=platform,
                app_id=app_id,
                artifact=str(values.get("artifact") or ""),
                build_command=_optional_str(values.get("build")),
                groups=parse_list(values["groups"]) if "groups" in values else None,
                testers=parse_list(values["testers"]) if "testers" in values else None,
                release_notes=_optional_str(values.get("release_notes")),
            )

        return targets

    def get_target(self, platform: Platform) -> TargetConfig:
        """
        Get a target by platform.

        Raises:
            ConfigurationError: If the platform is not configured
        """
        if platform not in self.targets:
            raise ConfigurationError(
                f"Target '{platform.value}' is not configured",
                context=f"Configured targets: {', '.join(self.list_platforms())}",
            )
        return self.targets[platform]

    def list_platforms(self) -> List[str]:
        """List configured platform names."""
        return [platform.value for platform in self.targets]

    def select_targets(self, names: Optional[List[str]] = None) -> List[TargetConfig]:
        """
        Select targets by platform name (all targets when names is empty).

        Raises:
            ConfigurationError: If a name is unknown or not configured
        """
        if not names:
            return list(self.targets.values())

        selected = []
        for name in names:
            try:
                platform = Platform.from_name(name)
            except ValueError as e:
                raise ConfigurationError(str(e))
            target = self.get_target(platform)
            if target not in selected:
                selected.append(target)
        return selected

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a display dictionary (no credential material)."""
        settings = self.distribution
        return {
            "project": self.project_name,
            "root": str(self.root_dir),
            "credentials": {
                "file": self.credentials.file,
                "env": self.credentials.env_var,
            },
            "distribution": {
                "backend": settings.backend,
                "command": settings.command,
                "credentials_flag": settings.credentials_flag,
                "groups": settings.groups,
                "testers": settings.testers,
                "release_notes": settings.release_notes,
                "release_notes_file": settings.release_notes_file,
                "timeout": settings.timeout,
                "build_timeout": settings.build_timeout,
            },
            "targets": {
                target.name: {
                    "app_id": target.app_id,
                    "artifact": target.artifact,
                    "build": target.build_command,
                    "groups": target.effective_groups(settings),
                    "testers": target.effective_testers(settings),
                }
                for target in self.targets.values()
            },
            "github": {"repo": self.github_repo},
        }

    def __repr__(self) -> str:
        return f"AppDistroConfig(project={self.project_name}, targets={self.list_platforms()})"


class ConfigLoader:
    """Finds, reads and resolves appdistro.yml"""

    def __init__(self, start_dir: Optional[Path] = None):
        self.start_dir = Path(start_dir) if start_dir else Path.cwd()

    def find_config(self) -> Path:
        """
        Walk up from the start directory looking for appdistro.yml.

        Returns:
            Path to the config file

        Raises:
            ConfigurationError: If no config file is found
        """
        current = self.start_dir.resolve()
        for directory in [current, *current.parents]:
            candidate = directory / CONFIG_FILENAME
            if candidate.is_file():
                return candidate

        raise ConfigurationError(
            f"{CONFIG_FILENAME} not found in {current} or any parent directory",
            context="Run: appdistro init",
        )

    def load(self, config_path: Optional[Path] = None) -> AppDistroConfig:
        """
        Load configuration

        Args:
            config_path: Explicit config file, otherwise searched upwards

        Returns:
            AppDistroConfig object

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        path = Path(config_path) if config_path else self.find_config()
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {path}")

        dotenv_path = path.parent / DOTENV_FILENAME
        if dotenv_path.is_file():
            load_dotenv(dotenv_path, override=False)

        try:
            with open(path, "r") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}", context=str(e))

        if not isinstance(raw, dict):
            raise ConfigurationError(f"Invalid config in {path}: must be a mapping")

        resolved = self.resolve_placeholders(raw)
        return AppDistroConfig(resolved, config_path=path.resolve())

    @classmethod
    def resolve_placeholders(cls, value: Any) -> Any:
        """
        Resolve {{ VAR }} placeholders from the environment, recursively.

        Raises:
            ConfigurationError: If a referenced variable is not set
        """
        if isinstance(value, dict):
            return {key: cls.resolve_placeholders(item) for key, item in value.items()}
        if isinstance(value, list):
            return [cls.resolve_placeholders(item) for item in value]
        if not isinstance(value, str):
            return value

        def replace_placeholder(match):
            var_name = match.group(1)
            if var_name not in os.environ:
                raise ConfigurationError(
                    f"Environment variable '{var_name}' is not set",
                    context=f"Referenced as {match.group(0)} in {CONFIG_FILENAME}",
                )
            return os.environ[var_name]

        return PLACEHOLDER_PATTERN.sub(replace_placeholder, value)
