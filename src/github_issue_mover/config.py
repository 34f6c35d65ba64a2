"""
Configuration loading for the GitHub issue migration tool.

The configuration is a YAML file of the form::

    auth:
      user: migration-bot
      token: ghp_...
    target: acme/platform
    state: issues_processed.json
    repos:
      core:
        name: acme/core
        aliases: [core-legacy]
        label_mapping:
          bug: kind/bug
          "p_*": priority/*
          question: [kind/question, triage]
    labels:
      kind/bug: d73a4a
      module/core: "0e8a16"
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, NamedTuple

import yaml

from .exceptions import ConfigurationError

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE: Final[str] = "config.yml"
DEFAULT_STATE_FILE: Final[str] = "issues_processed.json"
DEFAULT_PAUSE_SECONDS: Final[float] = 5.0

_COLOR_PATTERN: Final[re.Pattern[str]] = re.compile(r"[0-9a-fA-F]{6}")


class RepoRef(NamedTuple):
    """A GitHub repository reference."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, value: str) -> RepoRef:
        """Parse an ``owner/name`` string.

        Raises:
            ConfigurationError: If the value is not exactly two non-empty '/'-separated parts
        """
        parts = str(value).strip().split("/")
        if len(parts) != 2 or not all(parts):
            msg = f"Invalid repo name '{value}'. Expected format: 'owner/repository'"
            raise ConfigurationError(msg)
        return cls(parts[0], parts[1])

    def __str__(self) -> str:
        return self.full_name


@dataclass
class RepoConfig:
    """A source repository to migrate from."""

    key: str
    ref: RepoRef
    label_mapping: dict[str, list[str]] = field(default_factory=dict)
    aliases: list[str] = field(default_factory=list)


@dataclass
class Config:
    """Validated contents of the configuration file."""

    user: str | None = None
    token: str | None = None
    target: RepoRef | None = None
    repos: dict[str, RepoConfig] = field(default_factory=dict)
    labels: dict[str, str] | None = None
    state: str | None = None
    pause: float | None = None
    link_pattern: str | None = None

    def repo(self, key: str) -> RepoConfig:
        """Return the source repository configured under ``key``."""
        try:
            return self.repos[key]
        except KeyError:
            known = ", ".join(sorted(self.repos)) or "none"
            msg = f"Unknown repo '{key}' (configured: {known})"
            raise ConfigurationError(msg) from None

    def resolve_target(self, override: str | None = None) -> RepoRef:
        """Return the target repository, preferring a command line override."""
        if override:
            return RepoRef.parse(override)
        if self.target is None:
            msg = "No target repository given (use --target or 'target:' in the configuration)"
            raise ConfigurationError(msg)
        return self.target

    def resolve_state_path(self, override: str | None = None) -> Path:
        return Path(override or self.state or DEFAULT_STATE_FILE)

    def required_labels(self) -> dict[str, str]:
        if not self.labels:
            msg = "No labels: defined in configuration"
            raise ConfigurationError(msg)
        return self.labels


def _normalize_color(label: str, value: Any) -> str:  # noqa: ANN401 - raw YAML scalar
    # YAML reads unquoted 000000 or 123456 as integers
    color = f"{value:06d}" if isinstance(value, int) else str(value).lstrip("#")
    if not _COLOR_PATTERN.fullmatch(color):
        msg = f"Invalid color '{value}' for label '{label}'. Expected six hex digits"
        raise ConfigurationError(msg)
    return color.lower()


def _parse_label_mapping(key: str, raw: Any) -> dict[str, list[str]]:  # noqa: ANN401
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        msg = f"repos.{key}.label_mapping must be a mapping"
        raise ConfigurationError(msg)

    mapping: dict[str, list[str]] = {}
    for source, target in raw.items():
        if isinstance(target, str):
            mapping[str(source)] = [target]
        elif isinstance(target, list) and all(isinstance(t, str) for t in target):
            mapping[str(source)] = list(target)
        else:
            msg = f"repos.{key}.label_mapping.{source} must be a label name or a list of label names"
            raise ConfigurationError(msg)
    return mapping


def _parse_repo(key: str, raw: Any) -> RepoConfig:  # noqa: ANN401
    if not isinstance(raw, dict) or not raw.get("name"):
        msg = f"repos.{key} needs a 'name' of the form 'owner/repository'"
        raise ConfigurationError(msg)
    aliases = raw.get("aliases") or []
    if isinstance(aliases, str):
        aliases = [aliases]
    return RepoConfig(
        key=key,
        ref=RepoRef.parse(raw["name"]),
        label_mapping=_parse_label_mapping(key, raw.get("label_mapping")),
        aliases=[str(a) for a in aliases],
    )


def _optional_str(section: dict[str, Any], key: str, prefix: str = "") -> str | None:
    value = section.get(key)
    if value is not None and not isinstance(value, str):
        msg = f"{prefix}{key} must be a string, got '{value}'"
        raise ConfigurationError(msg)
    return value or None


def parse_config(data: dict[str, Any]) -> Config:
    """Validate raw configuration data into a Config."""
    auth = data.get("auth") or {}
    if not isinstance(auth, dict):
        msg = "auth must be a mapping with 'user' and 'token'"
        raise ConfigurationError(msg)

    repos_raw = data.get("repos") or {}
    if not isinstance(repos_raw, dict):
        msg = "repos must be a mapping of repo keys"
        raise ConfigurationError(msg)
    repos = {str(key): _parse_repo(str(key), raw) for key, raw in repos_raw.items()}

    labels: dict[str, str] | None = None
    labels_raw = data.get("labels")
    if labels_raw is not None:
        if not isinstance(labels_raw, dict):
            msg = "labels must be a mapping of label name to color"
            raise ConfigurationError(msg)
        labels = {str(name): _normalize_color(str(name), color) for name, color in labels_raw.items()}

    pause = data.get("pause")
    if pause is not None and (isinstance(pause, bool) or not isinstance(pause, (int, float)) or pause < 0):
        msg = f"pause must be a non-negative number of seconds, got '{pause}'"
        raise ConfigurationError(msg)

    target = _optional_str(data, "target")
    return Config(
        user=_optional_str(auth, "user", "auth."),
        token=_optional_str(auth, "token", "auth."),
        target=RepoRef.parse(target) if target else None,
        repos=repos,
        labels=labels,
        state=_optional_str(data, "state"),
        pause=float(pause) if pause is not None else None,
        link_pattern=_optional_str(data, "link_pattern"),
    )


def load_config(path: str | Path) -> Config:
    """Read and validate the YAML configuration file.

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    config_path = Path(path)
    if not config_path.is_file():
        msg = f"No configuration file {config_path} found"
        raise ConfigurationError(msg)

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        msg = f"Cannot read configuration file {config_path}: {e}"
        raise ConfigurationError(msg) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        msg = f"Configuration file {config_path} must contain a mapping"
        raise ConfigurationError(msg)

    logger.debug(f"Loaded configuration from {config_path}")
    return parse_config(data)
