"""Configuration loading.

Reads a YAML file describing per resource type include/exclude policies and
orchestration limits.

Example:

    settings:
      max_concurrency: 10
      confirm_timeout: 300
    resources:
      nat-gateway:
        include:
          names_regex: ["^dev-"]
        exclude:
          tags: {keep: "true"}
          time_before: "2023-01-01T00:00:00Z"
        max_concurrency: 5

Resources tagged cloud-nuke-excluded=true are always kept unless the resource
block sets honor_exclusion_tag: false.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from cloudsweep.errors import ConfigurationError
from cloudsweep.models.batch_job import DEFAULT_HARD_CEILING, DEFAULT_MAX_BATCH_SIZE, DEFAULT_MAX_CONCURRENCY
from cloudsweep.models.rule import CreatedAfter, CreatedBefore, NameMatches, Rule, TagMatches
from cloudsweep.nuke.waiter import DEFAULT_CONFIRM_TIMEOUT, DEFAULT_POLL_INTERVAL
from cloudsweep.policy.evaluator import Policy

logger = logging.getLogger(__name__)

ENV_CONFIG_PATH = "CLOUDSWEEP_CONFIG"
ENV_LOG_LEVEL = "CLOUDSWEEP_LOG_LEVEL"
DEFAULT_CONFIG_FILE = "cloudsweep.yaml"

DEFAULT_BATCH_PAUSE = 10.0

RULE_KEYS = {"names_regex", "tags", "time_after", "time_before"}
POLICY_KEYS = {"include", "exclude", "honor_exclusion_tag"}


@dataclass(frozen=True)
class OrchestrationSettings:
    """Limits applied when deleting one resource type.

    Attributes:
        max_batch_size: Largest chunk dispatched at once
        max_concurrency: Worker pool size
        hard_ceiling: Maximum identifiers per orchestrator invocation
        poll_interval: Seconds between confirmation checks
        confirm_timeout: Maximum seconds to wait for confirmation
        batch_pause: Seconds to pause between invocations of the same type
    """

    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    hard_ceiling: int = DEFAULT_HARD_CEILING
    poll_interval: float = DEFAULT_POLL_INTERVAL
    confirm_timeout: float = DEFAULT_CONFIRM_TIMEOUT
    batch_pause: float = DEFAULT_BATCH_PAUSE

    def validate(self) -> bool:
        """Validate settings.

        Returns:
            True if validation passes

        Raises:
            ConfigurationError: If any limit is out of range
        """
        for name in ("max_batch_size", "max_concurrency", "hard_ceiling"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be a positive integer")

        if self.poll_interval <= 0:
            raise ConfigurationError("poll_interval must be positive")
        if self.confirm_timeout < 0 or self.batch_pause < 0:
            raise ConfigurationError("confirm_timeout and batch_pause cannot be negative")

        return True

    def merged(self, overrides: Mapping[str, Any]) -> OrchestrationSettings:
        """Return a copy with the given fields replaced and validated."""
        known = {f.name for f in dataclasses.fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigurationError(f"Unknown setting(s): {', '.join(sorted(unknown))}")

        values = {}
        for name, value in overrides.items():
            caster = int if name in ("max_batch_size", "max_concurrency", "hard_ceiling") else float
            try:
                values[name] = caster(value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid value for {name}: {value!r}") from e

        settings = dataclasses.replace(self, **values)
        settings.validate()
        return settings


@dataclass
class ResourceTypeConfig:
    """Policy and setting overrides for one resource type."""

    policy: Policy = field(default_factory=Policy)
    overrides: dict[str, Any] = field(default_factory=dict)


@dataclass
class Config:
    """Application configuration.

    Attributes:
        log_level: Logging level name
        settings: Global orchestration settings
        resources: Per resource type configuration
        source: File the configuration was loaded from (optional)
    """

    log_level: str = "INFO"
    settings: OrchestrationSettings = field(default_factory=OrchestrationSettings)
    resources: dict[str, ResourceTypeConfig] = field(default_factory=dict)
    source: Optional[Path] = None

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> Config:
        """Load configuration.

        Search order: explicit path, $CLOUDSWEEP_CONFIG, ./cloudsweep.yaml.
        Without any file the defaults are used (empty policies include
        everything, so callers should always pass a file for real runs).

        Args:
            path: Configuration file path (optional)

        Returns:
            Loaded configuration

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        explicit = path or os.environ.get(ENV_CONFIG_PATH)
        if explicit:
            config_path = Path(explicit).expanduser()
            if not config_path.is_file():
                raise ConfigurationError(f"Configuration file not found: {config_path}")
        else:
            config_path = Path(DEFAULT_CONFIG_FILE)
            if not config_path.is_file():
                logger.debug("No configuration file found, using defaults")
                return cls._apply_env(cls())

        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        config = cls.from_dict(data)
        config.source = config_path
        logger.debug(f"Loaded configuration from {config_path} ({len(config.resources)} resource type(s))")
        return cls._apply_env(config)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Config:
        """Build configuration from parsed YAML data.

        Raises:
            ConfigurationError: If the structure or any rule is invalid
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError("Configuration root must be a mapping")

        unknown = set(data) - {"settings", "resources"}
        if unknown:
            raise ConfigurationError(f"Unknown top-level key(s): {', '.join(sorted(unknown))}")

        raw_settings = dict(data.get("settings") or {})
        log_level = str(raw_settings.pop("log_level", "INFO")).upper()
        settings = OrchestrationSettings().merged(raw_settings)

        resources = {}
        for resource_type, block in (data.get("resources") or {}).items():
            resources[str(resource_type)] = _parse_resource_block(str(resource_type), block or {}, settings)

        return cls(log_level=log_level, settings=settings, resources=resources)

    @classmethod
    def _apply_env(cls, config: Config) -> Config:
        env_level = os.environ.get(ENV_LOG_LEVEL)
        if env_level:
            config.log_level = env_level.upper()
        return config

    def policy_for(self, resource_type: str) -> Policy:
        """Return the policy of a resource type (empty when unconfigured)."""
        resource_config = self.resources.get(resource_type)
        if resource_config is None:
            return Policy()
        return resource_config.policy

    def settings_for(self, resource_type: str) -> OrchestrationSettings:
        """Return global settings merged with the resource type's overrides."""
        resource_config = self.resources.get(resource_type)
        if resource_config is None or not resource_config.overrides:
            return self.settings
        return self.settings.merged(resource_config.overrides)


def _parse_resource_block(resource_type: str, block: Mapping[str, Any], settings: OrchestrationSettings):
    if not isinstance(block, Mapping):
        raise ConfigurationError(f"{resource_type}: resource configuration must be a mapping")

    include = _parse_rules(block.get("include") or {}, f"{resource_type}.include")
    exclude = _parse_rules(block.get("exclude") or {}, f"{resource_type}.exclude")
    honor_exclusion_tag = block.get("honor_exclusion_tag", True)
    if not isinstance(honor_exclusion_tag, bool):
        raise ConfigurationError(f"{resource_type}.honor_exclusion_tag: expected true or false")
    overrides = {key: value for key, value in block.items() if key not in POLICY_KEYS}

    # Validate overrides early so a bad file fails at load time
    try:
        settings.merged(overrides)
    except ConfigurationError as e:
        raise ConfigurationError(f"{resource_type}: {e}") from e

    policy = Policy.build(include=include, exclude=exclude, honor_exclusion_tag=honor_exclusion_tag)
    return ResourceTypeConfig(policy=policy, overrides=overrides)


def _parse_rules(block: Mapping[str, Any], where: str) -> list[Rule]:
    if not isinstance(block, Mapping):
        raise ConfigurationError(f"{where}: rule block must be a mapping")

    unknown = set(block) - RULE_KEYS
    if unknown:
        raise ConfigurationError(f"{where}: unknown rule key(s): {', '.join(sorted(unknown))}")

    rules: list[Rule] = []

    names = block.get("names_regex") or []
    if isinstance(names, (str, Mapping)):
        names = [names]
    elif not isinstance(names, list):
        raise ConfigurationError(f"{where}.names_regex: expected a list of regexes, got {names!r}")
    for entry in names:
        # Accept both plain strings and {regex: ...} entries
        pattern = entry.get("regex") if isinstance(entry, Mapping) else entry
        if not isinstance(pattern, str):
            raise ConfigurationError(f"{where}.names_regex: expected a string, got {entry!r}")
        rules.append(_wrap(where, NameMatches, pattern))

    tags = block.get("tags") or {}
    if not isinstance(tags, Mapping):
        raise ConfigurationError(f"{where}.tags: expected a mapping of tag key to regex")
    for key, pattern in tags.items():
        if isinstance(pattern, Mapping):
            pattern = pattern.get("regex")
        if not isinstance(pattern, str):
            raise ConfigurationError(f"{where}.tags.{key}: expected a regex string, got {pattern!r}")
        rules.append(_wrap(where, TagMatches, str(key), pattern))

    if block.get("time_after") is not None:
        rules.append(CreatedAfter(parse_time(block["time_after"], f"{where}.time_after")))
    if block.get("time_before") is not None:
        rules.append(CreatedBefore(parse_time(block["time_before"], f"{where}.time_before")))

    return rules


def _wrap(where: str, rule_cls, *args) -> Rule:
    try:
        return rule_cls(*args)
    except ConfigurationError as e:
        raise ConfigurationError(f"{where}: {e}") from e


def parse_time(value: Any, where: str = "time") -> datetime:
    """Parse a YAML time value into an aware UTC datetime.

    Accepts datetimes and dates (as produced by YAML) and ISO 8601 strings,
    including a trailing "Z".

    Raises:
        ConfigurationError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise ConfigurationError(f"{where}: invalid time {value!r}") from e
    else:
        raise ConfigurationError(f"{where}: invalid time {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
