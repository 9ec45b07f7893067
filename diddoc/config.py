"""
diddoc configuration

Every setting is a ``ConfigValue`` living in a small dataclass group and is
addressed by a dotted path such as ``coercion.max_depth``. Lookup order:

    1. Environment variable bound to the value (DIDDOC_*)
    2. Runtime override (ConfigManager.set, or a loaded YAML file)
    3. Built-in default

YAML files mirror the group layout:

    coercion:
      max_depth: 32
    logging:
      level: debug
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar, Union

import yaml

from diddoc.coerce import DEFAULT_MAX_DEPTH

T = TypeVar("T")

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")

DEFAULT_CONFIG_PATHS = (
    Path("diddoc.yaml"),
    Path("config") / "diddoc.yaml",
)


class ConfigError(Exception):
    """Raised for unreadable files and unknown keys or paths."""
    pass


class ConfigValidationError(ConfigError):
    """A value was rejected by its type conversion or validator."""
    pass


@dataclass
class ConfigValue(Generic[T]):
    """One setting: default, optional env binding, validator, listeners."""
    default: T
    env_var: Optional[str] = None
    description: str = ""
    validator: Optional[Callable[[T], bool]] = None
    _value: Optional[T] = field(default=None, repr=False)
    _callbacks: List[Callable[[Optional[T], T], None]] = field(default_factory=list, repr=False)

    def get(self) -> T:
        raw = os.environ.get(self.env_var) if self.env_var else None
        if raw is not None:
            value = self._parse(raw)
            if self.validator is not None and not self.validator(value):
                raise ConfigValidationError(f"{self.env_var}={raw!r} rejected ({self.description})")
            return value
        if self._value is None:
            return self.default
        return self._value

    def set(self, value: Any) -> None:
        """Override the value; strings are parsed to the default's type."""
        if isinstance(value, str) and not isinstance(self.default, str):
            value = self._parse(value)
        if self.validator is not None and not self.validator(value):
            raise ConfigValidationError(f"{value!r} rejected ({self.description or 'no description'})")
        previous, self._value = self._value, value
        for listener in self._callbacks:
            listener(previous, value)

    def reset(self) -> None:
        self._value = None

    def _parse(self, raw: str) -> T:
        if isinstance(self.default, bool):
            return raw.strip().lower() in ("1", "true", "yes", "on")  # type: ignore[return-value]
        if isinstance(self.default, int):
            try:
                return int(raw.strip())  # type: ignore[return-value]
            except ValueError as ex:
                raise ConfigValidationError(f"not an integer: {raw!r}") from ex
        return raw  # type: ignore[return-value]

    def on_change(self, callback: Callable[[Optional[T], T], None]) -> None:
        """Call ``callback(old, new)`` after every successful ``set``."""
        self._callbacks.append(callback)


@dataclass
class CoercionConfig:
    max_depth: ConfigValue[int] = field(default_factory=lambda: ConfigValue(
        default=DEFAULT_MAX_DEPTH,
        env_var="DIDDOC_MAX_DEPTH",
        description="nesting levels the coercion engine descends before failing",
        validator=lambda x: isinstance(x, int) and x > 0,
    ))


@dataclass
class SerializationConfig:
    indent: ConfigValue[int] = field(default_factory=lambda: ConfigValue(
        default=0,
        env_var="DIDDOC_INDENT",
        description="indent used by Document.dumps, 0 for compact output",
        validator=lambda x: isinstance(x, int) and 0 <= x <= 8,
    ))


@dataclass
class LoggingConfig:
    level: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="warning",
        env_var="DIDDOC_LOG_LEVEL",
        description="level of the diddoc logger",
        validator=lambda x: str(x).lower() in LOG_LEVELS,
    ))
    structured: ConfigValue[bool] = field(default_factory=lambda: ConfigValue(
        default=False,
        env_var="DIDDOC_LOG_STRUCTURED",
        description="write log records as JSON lines",
    ))


def _walk(group: Any, prefix: str = ""):
    """Yield ``(dotted_path, ConfigValue)`` for every setting under ``group``."""
    for f in fields(group):
        node = getattr(group, f.name)
        path = f"{prefix}{f.name}"
        if isinstance(node, ConfigValue):
            yield path, node
        elif is_dataclass(node):
            yield from _walk(node, path + ".")


@dataclass
class DidDocConfig:
    """All diddoc settings."""
    coercion: CoercionConfig = field(default_factory=CoercionConfig)
    serialization: SerializationConfig = field(default_factory=SerializationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Effective values, nested by group."""
        out: Dict[str, Any] = {}
        for path, value in _walk(self):
            group, name = path.split(".", 1)
            out.setdefault(group, {})[name] = value.get()
        return out

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=False)


class ConfigManager:
    """Process-wide owner of the active ``DidDocConfig``."""

    _instance: Optional["ConfigManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "ConfigManager":
        with cls._lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._config = DidDocConfig()
                instance._loaded = []
                cls._instance = instance
            return cls._instance

    @property
    def config(self) -> DidDocConfig:
        return self._config

    @property
    def loaded_paths(self) -> List[Path]:
        return list(self._loaded)

    def load_from_file(self, path: Union[str, Path]) -> None:
        """Apply a YAML file on top of the current values.

        Unknown sections or keys raise ConfigError rather than being ignored.
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as ex:
            raise ConfigError(f"Configuration file not found: {path}") from ex
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as ex:
            raise ConfigError(f"Invalid YAML in {path}: {ex}") from ex

        if data is None:
            return
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: top level must be a mapping")

        for section, values in data.items():
            group = getattr(self._config, str(section), None)
            if group is None or not is_dataclass(group):
                raise ConfigError(f"Unknown config key: {section}")
            if not isinstance(values, dict):
                raise ConfigError(f"Invalid config section: {section} must be a mapping")
            for key, value in values.items():
                self._resolve(f"{section}.{key}").set(value)
        self._loaded.append(path)

    def load_defaults(self) -> List[Path]:
        """Load whichever of the default config files exist, in order."""
        candidates = list(DEFAULT_CONFIG_PATHS) + [Path.home() / ".diddoc" / "config.yaml"]
        found = [p for p in candidates if p.exists()]
        for p in found:
            self.load_from_file(p)
        return found

    def _resolve(self, path: str) -> ConfigValue:
        node: Any = self._config
        for part in path.split("."):
            node = getattr(node, part, None)
            if node is None:
                raise ConfigError(f"Unknown config key: {path}")
        if not isinstance(node, ConfigValue):
            raise ConfigError(f"Invalid config path: {path}")
        return node

    def get(self, path: str) -> Any:
        """Effective value at ``path``, e.g. ``get("coercion.max_depth")``."""
        return self._resolve(path).get()

    def set(self, path: str, value: Any) -> None:
        """Runtime override, e.g. ``set("logging.level", "debug")``."""
        self._resolve(path).set(value)

    def reset(self) -> None:
        """Back to defaults; forgets loaded files."""
        self._config = DidDocConfig()
        self._loaded = []

    def validate(self) -> List[str]:
        """Check every effective value. Returns one message per problem."""
        problems: List[str] = []
        for path, value in _walk(self._config):
            try:
                current = value.get()
            except ConfigError as ex:
                problems.append(f"{path}: {ex}")
                continue
            if value.validator is not None and not value.validator(current):
                problems.append(f"{path}: validation failed for value {current!r}")
        return problems


def get_config() -> DidDocConfig:
    return ConfigManager().config


def get_config_manager() -> ConfigManager:
    return ConfigManager()
