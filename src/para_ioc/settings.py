"""Ambient settings for services built through the factory facade.

A :class:`Settings` object is a frozen snapshot of plugin preferences. It is
normally produced by :func:`load_settings`, which starts from a defaults
mapping and lays each loaded layer over it, later layers winning. A layer is
either a plain mapping, the path of a saved settings file (``.json``,
``.yaml`` or ``.yml``), or an :class:`EnvSource`.

:func:`save_settings` writes a snapshot back out as JSON so that the next
start-up can load it as a layer.
"""

import copy
import json
import os
from collections.abc import Mapping as MappingABC
from typing import Any, Dict, Iterator, Mapping, Optional, Union

from .exceptions import ConfigurationError

PathLike = Union[str, "os.PathLike[str]"]

YAML_SUFFIXES = (".yaml", ".yml")


class EnvSource:
    """Settings layer taken from prefixed environment variables.

    ``PARA_VAULT__INBOX=Inbox`` with ``prefix="PARA_"`` becomes
    ``{"vault": {"inbox": "Inbox"}}``. Values stay strings.

    Args:
        prefix: Only variables starting with this prefix are read.
        environ: Mapping to read instead of ``os.environ``.
    """

    def __init__(self, prefix: str = "", environ: Optional[Mapping[str, str]] = None) -> None:
        self.prefix = prefix
        self._environ = environ

    def read(self) -> Dict[str, Any]:
        env = self._environ if self._environ is not None else os.environ
        layer: Dict[str, Any] = {}
        for name in sorted(env):
            if not name.startswith(self.prefix):
                continue
            path = [p.lower() for p in name[len(self.prefix):].split("__") if p]
            if not path:
                continue
            *parents, leaf = path
            node = layer
            for part in parents:
                if not isinstance(node.get(part), dict):
                    node[part] = {}
                node = node[part]
            node[leaf] = env[name]
        return layer


def read_settings_file(path: PathLike) -> Dict[str, Any]:
    """Read one saved settings file.

    JSON is used unless the suffix names YAML, which needs PyYAML
    (``pip install para-ioc[yaml]``). An empty YAML file reads as ``{}``.

    Raises:
        ConfigurationError: If the file is missing, unparsable, needs an
            uninstalled parser, or does not hold a top-level mapping.
    """
    filename = os.fspath(path)
    is_yaml = filename.lower().endswith(YAML_SUFFIXES)
    parse = json.load
    parse_errors: tuple = (OSError, ValueError)
    if is_yaml:
        try:
            import yaml
        except ImportError as e:
            raise ConfigurationError(f"Reading {filename} requires PyYAML") from e
        parse = yaml.safe_load
        parse_errors = (OSError, yaml.YAMLError)

    try:
        with open(filename, encoding="utf-8") as fh:
            content = parse(fh)
    except parse_errors as e:
        raise ConfigurationError(f"Cannot read settings file {filename}: {e}") from e

    if content is None and is_yaml:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(f"Settings file {filename} must hold a mapping, got {type(content).__name__}")
    return content


def save_settings(settings: Mapping[str, Any], path: PathLike) -> None:
    """Write *settings* to *path* as indented JSON."""
    filename = os.fspath(path)
    try:
        with open(filename, "w", encoding="utf-8") as fh:
            json.dump(_plain(settings), fh, indent=2, sort_keys=True)
    except (OSError, TypeError) as e:
        raise ConfigurationError(f"Cannot write settings file {filename}: {e}") from e


def _overlay(base: Dict[str, Any], top: Mapping[str, Any]) -> Dict[str, Any]:
    # Sections present on both sides are combined; anything else in top replaces base.
    result = dict(base)
    for name, value in top.items():
        current = result.get(name)
        if isinstance(current, dict) and isinstance(value, dict):
            result[name] = _overlay(current, value)
        else:
            result[name] = value
    return result


def _plain(node: Any) -> Any:
    if isinstance(node, Settings):
        return node.as_dict()
    if isinstance(node, MappingABC):
        return {k: _plain(v) for k, v in node.items()}
    return node


class Settings(MappingABC):
    """Immutable, nested settings mapping.

    Nested mappings are returned as :class:`Settings` too, so callers can
    never mutate what other services see. :meth:`get` accepts dotted paths.
    """

    def __init__(self, data: Optional[Mapping[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = copy.deepcopy(_plain(data or {}))

    def __getitem__(self, key: str) -> Any:
        return self._wrap(self._data[key])

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Settings({self._data!r})"

    @staticmethod
    def _wrap(value: Any) -> Any:
        if isinstance(value, dict):
            return Settings(value)
        if isinstance(value, list):
            return copy.deepcopy(value)
        return value

    def get(self, path: str, default: Any = None) -> Any:
        node: Any = self._data
        for name in path.split("."):
            if not isinstance(node, dict) or name not in node:
                return default
            node = node[name]
        return self._wrap(node)

    def merged(self, changes: Mapping[str, Any]) -> "Settings":
        """Return new settings with *changes* laid over these."""
        return Settings(_overlay(self._data, _plain(changes)))

    def as_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)


def _read_layer(layer: Any) -> Mapping[str, Any]:
    if isinstance(layer, EnvSource):
        return layer.read()
    if isinstance(layer, MappingABC):
        return layer
    if isinstance(layer, (str, os.PathLike)):
        return read_settings_file(layer)
    raise ConfigurationError(f"Unsupported settings layer: {type(layer).__name__}")


def load_settings(*layers: Any, defaults: Optional[Mapping[str, Any]] = None) -> Settings:
    """Build :class:`Settings` from *defaults* with each layer laid over it.

    Args:
        *layers: Mappings, settings file paths or :class:`EnvSource`
            objects, applied in order.
        defaults: The starting values; keys no layer mentions keep them.

    Raises:
        ConfigurationError: If a layer has an unsupported type or a settings
            file cannot be read.

    Example:
        >>> settings = load_settings(
        ...     "data.json",
        ...     EnvSource(prefix="PARA_"),
        ...     defaults={"ai": {"provider": "ollama", "timeout": 30}},
        ... )
    """
    data = _plain(defaults or {})
    for layer in layers:
        data = _overlay(data, _plain(_read_layer(layer)))
    return Settings(data)
