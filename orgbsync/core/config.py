"""Settings loading and validation for the YAML config file."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from orgbsync.core.errors import ConfigLoadError, ConfigValidationError
from orgbsync.core.model import ExhaustionPolicy, ProfileBinding, RetryPolicy, Settings

CONFIG_FILENAME = "config.yaml"
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys.

    Implicit booleans are disabled so profile names such as ``Off`` stay strings.
    """


UniqueKeyLoader.yaml_implicit_resolvers = {
    key: list(value) for key, value in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

for first_char, mappings in list(UniqueKeyLoader.yaml_implicit_resolvers.items()):
    UniqueKeyLoader.yaml_implicit_resolvers[first_char] = [
        (tag, regexp)
        for tag, regexp in mappings
        if tag != "tag:yaml.org,2002:bool"
    ]


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ConfigValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    source: Path | None
    warnings: tuple[str, ...]


def _load_schema_validator() -> Any:
    schema_text = resources.files("orgbsync.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def default_config_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "orgbsync" / CONFIG_FILENAME


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(f"Could not read config file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigValidationError(f"Config file {path} must contain a mapping at root")
    return loaded


def _build_settings(doc: dict[str, Any], source: Path) -> tuple[Settings, list[str]]:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ConfigValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    defaults = Settings()
    server = doc.get("server", {})
    controllers = doc.get("controllers", {})
    profiles = doc.get("profiles", {})
    retry = doc.get("retry", {})
    warnings: list[str] = []

    binding = ProfileBinding(
        wake=profiles.get("wake", defaults.profiles.wake),
        sleep=profiles.get("sleep", defaults.profiles.sleep),
    )
    policy = RetryPolicy(
        max_attempts=int(retry.get("max_attempts", defaults.retry.max_attempts)),
        backoff_s=float(retry.get("backoff_s", defaults.retry.backoff_s)),
        on_exhausted=ExhaustionPolicy(retry.get("on_exhausted", defaults.retry.on_exhausted.value)),
    )
    if policy.backoff_s == 0:
        warning = f"retry.backoff_s is 0 in {source}; failed calls will be retried without pause"
        LOGGER.warning(warning)
        warnings.append(warning)

    settings = Settings(
        host=server.get("host", defaults.host),
        port=int(server.get("port", defaults.port)),
        client_name=server.get("client_name", defaults.client_name),
        expected_controllers=int(controllers.get("expected_count", defaults.expected_controllers)),
        direct_mode=controllers.get("direct_mode", defaults.direct_mode),
        default_profile=profiles.get("default", binding.wake),
        profiles=binding,
        retry=policy,
    )
    return settings, warnings


def load_settings(path: Path | None = None) -> LoadedSettings:
    """Load settings from ``path``, or from the default location if it exists.

    Without a config file the built-in defaults are returned.
    """
    if path is None:
        candidate = default_config_path()
        if not candidate.is_file():
            return LoadedSettings(settings=Settings(), source=None, warnings=())
        path = candidate
    elif not path.is_file():
        raise ConfigLoadError(f"Config file {path} does not exist")

    doc = _read_yaml(path)
    settings, warnings = _build_settings(doc, path)
    return LoadedSettings(settings=settings, source=path, warnings=tuple(warnings))
