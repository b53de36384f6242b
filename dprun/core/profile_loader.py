"""Loading and validation of YAML session profiles."""

from __future__ import annotations

import json
import logging
import os
import uuid
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from dprun.core.builder import SessionBuilder
from dprun.core.encoding import parse_guid_or_named
from dprun.core.errors import ProfileLoadError, ProfileValidationError
from dprun.core.model import AddressPart, GUIDOrNamed, Host, Join, Named, SessionMode

LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


UniqueKeyLoader.yaml_implicit_resolvers = {
    key: list(value) for key, value in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

# Player and session names such as "yes" or "off" must stay strings.
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
            raise ProfileValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class Profile:
    id: str
    name: str
    mode: SessionMode
    service_provider: GUIDOrNamed
    application: uuid.UUID
    player_name: str | None = None
    address: tuple[AddressPart, ...] = ()
    session_name: str | None = None
    session_password: str | None = None
    cwd: Path | None = None

    def builder(self) -> SessionBuilder:
        """A session builder pre-filled from this profile."""
        builder = SessionBuilder().application(self.application)
        if isinstance(self.mode, Host):
            builder.host(self.mode.session_id)
        else:
            builder.join(self.mode.session_id)

        if isinstance(self.service_provider, Named):
            builder.named_service_provider(self.service_provider.name)
        else:
            builder.service_provider(self.service_provider)

        for part in self.address:
            if isinstance(part.key, Named):
                builder.named_address_part(part.key.name, part.value)
            else:
                builder.address_part(part.key, part.value)

        if self.player_name is not None:
            builder.player_name(self.player_name)
        if self.session_name is not None:
            builder.session_name(self.session_name)
        if self.session_password is not None:
            builder.session_password(self.session_password)
        if self.cwd is not None:
            builder.cwd(self.cwd)
        return builder


@dataclass(frozen=True)
class LoadedProfiles:
    profiles: dict[str, Profile]
    warnings: tuple[str, ...]


def _load_schema_validator() -> Any:
    schema_text = resources.files("dprun.schemas").joinpath("profile.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _profile_dirs() -> tuple[Path, Path]:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    xdg_data = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return xdg_config / "dprun/profiles", xdg_data / "dprun/profiles"


def _read_yaml(path: Path | Traversable) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ProfileLoadError(f"Could not read profile file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ProfileValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ProfileValidationError(f"Profile file {path} must contain a mapping at root")
    return loaded


def _parse_address(item: dict[str, Any], *, context: str) -> AddressPart:
    key = parse_guid_or_named(item["key"])
    if "number" in item:
        return AddressPart(key=key, value=int(item["number"]))
    if "string" in item:
        return AddressPart(key=key, value=item["string"])
    try:
        value = bytes.fromhex(item["binary"])
    except ValueError as exc:
        raise ProfileValidationError(f"{context} must contain hex digits only") from exc
    return AddressPart(key=key, value=value)


def _build_profile(doc: dict[str, Any], source: Path | Traversable) -> Profile:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ProfileValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    session_id = uuid.UUID(doc["session_id"]) if "session_id" in doc else None
    mode: SessionMode = Host(session_id) if doc["mode"] == "host" else Join(session_id)

    address = tuple(
        _parse_address(item, context=f"{doc['id']}.address[{index}].binary")
        for index, item in enumerate(doc.get("address", []))
    )

    return Profile(
        id=doc["id"],
        name=doc["name"],
        mode=mode,
        service_provider=parse_guid_or_named(doc["service_provider"]),
        application=uuid.UUID(doc["application"]),
        player_name=doc.get("player"),
        address=address,
        session_name=doc.get("session_name"),
        session_password=doc.get("session_password"),
        cwd=Path(doc["cwd"]).expanduser() if "cwd" in doc else None,
    )


def _iter_packaged_profile_paths() -> list[Traversable]:
    profile_root = resources.files("dprun.profiles")
    return [item for item in profile_root.iterdir() if item.name.endswith((".yml", ".yaml"))]


def _iter_user_profile_paths() -> list[Path]:
    paths: list[Path] = []
    for directory in _profile_dirs():
        if not directory.exists() or not directory.is_dir():
            continue
        paths.extend(sorted(p for p in directory.iterdir() if p.suffix in {".yml", ".yaml"}))
    return paths


def load_profiles() -> LoadedProfiles:
    profiles: dict[str, Profile] = {}
    warnings: list[str] = []

    for path in sorted(_iter_packaged_profile_paths(), key=lambda p: p.name):
        doc = _read_yaml(path)
        profile = _build_profile(doc, path)
        profiles[profile.id] = profile

    for path in _iter_user_profile_paths():
        doc = _read_yaml(path)
        profile = _build_profile(doc, path)
        if profile.id in profiles:
            warning = f"User profile '{profile.id}' overrides packaged profile"
            LOGGER.warning(warning)
            warnings.append(warning)
        profiles[profile.id] = profile

    return LoadedProfiles(profiles=profiles, warnings=tuple(warnings))
