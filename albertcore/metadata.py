"""Plugin metadata and interface identifier checks."""

from __future__ import annotations

import enum
import locale as _locale
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

log = logging.getLogger("albert")

IID_PATTERN = r"org.albert.PluginInterface/(\d+).(\d+)"
_IID_REGEX = re.compile(IID_PATTERN)

_LOAD_TYPE_FRONTEND = "frontend"
_LOAD_TYPE_USER = "user"


class InterfaceError(ValueError):
    """The interface identifier of a plugin is missing or incompatible."""


class LoadType(enum.Enum):
    """Who loads a plugin: the user or the app, as its frontend."""

    USER = _LOAD_TYPE_USER
    FRONTEND = _LOAD_TYPE_FRONTEND


@dataclass(frozen=True)
class PluginMetaData:
    """Descriptive data shipped with a plugin."""

    iid: str = ""
    id: str = ""
    version: str = ""
    name: str = ""
    description: str = ""
    license: str = ""
    url: str = ""
    translations: tuple[str, ...] = ()
    authors: tuple[str, ...] = ()
    runtime_dependencies: tuple[str, ...] = ()
    binary_dependencies: tuple[str, ...] = ()
    plugin_dependencies: tuple[str, ...] = ()
    third_party_credits: tuple[str, ...] = ()
    platforms: tuple[str, ...] = ()
    load_type: LoadType = LoadType.USER


def check_iid(iid: str, major: int, minor: int) -> tuple[int, int]:
    """Check ``iid`` against the app's interface version ``major.minor``.

    Returns the interface version of the plugin. Raises InterfaceError if
    the identifier is empty, malformed, of another major version or of a
    newer minor version.
    """
    if not iid:
        raise InterfaceError("Not a plugin")

    match = _IID_REGEX.search(iid)
    if match is None:
        raise InterfaceError(
            f"Invalid interface identifier (IID) pattern : '{iid}'. Expected '{IID_PATTERN}'."
        )

    plugin_major, plugin_minor = int(match.group(1)), int(match.group(2))
    if plugin_major != major:
        raise InterfaceError(f"Incompatible major version: {plugin_major}. Expected: {major}.")
    if plugin_minor > minor:
        raise InterfaceError(
            f"Incompatible minor version: {plugin_minor}. Supported up to: {minor}."
        )
    return plugin_major, plugin_minor


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _string_list(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)):
        return tuple(
            item if isinstance(item, str) else str(item)
            for item in value
            if isinstance(item, (str, int, float)) and not isinstance(item, bool)
        )
    return ()


def _current_locale() -> str:
    return _locale.getlocale()[0] or ""


def localized_value(raw: Mapping[str, Any], key: str, locale: str | None = None) -> str:
    """Value of ``key`` in ``raw``, preferring ``key[<locale>]`` then ``key[<language>]``."""
    locale = _current_locale() if locale is None else locale
    if locale:
        language = locale.split("_")[0]
        for candidate in (f"{key}[{locale}]", f"{key}[{language}]"):
            value = _as_str(raw.get(candidate))
            if value:
                return value
    return _as_str(raw.get(key))


def parse_metadata(iid: str, raw: Mapping[str, Any], locale: str | None = None) -> PluginMetaData:
    """Build metadata from the raw JSON object of a plugin."""
    load_type = LoadType.USER
    load_type_string = _as_str(raw.get("loadtype"))
    if load_type_string == _LOAD_TYPE_FRONTEND:
        load_type = LoadType.FRONTEND
    elif load_type_string and load_type_string != _LOAD_TYPE_USER:
        log.warning("Invalid load type '%s'. Default to '%s'.", load_type_string, _LOAD_TYPE_USER)

    return PluginMetaData(
        iid=iid,
        id=_as_str(raw.get("id")),
        version=_as_str(raw.get("version")),
        name=localized_value(raw, "name", locale),
        description=localized_value(raw, "description", locale),
        license=_as_str(raw.get("license")),
        url=_as_str(raw.get("url")),
        translations=_string_list(raw.get("translations")),
        authors=_string_list(raw.get("authors")),
        runtime_dependencies=_string_list(raw.get("runtime_dependencies")),
        binary_dependencies=_string_list(raw.get("binary_dependencies")),
        plugin_dependencies=_string_list(raw.get("plugin_dependencies")),
        third_party_credits=_string_list(raw.get("credits")),
        platforms=(),
        load_type=load_type,
    )