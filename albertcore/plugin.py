"""Plugins, their loaders and providers."""

from __future__ import annotations

import enum
import logging
import re
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, MutableMapping
from typing import Any

from .extensionregistry import Extension, ExtensionRegistry
from .metadata import LoadType, PluginMetaData

log = logging.getLogger("albert")

_ID_REGEX = re.compile(r"[a-z0-9_]")
_VERSION_REGEX = re.compile(r"^(\d+)(?:\.(\d+))?\.(\d+)$")
_UNKNOWN_ERROR = "Unknown exception occurred."


class PluginError(RuntimeError):
    """A plugin is invalid or failed to load or unload."""


class PluginState(enum.Enum):
    INVALID = "invalid"
    UNLOADED = "unloaded"
    LOADED = "loaded"
    BUSY = "busy"


class PluginLoader(ABC):
    """Loads the code of one plugin and creates its instance."""

    @property
    @abstractmethod
    def path(self) -> str:
        """Location of the plugin."""

    @property
    @abstractmethod
    def metadata(self) -> PluginMetaData:
        """Metadata of the plugin."""

    @abstractmethod
    def load(self) -> None:
        """Load the plugin code. Raises on failure."""

    @abstractmethod
    def unload(self) -> None:
        """Unload the plugin code. Raises on failure."""

    @abstractmethod
    def create_instance(self) -> Any:
        """The plugin instance, or None if the plugin is not loaded."""


class PluginProvider(Extension):
    """An extension that offers plugin loaders."""

    def __init__(
        self,
        provider_id: str,
        name: str,
        description: str,
        loaders: Iterable[PluginLoader] = (),
    ) -> None:
        self._id = provider_id
        self._name = name
        self._description = description
        self._loaders = list(loaders)

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    def plugins(self) -> list[PluginLoader]:
        """Loaders of user plugins."""
        return [pl for pl in self._loaders if pl.metadata.load_type is LoadType.USER]

    def frontend_plugins(self) -> list[PluginLoader]:
        """Loaders of frontend plugins."""
        return [pl for pl in self._loaders if pl.metadata.load_type is LoadType.FRONTEND]


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class Plugin:
    """A plugin known to the app, with its state and dependency links."""

    def __init__(
        self,
        provider: PluginProvider,
        loader: PluginLoader,
        settings: MutableMapping[str, Any] | None = None,
    ) -> None:
        self.provider = provider
        self.loader = loader
        self.settings: MutableMapping[str, Any] = settings if settings is not None else {}
        self.dependencies: set[Plugin] = set()
        self.dependees: set[Plugin] = set()
        self.load_order = 0
        self.on_state_changed: list[Callable[[], None]] = []
        self.on_enabled_changed: list[Callable[[], None]] = []
        self._state = PluginState.UNLOADED
        self._state_info = ""
        self._instance: Any = None
        self._enabled = bool(self.settings.get(self._enabled_key, False))

        md = loader.metadata
        if not _ID_REGEX.search(md.id):
            raise PluginError("Invalid plugin id. Use [a-z0-9_].")
        if not _VERSION_REGEX.match(md.version):
            log.warning("%s metadata: Invalid version scheme. Use '<major>.[<minor>.]<patch>'.", md.id)
        for label, value in (
            ("Name", md.name),
            ("Description", md.description),
            ("License", md.license),
            ("URL", md.url),
            ("Authors", md.authors),
        ):
            if not value:
                log.warning("%s metadata: %s should not be empty.", md.id, label)

    @property
    def _enabled_key(self) -> str:
        return f"{self.id}/enabled"

    @property
    def id(self) -> str:
        return self.loader.metadata.id

    @property
    def metadata(self) -> PluginMetaData:
        return self.loader.metadata

    @property
    def path(self) -> str:
        return self.loader.path

    @property
    def is_user(self) -> bool:
        return self.loader.metadata.load_type is LoadType.USER

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def state(self) -> PluginState:
        return self._state

    @property
    def state_info(self) -> str:
        return self._state_info

    @property
    def instance(self) -> Any:
        return self._instance

    def set_enabled(self, enable: bool) -> None:
        """Persist the enabled flag. Only user plugins can be toggled."""
        if not self.is_user:
            return
        self._enabled = bool(enable)
        self.settings[self._enabled_key] = self._enabled
        for callback in list(self.on_enabled_changed):
            callback()

    def _set_state(self, state: PluginState, info: str = "") -> None:
        self._state = state
        self._state_info = info
        for callback in list(self.on_state_changed):
            callback()

    def local_state_string(self) -> str:
        if self._state is PluginState.INVALID:
            return "Plugin is invalid."
        if self._state is PluginState.UNLOADED:
            return "Plugin is unloaded."
        if self._state is PluginState.LOADED:
            return "Plugin is loaded."
        return f"Plugin is busy: {self._state_info}"

    def load(self, registry: ExtensionRegistry) -> None:
        """Load, instantiate and register the plugin. Raises PluginError."""
        if self._state is not PluginState.UNLOADED:
            raise PluginError(self.local_state_string())

        self._set_state(PluginState.BUSY, "Loading…")
        try:
            start = time.perf_counter()
            self.loader.load()
            load_ms = _elapsed_ms(start)
            log.debug("%d ms spent loading plugin '%s'", load_ms, self.id)

            start = time.perf_counter()
            instance = self.loader.create_instance()
            create_ms = _elapsed_ms(start)
            log.debug("%d ms spent instanciating plugin '%s'", create_ms, self.id)

            if instance is None:
                raise PluginError("create_instance() returned None")

            if isinstance(instance, Extension):
                try:
                    registry.register(instance)
                except ValueError as e:
                    raise PluginError(f"Root extension registration failed: '{self.id}'") from e

            self._instance = instance
        except Exception as e:
            error = str(e) or _UNKNOWN_ERROR
            self._instance = None
            self._set_state(PluginState.UNLOADED, error)
            raise PluginError(error) from e

        self._set_state(
            PluginState.LOADED, f"Load: {load_ms} ms, Instanciate: {create_ms} ms"
        )

    def unload(self, registry: ExtensionRegistry) -> None:
        """Deregister and unload the plugin. Raises PluginError."""
        if self._state is PluginState.UNLOADED:
            self._set_state(PluginState.UNLOADED)
            return
        if self._state is not PluginState.LOADED:
            raise PluginError(self.local_state_string())

        self._set_state(PluginState.BUSY, "Unloading…")
        error = ""
        try:
            start = time.perf_counter()
            if isinstance(self._instance, Extension):
                registry.deregister(self._instance)
            self.loader.unload()
            log.debug("%d ms spent unloading plugin '%s'", _elapsed_ms(start), self.id)
            self._instance = None
        except Exception as e:
            error = str(e) or _UNKNOWN_ERROR

        self._set_state(PluginState.UNLOADED)
        if error:
            raise PluginError(error)

    def transitive_dependencies(self) -> set[Plugin]:
        result = set(self.dependencies)
        for dependency in self.dependencies:
            result |= dependency.transitive_dependencies()
        return result

    def transitive_dependees(self) -> set[Plugin]:
        result = set(self.dependees)
        for dependee in self.dependees:
            result |= dependee.transitive_dependees()
        return result