"""Registry of the plugins offered by plugin providers."""

from __future__ import annotations

import logging
from collections.abc import Callable, MutableMapping
from typing import Any

from .extensionregistry import Extension, ExtensionRegistry
from .plugin import Plugin, PluginError, PluginLoader, PluginProvider, PluginState
from .topologicalsort import topological_sort

log = logging.getLogger("albert")


def _always_confirm(text: str) -> bool:
    return True


def _log_notification(text: str) -> None:
    log.warning("%s", text)


def _error_entry(plugin: Plugin, error: str) -> str:
    return f"{plugin.metadata.name} ({plugin.id}):\n{error}"


class PluginRegistry:
    """Keeps track of the plugins of all registered plugin providers.

    Providers registered in the extension registry are picked up
    automatically. ``confirm`` is asked before enabling or disabling further
    plugins and ``notify`` receives error reports.
    """

    def __init__(
        self,
        extension_registry: ExtensionRegistry,
        load_enabled: bool = True,
        settings: MutableMapping[str, Any] | None = None,
        confirm: Callable[[str], bool] | None = None,
        notify: Callable[[str], None] | None = None,
    ) -> None:
        self.extension_registry = extension_registry
        self.load_enabled = load_enabled
        self.settings: MutableMapping[str, Any] = settings if settings is not None else {}
        self.on_plugins_changed: list[Callable[[], None]] = []
        self._confirm = confirm or _always_confirm
        self._notify = notify or _log_notification
        self._providers: set[PluginProvider] = set()
        self._plugins: dict[str, Plugin] = {}

        for extension in extension_registry.extensions().values():
            self._on_extension_added(extension)
        self._unsubscribe = extension_registry.subscribe(
            self._on_extension_added, self._on_extension_removed
        )

    def _on_extension_added(self, extension: Extension) -> None:
        if isinstance(extension, PluginProvider):
            self.add_provider(extension)

    def _on_extension_removed(self, extension: Extension) -> None:
        if isinstance(extension, PluginProvider):
            self.remove_provider(extension)

    def _emit_changed(self) -> None:
        for callback in list(self.on_plugins_changed):
            callback()

    def _report(self, title: str, errors: list[str]) -> None:
        if errors:
            self._notify(f"{title}:\n\n" + "\n".join(errors))

    def plugins(self) -> dict[str, Plugin]:
        """Registered plugins by id, ordered by id."""
        return dict(sorted(self._plugins.items()))

    def enable(self, plugin_id: str) -> None:
        """Enable and load a plugin and the plugins it depends on."""
        plugin = self._plugins[plugin_id]
        if plugin.is_enabled:
            return

        to_enable = sorted(
            (d for d in plugin.transitive_dependencies() if not d.is_enabled),
            key=lambda p: p.load_order,
        )
        if to_enable:
            text = f"Enabling '{plugin.id}' will also enable the following plugins:"
            text += "\n\n" + "\n".join(d.metadata.name for d in to_enable)
            if not self._confirm(text):
                return
            for dependency in to_enable:
                dependency.set_enabled(True)

        plugin.set_enabled(True)
        self.load(plugin_id)

    def disable(self, plugin_id: str) -> None:
        """Disable and unload a plugin and the plugins that depend on it."""
        plugin = self._plugins[plugin_id]
        if not plugin.is_enabled:
            return

        to_disable = sorted(
            (d for d in plugin.transitive_dependees() if d.is_enabled),
            key=lambda p: p.load_order,
        )
        if to_disable:
            text = f"Disabling '{plugin.id}' will also disable the following plugins:"
            text += "\n\n" + "\n".join(d.metadata.name for d in to_disable)
            if not self._confirm(text):
                return
            for dependee in to_disable:
                dependee.set_enabled(False)

        plugin.set_enabled(False)
        self.unload(plugin_id)

    def load(self, plugin_id: str) -> None:
        """Load a plugin after all plugins it depends on."""
        plugin = self._plugins[plugin_id]
        plugins = plugin.transitive_dependencies() | {plugin}

        errors = []
        for p in sorted(plugins, key=lambda p: p.load_order):
            if p.state is PluginState.LOADED:
                continue
            try:
                p.load(self.extension_registry)
            except PluginError as e:
                log.warning("Failed loading plugin '%s': %s", p.id, e)
                errors.append(_error_entry(p, str(e)))
        self._report("Failed loading plugins", errors)

    def unload(self, plugin_id: str) -> None:
        """Unload a plugin after all plugins that depend on it."""
        plugin = self._plugins[plugin_id]
        plugins = plugin.transitive_dependees() | {plugin}

        errors = []
        for p in sorted(plugins, key=lambda p: p.load_order, reverse=True):
            try:
                p.unload(self.extension_registry)
            except PluginError as e:
                log.warning("Failed unloading plugin '%s': %s", p.id, e)
                errors.append(_error_entry(p, str(e)))
        self._report("Failed unloading plugins", errors)

    def add_provider(self, provider: PluginProvider) -> None:
        """Register the plugins of ``provider`` and load the enabled ones."""
        if provider in self._providers:
            raise RuntimeError("Plugin provider registered twice.")

        unique_loaders: dict[str, PluginLoader] = {}
        for loader in provider.plugins():
            plugin_id = loader.metadata.id
            if plugin_id in unique_loaders:
                log.info(
                    "Plugin '%s' at '%s' shadowed by '%s'",
                    plugin_id, loader.path, unique_loaders[plugin_id].path,
                )
            else:
                unique_loaders[plugin_id] = loader

        graph = {
            plugin_id: set(loader.metadata.plugin_dependencies)
            for plugin_id, loader in unique_loaders.items()
        }
        topo = topological_sort(graph)

        if topo.error_set:
            msg = "Cyclic or missing dependencies detected:"
            for plugin_id in topo.error_set:
                msg += f"\n\n{plugin_id}: {', '.join(sorted(graph[plugin_id]))}"
                del unique_loaders[plugin_id]
            log.warning("%s", msg)
            self._notify(msg)

        new_plugins: dict[str, Plugin] = {}
        for plugin_id in topo.sorted:
            if plugin_id in self._plugins or plugin_id in new_plugins:
                raise RuntimeError(f"Duplicate plugin id registered: {plugin_id}")
            new_plugins[plugin_id] = Plugin(provider, unique_loaders[plugin_id], self.settings)

        self._providers.add(provider)
        for load_order, plugin in enumerate(new_plugins.values()):
            plugin.load_order = load_order
            for dependency_id in plugin.metadata.plugin_dependencies:
                dependency = new_plugins[dependency_id]
                plugin.dependencies.add(dependency)
                dependency.dependees.add(plugin)
        self._plugins.update(new_plugins)

        self._emit_changed()

        if not self.load_enabled:
            return

        to_load = sorted(
            (p for p in self._plugins.values()
             if p.provider is provider and p.is_user and p.is_enabled),
            key=lambda p: p.load_order,
        )
        errors = []
        for p in to_load:
            try:
                p.load(self.extension_registry)
            except PluginError as e:
                log.warning("Failed loading plugin '%s': %s", p.id, e)
                errors.append(_error_entry(p, str(e)))
        self._report("Failed loading plugins", errors)

    def remove_provider(self, provider: PluginProvider) -> None:
        """Unload and forget the plugins of ``provider``."""
        to_unload = sorted(
            (p for p in self._plugins.values()
             if p.provider is provider and p.is_user and p.state is PluginState.LOADED),
            key=lambda p: p.load_order,
            reverse=True,
        )
        errors = []
        for p in to_unload:
            try:
                p.unload(self.extension_registry)
            except PluginError as e:
                log.warning("Failed unloading plugin '%s': %s", p.id, e)
                errors.append(_error_entry(p, str(e)))
        self._report("Failed unloading plugins", errors)

        self._plugins = {
            plugin_id: plugin
            for plugin_id, plugin in self._plugins.items()
            if plugin.provider is not provider
        }
        self._providers.discard(provider)
        self._emit_changed()