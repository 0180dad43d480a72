import logging

import pytest

from albertcore.extensionregistry import Extension, ExtensionRegistry
from albertcore.metadata import LoadType, PluginMetaData
from albertcore.plugin import (
    Plugin,
    PluginError,
    PluginLoader,
    PluginProvider,
    PluginState,
)


class FakeExtension(Extension):
    def __init__(self, ext_id):
        self._id = ext_id

    @property
    def id(self):
        return self._id

    @property
    def name(self):
        return self._id

    @property
    def description(self):
        return "fake"


class FakeLoader(PluginLoader):
    def __init__(self, plugin_id="files", load_type=LoadType.USER, version="1.0.0",
                 instance=None, load_error=None, unload_error=None):
        self._md = PluginMetaData(
            iid="org.albert.PluginInterface/0.28",
            id=plugin_id,
            version=version,
            name=plugin_id.title(),
            description="desc",
            license="MIT",
            url="https://example.com",
            authors=("alice",),
            load_type=load_type,
        )
        self._instance = instance if instance is not None else FakeExtension(plugin_id)
        self.load_error = load_error
        self.unload_error = unload_error
        self.loaded = False

    @property
    def path(self):
        return f"/plugins/{self._md.id}"

    @property
    def metadata(self):
        return self._md

    def load(self):
        if self.load_error:
            raise RuntimeError(self.load_error)
        self.loaded = True

    def unload(self):
        if self.unload_error:
            raise RuntimeError(self.unload_error)
        self.loaded = False

    def create_instance(self):
        return self._instance if self.loaded else None


@pytest.fixture
def provider():
    return PluginProvider("prov", "Provider", "Provides")


def test_enabled_read_from_settings(provider):
    plugin = Plugin(provider, FakeLoader("files"), {"files/enabled": True})
    assert plugin.is_enabled is True
    assert Plugin(provider, FakeLoader("files"), {}).is_enabled is False


def test_invalid_id_raises(provider):
    with pytest.raises(PluginError, match="Invalid plugin id"):
        Plugin(provider, FakeLoader("ABC-"))


def test_invalid_version_warns(provider, caplog):
    with caplog.at_level(logging.WARNING, logger="albert"):
        Plugin(provider, FakeLoader("files", version="1.x"))
    assert "Invalid version scheme" in caplog.text


def test_set_enabled_user_persists(provider):
    settings = {}
    plugin = Plugin(provider, FakeLoader("files"), settings)
    calls = []
    plugin.on_enabled_changed.append(lambda: calls.append(1))
    plugin.set_enabled(True)
    assert plugin.is_enabled is True
    assert settings["files/enabled"] is True
    assert calls == [1]


def test_set_enabled_frontend_ignored(provider):
    settings = {}
    plugin = Plugin(provider, FakeLoader("front", LoadType.FRONTEND), settings)
    plugin.set_enabled(True)
    assert plugin.is_enabled is False
    assert settings == {}
    assert plugin.is_user is False


def test_load_registers_extension(provider):
    registry = ExtensionRegistry()
    loader = FakeLoader("files")
    plugin = Plugin(provider, loader)
    plugin.load(registry)
    assert plugin.state is PluginState.LOADED
    assert plugin.instance is loader.create_instance()
    assert list(registry.extensions()) == ["files"]
    assert plugin.state_info.startswith("Load: ")


def test_load_twice_raises(provider):
    registry = ExtensionRegistry()
    plugin = Plugin(provider, FakeLoader("files"))
    plugin.load(registry)
    with pytest.raises(PluginError, match="Plugin is loaded."):
        plugin.load(registry)


def test_load_failure_sets_unloaded_with_info(provider):
    plugin = Plugin(provider, FakeLoader("files", load_error="boom"))
    with pytest.raises(PluginError, match="boom"):
        plugin.load(ExtensionRegistry())
    assert plugin.state is PluginState.UNLOADED
    assert plugin.state_info == "boom"
    assert plugin.instance is None


def test_registration_failure(provider):
    registry = ExtensionRegistry()
    registry.register(FakeExtension("files"))
    plugin = Plugin(provider, FakeLoader("files"))
    with pytest.raises(PluginError, match="Root extension registration failed"):
        plugin.load(registry)
    assert plugin.state is PluginState.UNLOADED


def test_unload_deregisters(provider):
    registry = ExtensionRegistry()
    loader = FakeLoader("files")
    plugin = Plugin(provider, loader)
    plugin.load(registry)
    plugin.unload(registry)
    assert plugin.state is PluginState.UNLOADED
    assert plugin.instance is None
    assert registry.extensions() == {}
    assert loader.loaded is False


def test_unload_failure_raises_and_sets_unloaded(provider):
    registry = ExtensionRegistry()
    plugin = Plugin(provider, FakeLoader("files", unload_error="stuck"))
    plugin.load(registry)
    with pytest.raises(PluginError, match="stuck"):
        plugin.unload(registry)
    assert plugin.state is PluginState.UNLOADED


def test_unload_when_unloaded_resets_info(provider):
    plugin = Plugin(provider, FakeLoader("files", load_error="boom"))
    with pytest.raises(PluginError):
        plugin.load(ExtensionRegistry())
    plugin.unload(ExtensionRegistry())
    assert plugin.state_info == ""
    assert plugin.local_state_string() == "Plugin is unloaded."


def test_state_changed_callbacks(provider):
    plugin = Plugin(provider, FakeLoader("files"))
    states = []
    plugin.on_state_changed.append(lambda: states.append(plugin.state))
    plugin.load(ExtensionRegistry())
    assert states == [PluginState.BUSY, PluginState.LOADED]


def test_transitive_relations(provider):
    a = Plugin(provider, FakeLoader("a"))
    b = Plugin(provider, FakeLoader("b"))
    c = Plugin(provider, FakeLoader("c"))
    a.dependencies.add(b)
    b.dependees.add(a)
    b.dependencies.add(c)
    c.dependees.add(b)
    assert a.transitive_dependencies() == {b, c}
    assert c.transitive_dependees() == {a, b}
    assert c.transitive_dependencies() == set()


def test_provider_filters_by_load_type():
    user = FakeLoader("files")
    front = FakeLoader("front", LoadType.FRONTEND)
    provider = PluginProvider("prov", "Provider", "Provides", [user, front])
    assert provider.plugins() == [user]
    assert provider.frontend_plugins() == [front]
    assert provider.id == "prov"