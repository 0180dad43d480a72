import pytest

from albertcore.extensionregistry import Extension, ExtensionRegistry


class Ext(Extension):
    def __init__(self, ext_id):
        self._id = ext_id

    @property
    def id(self):
        return self._id

    @property
    def name(self):
        return self._id.upper()

    @property
    def description(self):
        return "test extension"


def test_register_and_list_sorted_by_id():
    registry = ExtensionRegistry()
    b, a = Ext("b"), Ext("a")
    registry.register(b)
    registry.register(a)
    assert list(registry.extensions()) == ["a", "b"]
    assert registry.extensions()["a"] is a


def test_empty_id_rejected():
    registry = ExtensionRegistry()
    with pytest.raises(ValueError):
        registry.register(Ext(""))
    assert registry.extensions() == {}


def test_duplicate_id_rejected():
    registry = ExtensionRegistry()
    first = Ext("x")
    registry.register(first)
    with pytest.raises(ValueError):
        registry.register(Ext("x"))
    assert registry.extensions()["x"] is first


def test_deregister_unknown_raises():
    registry = ExtensionRegistry()
    with pytest.raises(KeyError):
        registry.deregister(Ext("missing"))


def test_deregister_removes():
    registry = ExtensionRegistry()
    ext = Ext("x")
    registry.register(ext)
    registry.deregister(ext)
    assert registry.extensions() == {}


def test_subscribers_notified():
    registry = ExtensionRegistry()
    events = []
    registry.subscribe(lambda e: events.append(("added", e.id)),
                       lambda e: events.append(("removed", e.id)))
    ext = Ext("x")
    registry.register(ext)
    registry.deregister(ext)
    assert events == [("added", "x"), ("removed", "x")]


def test_failed_registration_does_not_notify():
    registry = ExtensionRegistry()
    events = []
    registry.subscribe(on_added=events.append)
    registry.register(Ext("x"))
    with pytest.raises(ValueError):
        registry.register(Ext("x"))
    assert len(events) == 1


def test_unsubscribe_stops_notifications():
    registry = ExtensionRegistry()
    events = []
    unsubscribe = registry.subscribe(on_added=events.append)
    unsubscribe()
    registry.register(Ext("x"))
    assert events == []