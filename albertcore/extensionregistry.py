"""Registry of extensions identified by their id."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

ExtensionCallback = Callable[["Extension"], None]


class Extension(ABC):
    """Something that can be registered in an :class:`ExtensionRegistry`."""

    @property
    @abstractmethod
    def id(self) -> str:
        """Unique identifier."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human readable name."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Brief description."""


class ExtensionRegistry:
    """Holds extensions by id and notifies subscribers of changes."""

    def __init__(self) -> None:
        self._extensions: dict[str, Extension] = {}
        self._on_added: list[ExtensionCallback] = []
        self._on_removed: list[ExtensionCallback] = []

    def register(self, extension: Extension) -> None:
        """Add ``extension``; raise ValueError on an empty or duplicate id."""
        ext_id = extension.id
        if not ext_id:
            raise ValueError("Registered extension id must not be empty")
        if ext_id in self._extensions:
            raise ValueError(f"Extension registered more than once: {ext_id}")
        self._extensions[ext_id] = extension
        for callback in list(self._on_added):
            callback(extension)

    def deregister(self, extension: Extension) -> None:
        """Remove ``extension``; raise KeyError if its id is not registered."""
        ext_id = extension.id
        if self._extensions.pop(ext_id, None) is None:
            raise KeyError(f"Removed extension that has not been registered before: {ext_id}")
        for callback in list(self._on_removed):
            callback(extension)

    def subscribe(
        self,
        on_added: ExtensionCallback | None = None,
        on_removed: ExtensionCallback | None = None,
    ) -> Callable[[], None]:
        """Call the given callbacks on later changes. Returns an unsubscriber."""
        if on_added is not None:
            self._on_added.append(on_added)
        if on_removed is not None:
            self._on_removed.append(on_removed)

        def unsubscribe() -> None:
            if on_added is not None and on_added in self._on_added:
                self._on_added.remove(on_added)
            if on_removed is not None and on_removed in self._on_removed:
                self._on_removed.remove(on_removed)

        return unsubscribe

    def extensions(self) -> dict[str, Extension]:
        """Registered extensions by id, ordered by id."""
        return dict(sorted(self._extensions.items()))