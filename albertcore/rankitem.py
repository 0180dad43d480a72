"""Items, their actions and ranked wrappers for sorting results."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class Action:
    """Something an item can do when activated."""

    id: str
    text: str
    function: Callable[[], None]


class Item(ABC):
    """A result that can be displayed and activated."""

    @abstractmethod
    def id(self) -> str:
        """Identifier, unique within the extension that produced it."""

    @abstractmethod
    def text(self) -> str:
        """Primary text."""

    @abstractmethod
    def subtext(self) -> str:
        """Descriptive secondary text."""

    @abstractmethod
    def icon_urls(self) -> list[str]:
        """Icon URLs in order of preference."""

    def input_action_text(self) -> str:
        """Text to put into the input on completion. Empty by default."""
        return ""

    def actions(self) -> list[Action]:
        """Actions of this item. None by default."""
        return []


@dataclass(eq=False)
class RankItem:
    """An item together with a relevance score."""

    item: Item
    score: float

    def __lt__(self, other: RankItem) -> bool:
        if self.score != other.score:
            return self.score < other.score
        text, other_text = self.item.text(), other.item.text()
        if len(text) != len(other_text):
            return len(text) < len(other_text)
        return text > other_text

    def __gt__(self, other: RankItem) -> bool:
        if self.score != other.score:
            return self.score > other.score
        text, other_text = self.item.text(), other.item.text()
        if len(text) != len(other_text):
            return len(text) < len(other_text)
        return text < other_text