from albertcore.rankitem import Action, Item, RankItem


class TextItem(Item):
    def __init__(self, text):
        self._text = text

    def id(self):
        return self._text

    def text(self):
        return self._text

    def subtext(self):
        return ""

    def icon_urls(self):
        return []


def test_item_defaults():
    item = TextItem("x")
    assert Item.input_action_text(item) == ""
    assert Item.actions(item) == []
    ranked = RankItem(item, 0.0)
    assert ranked.item.input_action_text() == ""


def test_action_holds_callable():
    calls = []
    action = Action("run", "Run", lambda: calls.append(1))
    action.function()
    assert (action.id, action.text, calls) == ("run", "Run", [1])


def test_score_decides_first():
    low = RankItem(TextItem("a"), 0.5)
    high = RankItem(TextItem("abc"), 1.0)
    assert low < high
    assert not low > high
    assert high > low
    assert not high < low


def test_shorter_text_ranks_ahead_on_equal_score():
    short = RankItem(TextItem("ab"), 1.0)
    long = RankItem(TextItem("abc"), 1.0)
    assert short < long
    assert short > long
    assert not long < short
    assert not long > short


def test_equal_length_uses_text_order():
    a = RankItem(TextItem("a"), 1.0)
    b = RankItem(TextItem("b"), 1.0)
    assert a > b
    assert not b > a
    assert b < a
    assert not a < b


def test_sorting_by_score():
    items = [RankItem(TextItem(t), s) for t, s in [("x", 0.3), ("y", 0.9), ("z", 0.1)]]
    ranked = sorted(items)
    scores = [ri.score for ri in ranked]
    assert scores == sorted(scores)
    assert [ri.item.text() for ri in sorted(items, reverse=True)] == ["y", "x", "z"]