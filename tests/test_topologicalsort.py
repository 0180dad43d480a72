from albertcore.topologicalsort import TopologicalSortResult, topological_sort


def test_linear():
    result = topological_sort({1: {2}, 2: {3}, 3: set()})
    assert result.sorted == [3, 2, 1]
    assert result.error_set == {}


def test_diamond():
    result = topological_sort({1: set(), 2: {1}, 3: {1}, 4: {2, 3}})
    assert result.sorted in ([1, 2, 3, 4], [1, 3, 2, 4])
    assert result.error_set == {}


def test_cycle():
    result = topological_sort({1: {2}, 2: {1}})
    assert result.sorted == []
    assert result.error_set == {1: {2}, 2: {1}}


def test_not_existing_node():
    result = topological_sort({1: {2}})
    assert result.sorted == []
    assert result.error_set == {1: {2}}


def test_input_graph_is_not_modified():
    graph = {"a": {"b"}, "b": set()}
    topological_sort(graph)
    assert graph == {"a": {"b"}, "b": set()}


def test_partial_cycle_keeps_resolvable_nodes():
    result = topological_sort({"a": set(), "b": {"a"}, "c": {"d"}, "d": {"c"}})
    assert result.sorted == ["a", "b"]
    assert result.error_set == {"c": {"d"}, "d": {"c"}}


def test_empty_graph():
    assert topological_sort({}) == TopologicalSortResult(sorted=[], error_set={})