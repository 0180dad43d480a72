from albertcore.inputhistory import InputHistory


def make(tmp_path, *entries):
    history = InputHistory(tmp_path / "albert.history")
    for entry in entries:
        history.add(entry)
    return history


def test_missing_file_gives_empty_history(tmp_path):
    history = InputHistory(tmp_path / "nope")
    assert history.lines == ()
    assert history.next("") is None


def test_duplicates_move_to_end(tmp_path):
    history = make(tmp_path, "a", "b", "a")
    assert history.lines == ("b", "a")


def test_empty_input_ignored(tmp_path):
    history = make(tmp_path, "a", "")
    assert history.lines == ("a",)


def test_navigation(tmp_path):
    history = make(tmp_path, "a", "b", "c")
    assert history.next("") == "c"
    assert history.next("") == "b"
    assert history.next("") == "a"
    assert history.next("") is None
    assert history.prev("") == "b"
    assert history.prev("") == "c"
    assert history.prev("") is None


def test_substring_is_case_insensitive(tmp_path):
    history = make(tmp_path, "Hello world", "other")
    assert history.next("HELLO") == "Hello world"


def test_next_skips_entry_equal_to_input(tmp_path):
    history = make(tmp_path, "abc", "ab")
    assert history.next("ab") == "abc"


def test_add_resets_iterator(tmp_path):
    history = make(tmp_path, "a", "b")
    history.next("")
    history.next("")
    history.add("c")
    assert history.next("") == "c"


def test_save_and_reload(tmp_path):
    with make(tmp_path, "first", "second") as history:
        pass
    reloaded = InputHistory(history.path)
    assert reloaded.lines == ("first", "second")