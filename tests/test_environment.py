import pytest

from marvelsh.environment import (
    Environment,
    ShellState,
    export_argument,
    expand_value,
    is_valid_identifier,
    update_or_add,
)


def test_from_strings_splits_at_first_equals_and_skips_bare():
    env = Environment.from_strings(["A=1", "NOEQ", "B=x=y", "C="])
    assert list(env) == [("A", "1"), ("B", "x=y"), ("C", "")]
    assert "NOEQ" not in env
    assert len(env) == 3


def test_from_strings_keeps_first_duplicate():
    env = Environment.from_strings(["A=first", "A=second"])
    assert env.get("A") == "first"


def test_get_default():
    env = Environment({"A": "1"})
    assert env.get("A") == "1"
    assert env.get("MISSING") is None
    assert env.get("MISSING", "") == ""


def test_set_keeps_position_and_appends_new():
    env = Environment([("A", "1"), ("B", "2")])
    env.set("A", "3")
    env.set("C", "4")
    assert [key for key, _ in env] == ["A", "B", "C"]
    assert env.get("A") == "3"


def test_add_does_not_overwrite():
    env = Environment({"A": "1"})
    env.add("A", "2")
    env.add("B", None)
    assert env.get("A") == "1"
    assert "B" in env
    assert env.get("B", "default") is None


def test_remove():
    env = Environment({"A": "1", "B": "2"})
    assert env.remove("A") is True
    assert env.remove("A") is False
    assert list(env) == [("B", "2")]


def test_to_strings_round_trip():
    strings = ["PATH=/bin:/usr/bin", "HOME=/home/user", "EMPTY="]
    assert Environment.from_strings(strings).to_strings() == strings


def test_to_strings_bare_key_for_unset_value():
    env = Environment([("A", "1"), ("B", None)])
    assert env.to_strings() == ["A=1", "B"]


def test_sorted_strings_is_sorted_permutation():
    env = Environment.from_strings(["b=2", "A=1", "_x=3", "a=0"])
    result = env.sorted_strings()
    assert sorted(result) == sorted(env.to_strings())
    assert result == ["A=1", "_x=3", "a=0", "b=2"]


@pytest.mark.parametrize(
    "key, expected",
    [
        ("NAME", True),
        ("_name1", True),
        ("a", True),
        ("1abc", False),
        ("", False),
        (None, False),
        ("a-b", False),
        ("é", False),
    ],
)
def test_is_valid_identifier(key, expected):
    assert is_valid_identifier(key) is expected


def test_expand_value():
    env = Environment({"HOME": "/home/user", "BARE": None})
    assert expand_value("plain", env) == "plain"
    assert expand_value("$HOME", env) == "/home/user"
    assert expand_value("$NOPE", env) == ""
    assert expand_value("$BARE", env) == ""
    assert expand_value(None, env) is None


def test_update_or_add_existing_with_none_keeps_value():
    env = Environment({"A": "old"})
    update_or_add(env, "A", None)
    assert env.get("A") == "old"


def test_update_or_add_new_with_none_gets_empty():
    env = Environment()
    update_or_add(env, "A", None)
    assert env.get("A") == ""


def test_update_or_add_expands_reference():
    env = Environment({"SRC": "value"})
    update_or_add(env, "DST", "$SRC")
    update_or_add(env, "SRC", "new")
    assert env.get("DST") == "value"
    assert env.get("SRC") == "new"


def test_export_argument_assignment():
    env = Environment()
    export_argument(env, "A=b=c")
    assert env.get("A") == "b"


def test_export_argument_without_equals_adds_unset():
    env = Environment({"KEEP": "1"})
    export_argument(env, "NAME")
    export_argument(env, "KEEP")
    assert "NAME" in env
    assert env.get("NAME", "default") is None
    assert env.get("KEEP") == "1"


def test_export_argument_empty_value_on_existing_keeps_it():
    env = Environment({"A": "1"})
    export_argument(env, "A=")
    assert env.get("A") == "1"


@pytest.mark.parametrize("arg", ["1A=x", "", "=", "a-b=c"])
def test_export_argument_invalid(arg):
    env = Environment()
    with pytest.raises(ValueError, match="not a valid identifier"):
        export_argument(env, arg)
    assert len(env) == 0


def test_shell_state_defaults():
    state = ShellState()
    assert state.last_status == 0
    assert len(state.env) == 0
    other = ShellState()
    state.env.set("A", "1")
    assert "A" not in other.env