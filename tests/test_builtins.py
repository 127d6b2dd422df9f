import io
import os

import pytest

from marvelsh.builtins import (
    ShellExit,
    cd,
    echo,
    exit_builtin,
    export,
    is_builtin,
    is_number,
    parse_int,
    print_env,
    pwd,
    run_builtin,
    unset,
)
from marvelsh.environment import Environment, ShellState


def make_state(entries=None, status=0):
    return ShellState(Environment(entries or {}), status)


@pytest.mark.parametrize("name", ["echo", "cd", "pwd", "export", "unset", "env", "exit"])
def test_is_builtin_true(name):
    assert is_builtin(name) is True


@pytest.mark.parametrize("name", ["ls", "echoo", "ech", "", "EXIT"])
def test_is_builtin_false(name):
    assert is_builtin(name) is False


def test_echo_joins_with_spaces():
    out = io.StringIO()
    state = make_state(status=5)
    assert echo(["echo", "hello", "world"], state, out) == 0
    assert out.getvalue() == "hello world\n"
    assert state.last_status == 0


def test_echo_flags_suppress_newline():
    out = io.StringIO()
    echo(["echo", "-n", "-nnn", "hi"], make_state(), out)
    assert out.getvalue() == "hi"


def test_echo_flag_only_at_start():
    out = io.StringIO()
    echo(["echo", "a", "-n"], make_state(), out)
    assert out.getvalue() == "a -n\n"


def test_echo_mixed_flag_is_text():
    out = io.StringIO()
    echo(["echo", "-nx", "b"], make_state(), out)
    assert out.getvalue() == "-nx b\n"


def test_cd_changes_directory_and_updates_vars(tmp_path, monkeypatch):
    start = tmp_path / "start"
    start.mkdir()
    monkeypatch.chdir(start)
    state = make_state({"PWD": str(start), "OLDPWD": ""})
    assert cd(["cd", str(tmp_path)], state, io.StringIO()) == 0
    assert os.getcwd() == state.env.get("PWD")
    assert state.env.get("OLDPWD") == str(start)


def test_cd_home_tilde_prefix(tmp_path, monkeypatch):
    sub = tmp_path / "sub"
    sub.mkdir()
    monkeypatch.chdir(tmp_path)
    state = make_state({"HOME": str(tmp_path)})
    assert cd(["cd", "~/sub"], state, io.StringIO()) == 0
    assert os.path.samefile(os.getcwd(), sub)
    assert "PWD" not in state.env


def test_cd_without_args_goes_home(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    home = tmp_path / "home"
    home.mkdir()
    state = make_state({"HOME": str(home)}, status=4)
    assert cd(["cd"], state, io.StringIO()) == 0
    assert state.last_status == 0
    assert os.path.samefile(os.getcwd(), home)


def test_cd_too_many_arguments(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    err = io.StringIO()
    state = make_state()
    assert cd(["cd", "a", "b"], state, err) == 1
    assert err.getvalue() == "minishell: cd: too many arguments\n"
    assert os.getcwd() == str(tmp_path)


def test_cd_missing_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    err = io.StringIO()
    state = make_state()
    assert cd(["cd", str(tmp_path / "missing")], state, err) == 1
    assert err.getvalue().startswith("minishell: cd")
    assert state.last_status == 1


def test_cd_home_unset(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    state = make_state()
    assert cd(["cd"], state, io.StringIO()) == 1
    assert os.getcwd() == str(tmp_path)


def test_pwd_prints_variable(tmp_path):
    out = io.StringIO()
    directory = tmp_path / "some" / "dir"
    state = make_state({"PWD": str(directory)}, status=3)
    assert pwd(["pwd"], state, out, io.StringIO()) == 0
    assert out.getvalue() == f"{directory}\n"


def test_pwd_too_many_arguments_without_pwd():
    err = io.StringIO()
    state = make_state()
    assert pwd(["pwd", "x"], state, io.StringIO(), err) == 1
    assert err.getvalue() == "minishell: pwd: too many arguments\n"


def test_print_env_short_values_show_key_only():
    out = io.StringIO()
    state = make_state({"HOME": "/home/user", "X": "1", "EMPTY": None})
    assert print_env(state, out) == 0
    assert out.getvalue() == "HOME=/home/user\nX\nEMPTY\n"


def test_print_env_empty_environment_fails():
    out = io.StringIO()
    state = make_state()
    assert print_env(state, out) == 1
    assert out.getvalue() == ""


def test_export_lists_sorted():
    out = io.StringIO()
    state = make_state({"B": None, "A": "1"})
    assert export(["export"], state, out, io.StringIO()) == 0
    assert out.getvalue() == "declare -x A=1\ndeclare -x B\n"


def test_export_sets_variables():
    state = make_state()
    assert export(["export", "FOO=bar", "EMPTY"], state, io.StringIO(), io.StringIO()) == 0
    assert state.env.get("FOO") == "bar"
    assert "EMPTY" in state.env


def test_export_invalid_identifier():
    err = io.StringIO()
    state = make_state()
    assert export(["export", "1abc=x", "OK=y"], state, io.StringIO(), err) == 1
    assert "not a valid identifier" in err.getvalue()
    assert state.env.get("OK") == "y"
    assert "1abc" not in state.env


def test_unset_removes_variables():
    state = make_state({"A": "1", "B": "2", "C": "3"}, status=1)
    assert unset(["unset", "A", "C", "NOPE"], state) == 0
    assert [key for key, _ in state.env] == ["B"]
    assert state.last_status == 0


@pytest.mark.parametrize(
    "text, expected",
    [
        ("42", True),
        ("-7", True),
        ("+3", True),
        ("12  ", True),
        ("12 3", False),
        ("abc", False),
        ("", False),
        ("-", False),
        ("1a", False),
    ],
)
def test_is_number(text, expected):
    assert is_number(text) is expected


def test_parse_int_reads_leading_number():
    assert parse_int("  -17xyz") == -17
    assert parse_int("+8") == 8
    assert parse_int("abc") == 0


def test_parse_int_wraps_to_32_bits():
    assert parse_int("2147483648") == -2147483648


def test_exit_with_status():
    out = io.StringIO()
    state = make_state()
    with pytest.raises(ShellExit) as info:
        exit_builtin(["exit", "42"], state, out, io.StringIO())
    assert info.value.status == 42
    assert out.getvalue() == "exit\n"
    assert state.last_status == 42


def test_exit_without_argument():
    with pytest.raises(ShellExit) as info:
        exit_builtin(["exit"], make_state(status=9), io.StringIO(), io.StringIO())
    assert info.value.status == 0


def test_exit_non_numeric():
    err = io.StringIO()
    with pytest.raises(ShellExit) as info:
        exit_builtin(["exit", "abc"], make_state(), io.StringIO(), err)
    assert info.value.status == 2
    assert err.getvalue() == "minishell: numeric argument required\n"


def test_exit_too_many_arguments_returns():
    err = io.StringIO()
    state = make_state()
    assert exit_builtin(["exit", "1", "2"], state, io.StringIO(), err) == 1
    assert err.getvalue() == "minishell: exit: too many arguments\n"
    assert state.last_status == 1


def test_run_builtin_dispatches():
    out = io.StringIO()
    state = make_state()
    assert run_builtin(["echo", "x"], state, out, io.StringIO()) == 0
    assert out.getvalue() == "x\n"


def test_run_builtin_rejects_unknown():
    with pytest.raises(ValueError):
        run_builtin(["ls"], make_state(), io.StringIO(), io.StringIO())