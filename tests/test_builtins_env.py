import io
import os

import pytest

from minishell.builtins_env import run_cd, run_export, run_unset
from minishell.environment import Environment


def _export(env, *args):
    out = io.StringIO()
    status = run_export(env, ["export", *args], out)
    return status, out.getvalue()


def _cd(env, *args):
    out = io.StringIO()
    status = run_cd(env, ["cd", *args], out)
    return status, out.getvalue()


def _same(a, b):
    return os.path.realpath(a) == os.path.realpath(b)


def test_export_without_arguments_lists_sorted_declarations():
    env = Environment({"B": "2", "A": "1", "C": ""})
    status, output = _export(env)
    assert status == 0
    assert output == 'declare -x A="1"\ndeclare -x B="2"\ndeclare -x C\n'


def test_export_assignment_sets_exported_value():
    env = Environment({})
    status, output = _export(env, "X=hello")
    assert status == 0
    assert output == ""
    assert env.get("X") == "hello"
    assert "X=hello" in env.to_envp()


def test_export_name_only_declares_without_exporting():
    env = Environment({})
    assert _export(env, "Y")[0] == 0
    assert "Y" in env
    assert ("Y", "") in env.sorted_items()
    assert all(not entry.startswith("Y=") for entry in env.to_envp())


def test_export_name_only_keeps_existing_value():
    env = Environment({"Y": "kept"})
    _export(env, "Y")
    assert env.get("Y") == "kept"


def test_export_replaces_value_in_place():
    env = Environment([("A", "1"), ("B", "2")])
    _export(env, "A=changed")
    assert env.to_envp()[:2] == ["A=changed", "B=2"]


def test_export_empty_value_is_not_exported():
    env = Environment({"A": "1"})
    _export(env, "A=")
    assert env.get("A") == ""
    assert "A" in env


@pytest.mark.parametrize("bad", ["1A", "=value", "A-B=1", "-x"])
def test_export_rejects_invalid_identifier(bad):
    env = Environment({})
    status, output = _export(env, bad)
    assert status == 1
    assert output == f"minishell: export: `{bad}': not a valid identifier\n"


def test_export_stops_at_first_invalid_argument():
    env = Environment({})
    status, _ = _export(env, "A=1", "9bad", "C=3")
    assert status == 1
    assert env.get("A") == "1"
    assert "C" not in env


def test_unset_removes_variables():
    env = Environment({"A": "1", "B": "2", "C": "3"})
    assert run_unset(env, ["unset", "A", "C"]) == 0
    assert "A" not in env
    assert "C" not in env
    assert env.get("B") == "2"


def test_unset_ignores_unknown_and_assignments():
    env = Environment({"A": "1"})
    assert run_unset(env, ["unset", "A=1", "MISSING"]) == 0
    assert env.get("A") == "1"
    assert len(env) == 1


def test_cd_into_directory_updates_pwd(tmp_path, monkeypatch):
    start = tmp_path / "start"
    target = tmp_path / "target"
    start.mkdir()
    target.mkdir()
    monkeypatch.chdir(start)
    env = Environment({})
    status, output = _cd(env, str(target))
    assert status == 0
    assert output == ""
    assert _same(os.getcwd(), target)
    assert _same(env.get("PWD"), target)
    assert _same(env.get("OLDPWD"), start)


def test_cd_without_argument_goes_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.chdir(tmp_path)
    env = Environment({"HOME": str(home)})
    assert _cd(env)[0] == 0
    assert _same(os.getcwd(), home)


def test_cd_tilde_path_is_under_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    (home / "sub").mkdir(parents=True)
    monkeypatch.chdir(tmp_path)
    env = Environment({"HOME": str(home)})
    assert _cd(env, "~/sub")[0] == 0
    assert _same(os.getcwd(), home / "sub")


def test_cd_home_not_set(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    env = Environment({})
    status, output = _cd(env)
    assert status == 1
    assert output == "MiniShell: cd: HOME not set\n"
    assert _same(os.getcwd(), tmp_path)


def test_cd_missing_directory_reports_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    missing = str(tmp_path / "missing")
    env = Environment({})
    status, output = _cd(env, missing)
    assert status == 1
    assert output.startswith(f"MiniShell: cd: {missing}: ")
    assert _same(os.getcwd(), tmp_path)


def test_cd_dash_returns_to_previous_directory(tmp_path, monkeypatch):
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    second.mkdir()
    monkeypatch.chdir(first)
    env = Environment({})
    _cd(env, str(second))
    assert _cd(env, "-")[0] == 0
    assert _same(os.getcwd(), first)
    assert _same(env.get("OLDPWD"), second)


def test_cd_dash_without_oldpwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    env = Environment({})
    status, output = _cd(env, "-")
    assert status == 1
    assert output == "MiniShell: cd: OLDPWD not set\n"