"""Tests for the envinject command line."""

import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import pytest
from click.testing import CliRunner

import envinject
from envinject import cli as cli_module
from envinject.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def exec_calls(monkeypatch):
    calls = []
    monkeypatch.setattr(cli_module.os, "execvp", lambda file, args: calls.append((file, args)))
    return calls


def test_version(runner):
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "envinject" in result.output
    assert "0.3.0" in result.output


def test_inject_example(runner, make_tree):
    root = make_tree({
        "app.js": "TITLE=__MY_APP_TITLE__;ENV=__MY_APP_ENVIRONMENT__",
        "logo.png": b"\x89PNG",
    })

    result = runner.invoke(
        cli, ["inject", "--root", str(root)],
        env={"MY_APP_TITLE": "Dockerization", "MY_APP_ENVIRONMENT": "QA"},
    )

    assert result.exit_code == 0, result.output
    assert (root / "app.js").read_text() == "TITLE=Dockerization;ENV=QA"
    assert "MY_APP_TITLE" in result.output
    assert "MY_APP_ENVIRONMENT" in result.output


def test_values_are_hidden_by_default(runner, make_tree):
    root = make_tree({"app.js": "__MY_APP_SECRET__"})

    result = runner.invoke(cli, ["inject", "-r", str(root), "-v"], env={"MY_APP_SECRET": "hunter2"})

    assert result.exit_code == 0, result.output
    assert "MY_APP_SECRET" in result.output
    assert "hunter2" not in result.output


def test_show_values(runner, make_tree):
    root = make_tree({"app.js": "__MY_APP_SECRET__"})

    result = runner.invoke(cli, ["inject", "-r", str(root), "--show-values"],
                           env={"MY_APP_SECRET": "hunter2"})

    assert "hunter2" in result.output


def test_nothing_to_do_exits_zero(runner, make_tree):
    root = make_tree({"app.js": "__MY_APP_TITLE__"})

    result = runner.invoke(cli, ["inject", "-r", str(root)])

    assert result.exit_code == 0, result.output
    assert (root / "app.js").read_text() == "__MY_APP_TITLE__"


def test_strict_flag_fails_without_variables(runner, make_tree):
    root = make_tree({"app.js": "__MY_APP_TITLE__"})

    result = runner.invoke(cli, ["inject", "-r", str(root), "--strict"])

    assert result.exit_code == 2
    assert "strict" in result.output


def test_strict_from_environment(runner, make_tree):
    root = make_tree({"app.js": ""})

    result = runner.invoke(cli, ["inject", "-r", str(root)], env={"ENVINJECT_STRICT": "true"})

    assert result.exit_code == 2


def test_invalid_strict_environment_value(runner, make_tree):
    root = make_tree({"app.js": ""})

    result = runner.invoke(cli, ["inject", "-r", str(root)], env={"ENVINJECT_STRICT": "maybe"})

    assert result.exit_code == 2
    assert "ENVINJECT_STRICT" in result.output


def test_missing_root_exits_with_config_error(runner, tmp_path):
    result = runner.invoke(cli, ["inject", "-r", str(tmp_path / "missing")], env={"MY_APP_X": "1"})

    assert result.exit_code == 2
    assert "does not exist" in result.output


def test_collision_exits_with_config_error(runner, make_tree):
    root = make_tree({"app.js": "FOO FOOBAR"})

    result = runner.invoke(
        cli, ["inject", "-r", str(root), "-p", "FOO", "--token-format", "{key}"],
        env={"FOO": "s3cr3t-a", "FOOBAR": "s3cr3t-b"},
    )

    assert result.exit_code == 2
    assert (root / "app.js").read_text() == "FOO FOOBAR"
    assert "s3cr3t" not in result.output


def test_file_error_exits_non_zero(runner, make_tree, monkeypatch):
    from envinject.core import injector as injector_module

    root = make_tree({"a.js": "__MY_APP_TITLE__", "b.js": "__MY_APP_TITLE__"})
    real_write = injector_module._atomic_write

    def failing_write(path, data):
        if path.name == "a.js":
            raise OSError(28, "No space left on device")
        real_write(path, data)

    monkeypatch.setattr(injector_module, "_atomic_write", failing_write)

    result = runner.invoke(cli, ["inject", "-r", str(root)], env={"MY_APP_TITLE": "T"})

    assert result.exit_code == 1
    assert "No space left on device" in result.output
    assert (root / "b.js").read_text() == "T"


def test_extensions_option(runner, make_tree):
    root = make_tree({"index.html": "__MY_APP_TITLE__", "app.js": "__MY_APP_TITLE__"})

    result = runner.invoke(cli, ["inject", "-r", str(root), "-e", "html"], env={"MY_APP_TITLE": "T"})

    assert result.exit_code == 0, result.output
    assert (root / "index.html").read_text() == "T"
    assert (root / "app.js").read_text() == "__MY_APP_TITLE__"


def test_extensions_from_environment(runner, make_tree):
    root = make_tree({"index.html": "__MY_APP_TITLE__", "app.mjs": "__MY_APP_TITLE__"})

    result = runner.invoke(cli, ["inject"], env={
        "MY_APP_TITLE": "T",
        "ENVINJECT_ROOT": str(root),
        "ENVINJECT_EXTENSIONS": "html,mjs",
    })

    assert result.exit_code == 0, result.output
    assert (root / "index.html").read_text() == "T"
    assert (root / "app.mjs").read_text() == "T"


def test_config_file(runner, make_tree, tmp_path):
    root = make_tree({"app.js": "[[CFG_TITLE]]"})
    config = tmp_path / "custom.yml"
    config.write_text(
        "injection:\n"
        f"  root: {root}\n"
        "  prefix: CFG_\n"
        "  token_format: '[[{key}]]'\n"
    )

    result = runner.invoke(cli, ["inject", "--config", str(config)], env={"CFG_TITLE": "T"})

    assert result.exit_code == 0, result.output
    assert (root / "app.js").read_text() == "T"


def test_env_file_is_merged_under_process_environment(runner, make_tree, tmp_path):
    root = make_tree({"app.js": "__MY_APP_TITLE__/__MY_APP_ENVIRONMENT__"})
    env_file = tmp_path / ".env"
    env_file.write_text("MY_APP_TITLE=from-file\nMY_APP_ENVIRONMENT=dev\n")

    result = runner.invoke(
        cli, ["inject", "-r", str(root), "--env-file", str(env_file)],
        env={"MY_APP_ENVIRONMENT": "prod"},
    )

    assert result.exit_code == 0, result.output
    assert (root / "app.js").read_text() == "from-file/prod"


def test_dry_run_does_not_write(runner, make_tree):
    root = make_tree({"app.js": "__MY_APP_TITLE__"})

    result = runner.invoke(cli, ["inject", "-r", str(root), "--dry-run"], env={"MY_APP_TITLE": "T"})

    assert result.exit_code == 0, result.output
    assert (root / "app.js").read_text() == "__MY_APP_TITLE__"
    assert "would update 1 file(s)" in result.output


def test_command_is_executed_after_success(runner, make_tree, exec_calls):
    root = make_tree({"app.js": "__MY_APP_TITLE__"})

    result = runner.invoke(
        cli, ["inject", "-r", str(root), "--", "nginx", "-g", "daemon off;"],
        env={"MY_APP_TITLE": "T"},
    )

    assert result.exit_code == 0, result.output
    assert (root / "app.js").read_text() == "T"
    assert exec_calls == [("nginx", ["nginx", "-g", "daemon off;"])]


def test_command_is_not_executed_after_failure(runner, tmp_path, exec_calls):
    result = runner.invoke(
        cli, ["inject", "-r", str(tmp_path / "missing"), "--", "nginx"],
        env={"MY_APP_TITLE": "T"},
    )

    assert result.exit_code == 2
    assert exec_calls == []


def test_command_is_not_executed_in_dry_run(runner, make_tree, exec_calls):
    root = make_tree({"app.js": ""})

    result = runner.invoke(cli, ["inject", "-r", str(root), "--dry-run", "--", "nginx"],
                           env={"MY_APP_TITLE": "T"})

    assert result.exit_code == 0, result.output
    assert exec_calls == []


def test_missing_command(runner, make_tree, monkeypatch):
    def not_found(file, args):
        raise FileNotFoundError(2, "No such file or directory")

    monkeypatch.setattr(cli_module.os, "execvp", not_found)
    root = make_tree({"app.js": ""})

    result = runner.invoke(cli, ["inject", "-r", str(root), "--", "no-such-server"],
                           env={"MY_APP_TITLE": "T"})

    assert result.exit_code == 127
    assert "no-such-server" in result.output


def test_quiet_suppresses_records(runner, make_tree):
    root = make_tree({"app.js": "__MY_APP_TITLE__"})

    result = runner.invoke(cli, ["inject", "-r", str(root), "-q"], env={"MY_APP_TITLE": "T"})

    assert result.exit_code == 0
    assert result.output == ""


def test_timeout_exit_code(runner, make_tree, monkeypatch):
    import time
    from envinject.core.injector import Injector

    root = make_tree({"a.js": "", "b.js": ""})
    original = Injector.process_file

    def slow(self, path, entries):
        time.sleep(0.05)
        return original(self, path, entries)

    monkeypatch.setattr(Injector, "process_file", slow)
    monkeypatch.setattr(cli_module, "_exit_now", lambda code: sys.exit(code))

    result = runner.invoke(cli, ["inject", "-r", str(root), "--timeout", "0.01"],
                           env={"MY_APP_TITLE": "T"})

    assert result.exit_code == 3
    assert "time budget" in result.output


def test_scan_reports_unresolved(runner, make_tree):
    root = make_tree({"app.js": "__MY_APP_TITLE__", "ok.js": "done"})

    result = runner.invoke(cli, ["scan", "-r", str(root)])

    assert result.exit_code == 1
    assert "__MY_APP_TITLE__" in result.output
    assert "app.js" in result.output


def test_scan_after_inject_is_clean(runner, make_tree):
    root = make_tree({"app.js": "__MY_APP_TITLE__"})
    runner.invoke(cli, ["inject", "-r", str(root)], env={"MY_APP_TITLE": "T"})

    result = runner.invoke(cli, ["scan", "-r", str(root)])

    assert result.exit_code == 0, result.output


def test_unlistable_directory_exits_non_zero(runner, make_tree, monkeypatch):
    root = make_tree({"a.js": "__MY_APP_TITLE__", "sub/b.js": "__MY_APP_TITLE__"})
    blocked = os.fspath(root / "sub")
    real_scandir = os.scandir

    def failing_scandir(path="."):
        if os.fspath(path) == blocked:
            raise PermissionError(13, "Permission denied", blocked)
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", failing_scandir)

    result = runner.invoke(cli, ["inject", "-r", str(root)], env={"MY_APP_TITLE": "T"})

    assert result.exit_code == 1
    assert "sub" in result.output


def test_collision_error_suggests_a_way_out(runner, make_tree):
    root = make_tree({"a.js": "__MY_APP_FOO__"})

    result = runner.invoke(cli, ["inject", "-r", str(root)],
                           env={"MY_APP_FOO": "1", "MY_APP_FOOBAR": "2"})

    assert result.exit_code == 2
    assert "--no-collision-check" in result.output
    assert (root / "a.js").read_text() == "__MY_APP_FOO__"


_STALLED_RUN = """
import sys
import time

from envinject import cli
from envinject.core.injector import Injector


def stalled(self, path, entries):
    time.sleep(30)


Injector.process_file = stalled
sys.argv = ["envinject"] + sys.argv[1:]
cli.main()
"""


@pytest.mark.skipif(not hasattr(signal, "setitimer"), reason="needs SIGALRM interval timers")
@pytest.mark.parametrize("workers", ["1", "4"])
def test_timeout_bounds_the_whole_process(make_tree, workers):
    root = make_tree({"a.js": "__MY_APP_TITLE__", "b.js": "__MY_APP_TITLE__"})
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(
        filter(None, [str(Path(envinject.__file__).parents[1]), env.get("PYTHONPATH")])
    )
    env["MY_APP_TITLE"] = "T"

    started = time.monotonic()
    completed = subprocess.run(
        [sys.executable, "-c", _STALLED_RUN, "inject", "-r", str(root),
         "--timeout", "0.5", "--workers", workers],
        env=env, capture_output=True, timeout=25,
    )
    elapsed = time.monotonic() - started

    assert completed.returncode == 3
    assert elapsed < 10
    assert b"time budget" in completed.stderr
    assert (root / "a.js").read_text() == "__MY_APP_TITLE__"
