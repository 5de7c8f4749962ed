import sys
import threading

import pytest

from dockalot.work import ExecuteCommand
from dockalot.work import Work
from dockalot.work import WorkFailedError
from dockalot.work import execute
from dockalot.work import graph_to_dot


class Record(Work):

    def __init__(self, name, log, fail=False):
        super().__init__()
        self.name = name
        self.log = log
        self.fail = fail
        self.lock = threading.Lock()

    def __str__(self):
        return self.name

    def __call__(self):
        if self.fail:
            raise RuntimeError(f"{self.name} failed")
        with self.lock:
            self.log.append(self.name)


def _diamond(log, fail=()):
    prepare = Record("prepare", log, "prepare" in fail)
    build = Record("build", log, "build" in fail)
    buildx = Record("buildx", log, "buildx" in fail)
    push = Record("push", log, "push" in fail)
    return {prepare: [], build: [prepare], buildx: [prepare], push: [build]}


def test_execute_in_dependency_order():
    log = []
    assert execute(_diamond(log)) == []
    assert sorted(log) == ["build", "buildx", "prepare", "push"]
    assert log[0] == "prepare"
    assert log.index("build") < log.index("push")


def test_execute_empty_graph():
    assert execute({}) == []


def test_failure_stops_dependents():
    log = []
    failed = execute(_diamond(log, fail=["build"]), max_workers=1)
    assert [str(w) for w in failed] == ["build"]
    assert "push" not in log


def test_keep_going_runs_siblings():
    log = []
    failed = execute(_diamond(log, fail=["build"]), keep_going=True)
    assert [str(w) for w in failed] == ["build"]
    assert "prepare" in log
    assert "buildx" in log
    assert "push" not in log


def test_dependency_outside_graph_is_reported():
    log = []
    missing = Record("missing", log)
    stuck = Record("stuck", log)
    failed = execute({stuck: [missing]})
    assert failed == [stuck]
    assert log == []


def test_dry_run(capsys):
    log = []
    assert execute(_diamond(log), dry_run=True) == []
    assert log == []
    assert sorted(capsys.readouterr().out.split()) == ["build", "buildx", "prepare", "push"]


def test_graph_to_dot():
    log = []
    dot = graph_to_dot(_diamond(log))
    assert dot.startswith("digraph work_graph {")
    assert '  "push" -> "build";' in dot.splitlines()


def test_execute_command(capsys, tmp_path):
    cmd = ExecuteCommand(
        [sys.executable, "-c", "import os; print(os.getcwd())"], working_directory=tmp_path
    )
    cmd()
    out = capsys.readouterr().out.splitlines()
    assert out[0].startswith("> ")
    assert out[1] == str(tmp_path.resolve())


def test_execute_command_failure():
    cmd = ExecuteCommand([sys.executable, "-c", "raise SystemExit(3)"])
    with pytest.raises(WorkFailedError) as e:
        cmd()
    assert e.value.return_code == 3


def test_execute_command_undecodable_output(capsys):
    script = "import sys; sys.stdout.buffer.write(b'\\xff\\xfe layer\\n')"
    ExecuteCommand([sys.executable, "-c", script])()
    out = capsys.readouterr().out.splitlines()
    assert out[1] == "\ufffd\ufffd layer"
