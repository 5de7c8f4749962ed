import contextlib
import io
import random

from dockalot.cohesive_output import CohesiveOutput


def test_enter_exit():
    with CohesiveOutput("foobar"):
        pass


def test_one_output(capsys):
    name = "Task :foobar"
    message = "Hello world!"
    with CohesiveOutput(name) as co:
        co.write(message + "\n")
    captured = capsys.readouterr()
    assert captured.out.splitlines() == [f"> {name}", message]


def test_explicit_stream():
    stream = io.StringIO()
    with CohesiveOutput("a", stream=stream) as co:
        co.print("line")
    assert stream.getvalue() == "> a\nline\n"


def test_nested_output(capsys):
    with CohesiveOutput("co1") as co1:
        co1.write("co1: foo\n")
        with CohesiveOutput("co2") as co2:
            co2.write("co2: foo\n")
            co1.write("co1: bar\n")
            co2.write("co2: bar\n")
        co1.write("co1: baz\n")
    captured = capsys.readouterr()
    assert captured.out.splitlines() == [
        "> co1",
        "co1: foo",
        "co1: bar",
        "co1: baz",
        "> co2",
        "co2: foo",
        "co2: bar",
    ]


def test_waiting_output_takes_over(capsys):
    first = CohesiveOutput("first")
    second = CohesiveOutput("second")
    first.__enter__()
    second.__enter__()
    second.print("buffered")
    first.__exit__(None, None, None)
    second.print("streamed")
    second.__exit__(None, None, None)
    assert capsys.readouterr().out.splitlines() == [
        "> first",
        "> second",
        "buffered",
        "streamed",
    ]


def test_many_outputs(capsys):
    outputs = {}
    for i in range(100):
        outputs[i] = CohesiveOutput(f"co{i}")

    with contextlib.ExitStack() as exit_stack:
        for co in outputs.values():
            exit_stack.enter_context(co)

        for m in range(len(outputs) * 10):
            i, co = random.choice(tuple(outputs.items()))
            co.write(f"co{i}: {m}\n")

    stdout_lines = capsys.readouterr().out.splitlines()

    i = -1
    for line in stdout_lines:
        if line.startswith("> "):
            i += 1
            assert line == f"> co{i}", stdout_lines
        else:
            assert line.startswith(f"co{i}:"), stdout_lines
    assert i == 99
