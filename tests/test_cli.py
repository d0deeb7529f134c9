import io

import pytest

from victoria import Interpreter
from victoria.__main__ import main, run_repl
from victoria.errors import JokeTeller

NO_JOKES = JokeTeller(probability=0.0)


def run_main(argv):
    with pytest.raises(SystemExit) as info:
        main(argv)
    return info.value.code


def test_runs_a_program_file(tmp_path, capsys):
    program = tmp_path / "hello.vc"
    program.write_text('print("Hello from a file");\n', encoding="utf-8")
    assert run_main(["--plain", "--no-jokes", str(program)]) == 0
    captured = capsys.readouterr()
    assert captured.out == "Hello from a file\n"
    assert captured.err == ""


def test_runtime_error_exit_status(tmp_path, capsys):
    program = tmp_path / "bad.vc"
    program.write_text("let x = 1;\nlet y = x / 0;\n", encoding="utf-8")
    assert run_main(["--plain", "--no-jokes", str(program)]) == 1
    err = capsys.readouterr().err
    assert "error[E0007]: division by zero" in err
    assert f"{program}:2:11" in err
    assert err.endswith("could not compile due to 1 previous error(s)\n")


def test_parse_error_exit_status(tmp_path, capsys):
    program = tmp_path / "broken.vc"
    program.write_text("let = ;\n", encoding="utf-8")
    assert run_main(["--plain", "--no-jokes", str(program)]) == 1
    assert "error[E0" in capsys.readouterr().err


def test_warnings_do_not_fail_the_run(tmp_path, capsys):
    program = tmp_path / "warn.vc"
    program.write_text("print(-7 % 2);\n", encoding="utf-8")
    assert run_main(["--plain", "--no-jokes", str(program)]) == 0
    captured = capsys.readouterr()
    assert captured.out == "-1\n"
    assert "warning[W0005]" in captured.err


def test_missing_file(tmp_path, capsys):
    missing = tmp_path / "nope.vc"
    assert run_main([str(missing)]) == 1
    assert capsys.readouterr().err == f"Error: file {missing} not found\n"


def test_debug_flag_writes_trace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    program = tmp_path / "traced.vc"
    program.write_text("define twice(n) { n * 2 }\ntwice(4);\n", encoding="utf-8")
    assert run_main(["-v", "--plain", str(program)]) == 0
    assert "call twice(4)" in (tmp_path / "debug.txt").read_text(encoding="utf-8")


def test_max_depth_option(tmp_path, capsys):
    program = tmp_path / "deep.vc"
    program.write_text("define f(n) { f(n + 1) }\nf(0);\n", encoding="utf-8")
    assert run_main(["--plain", "--no-jokes", "--max-depth", "20", str(program)]) == 1
    assert "error[E0040]" in capsys.readouterr().err


def test_repl_keeps_state_between_lines():
    stdin = io.StringIO("let x = 2;\nx * 21\n")
    stdout = io.StringIO()
    with Interpreter() as interp:
        assert run_repl(interp, False, NO_JOKES, stdin, stdout) == 0
    assert stdout.getvalue() == (
        "Victoria Programming Language\nType in commands\n"
        ">> >> 42\n>> \n"
    )


def test_repl_reports_errors_and_continues():
    stdin = io.StringIO("1 / 0\n\"still here\"\n")
    stdout = io.StringIO()
    with Interpreter() as interp:
        run_repl(interp, False, NO_JOKES, stdin, stdout)
    text = stdout.getvalue()
    assert "error[E0007]: division by zero" in text
    assert "<repl>:1:3" in text
    assert "still here\n" in text
