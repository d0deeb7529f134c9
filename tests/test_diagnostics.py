import pytest

from victoria import VictoriaError, run_program
from victoria import catalog
from victoria.errors import (
    JOKES, Diagnostic, ErrorKind, ErrorReporter, JokeTeller, SourceLocation, render, render_plain,
)


LOC = SourceLocation(1, 9, 1, 10, "main.vc")


def test_plain_rendering_is_stable():
    diag = catalog.division_by_zero(LOC)
    expected = (
        "error[E0007]: division by zero\n"
        "  --> main.vc:1:9\n"
        "  = note: dividing by zero is undefined in mathematics\n"
        "  = note: this error occurs at runtime when the divisor evaluates to 0\n"
        "  = help: add a check: if divisor != 0 { result = x / divisor }\n"
    )
    assert render_plain(diag) == expected
    assert render_plain(catalog.division_by_zero(LOC)) == expected
    assert str(diag) == expected


def test_catalog_entries_are_deterministic():
    first = catalog.lookup("E0001")("INTEGER", "+", "STRING", LOC)
    second = catalog.lookup("E0001")("INTEGER", "+", "STRING", LOC)
    assert first == second
    assert first.code == "E0001"
    assert first.message == "type mismatch: cannot apply '+' to INTEGER and STRING"
    assert first.help


def test_catalog_codes_are_unique_and_well_formed():
    assert len(catalog.CATALOG) >= 50
    for code, build in catalog.CATALOG.items():
        assert build.code == code
        assert code[0] in "EWN" and code[1:].isdigit()


def test_warning_kinds():
    diag = catalog.integer_overflow("addition", LOC)
    assert diag.kind is ErrorKind.WARNING
    assert render_plain(diag).startswith("warning[W0003]: potential integer overflow in addition")


def test_unknown_code():
    with pytest.raises(KeyError):
        catalog.lookup("E9999")


def test_jokes_off():
    teller = JokeTeller(probability=0.0)
    text = render(catalog.division_by_zero(LOC), teller)
    assert "joke" not in text
    assert teller.pick() is None


def test_jokes_always_with_seed():
    a = JokeTeller(probability=1.0, seed=7)
    b = JokeTeller(probability=1.0, seed=7)
    joke = a.pick()
    assert joke in JOKES
    assert joke == b.pick()
    assert "joke" in render(catalog.division_by_zero(LOC), JokeTeller(probability=1.0, seed=7))


def test_coloured_rendering_shows_the_source_line():
    diag = catalog.division_by_zero(LOC).with_source("let x = 1 / 0;")
    text = render(diag, JokeTeller(probability=0.0))
    assert "division by zero" in text
    assert "let x = 1 / 0;" in text
    assert "^" in text
    assert "\033[" in text


def test_reporter_summarises_errors():
    reporter = ErrorReporter("let x = 1 / 0;", "main.vc")
    reporter.extend([catalog.division_by_zero(SourceLocation(1, 11)), catalog.integer_overflow("addition")])
    assert reporter.has_errors()
    text = reporter.format(color=False)
    assert text.startswith("error[E0007]: division by zero\n  --> main.vc:1:11\n")
    assert "warning[W0003]" in text
    assert text.endswith("\nerror: could not compile due to 1 previous error(s)\n")


def test_reporter_with_only_warnings_has_no_summary():
    reporter = ErrorReporter("")
    reporter.add(catalog.modulo_with_negative())
    assert not reporter.has_errors()
    assert "could not compile" not in reporter.format(color=False)


def test_victoria_error_summary():
    with pytest.raises(VictoriaError) as info:
        run_program("let x = 1 / 0;")
    assert str(info.value) == "VictoriaError: E0007: division by zero"
    assert isinstance(info.value.diagnostic, Diagnostic)


def test_parse_errors_carry_help():
    with pytest.raises(VictoriaError) as info:
        run_program("let = 5;")
    diag = info.value.diagnostic
    assert diag.code == "E0004"
    assert diag.help == "expected an identifier (variable or function name)"
    assert diag.location.line == 1
    assert diag.location.column == 5
