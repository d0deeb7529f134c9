import builtins

import pytest

from victoria import VictoriaError, run_program


def run(source):
    return run_program(source).inspect()


def error_code(source):
    with pytest.raises(VictoriaError) as info:
        run_program(source)
    return info.value.diagnostic.code


def test_print_writes_one_argument_per_line(capsys):
    run('print(1, "a", [true, null]);')
    assert capsys.readouterr().out == "1\na\n[true, null]\n"


def test_len():
    assert run('len("héllo")') == "5"
    assert run("len([1, 2, 3])") == "3"
    assert run('len({"a": 1})') == "1"
    assert error_code("len(5)") == "E0014"


def test_type_names():
    assert run("[type(1), type(1.5), type(\"s\"), type([]), type({}), type(null), type(len)]") == (
        "[INTEGER, FLOAT, STRING, ARRAY, HASH, NULL, BUILTIN]")


@pytest.mark.parametrize("source, expected", [
    ('int("42")', "42"),
    ('int(" -7 ")', "-7"),
    ('int("010")', "8"),
    ('int("0x1f")', "31"),
    ("int(3.9)", "3"),
    ("int(true)", "1"),
    ('float("2.5")', "2.5"),
    ("float(3)", "3"),
    ('string(12) + "!"', "12!"),
])
def test_conversions(source, expected):
    assert run(source) == expected


def test_failed_conversions():
    assert error_code('int("abc")') == "E0017"
    assert error_code('float("x")') == "E0017"
    assert error_code('int("99999999999999999999")') == "E0017"


def test_range_builtin():
    assert run("range(3)") == "[0, 1, 2]"
    assert run("range(1, 7, 2)") == "[1, 3, 5]"
    assert run("range(3, 0, -1)") == "[3, 2, 1]"
    assert error_code("range(1, 2, 0)") == "E0016"


def test_array_helpers():
    assert run("first([4, 5])") == "4"
    assert run("first([])") == "null"
    assert run("last([4, 5])") == "5"
    assert run("rest([1, 2, 3])") == "[2, 3]"
    assert run("pop([1, 2, 3])") == "[1, 2]"
    assert run("let a = [1]; let b = push(a, 2); [a, b]") == "[[1], [1, 2]]"
    assert error_code('push("s", 1)') == "E0014"


def test_string_helpers():
    assert run('split("a,b,c", ",")') == "[a, b, c]"
    assert run('split("abc", "")') == "[a, b, c]"
    assert run('join(["a", "b"], "-")') == "a-b"
    assert run('upper("abc") + lower("DEF")') == "ABCdef"
    assert error_code('join([1], "-")') == "E0014"


def test_contains_and_index():
    assert run("contains([1, 2], 2)") == "true"
    assert run('contains("hello", "ell")') == "true"
    assert run('contains({"k": 1}, "k")') == "true"
    assert run('contains({"k": 1}, "z")') == "false"
    assert run("index([5, 6], 6)") == "1"
    assert run('index("abc", "z")') == "-1"


def test_keys_and_values_keep_insertion_order():
    assert run('keys({"b": 1, "a": 2})') == "[b, a]"
    assert run('values({"b": 1, "a": 2})') == "[1, 2]"


def test_higher_order_functions():
    assert run("map([1, 2, 3], x => x * 2)") == "[2, 4, 6]"
    assert run('map(["a", "b"], define(x, i) { i })') == "[0, 1]"
    assert run("filter([1, 2, 3, 4], x => x % 2 == 0)") == "[2, 4]"
    assert run("reduce([1, 2, 3], (a, b) => a + b)") == "6"
    assert run("reduce([], (a, b) => a + b, 10)") == "10"
    assert run("map([1, 2], string)") == "[1, 2]"


def test_higher_order_errors():
    assert error_code("reduce([], (a, b) => a + b)") == "E0042"
    assert error_code("map(5, x => x)") == "E0014"
    assert error_code("map([1], 5)") == "E0014"
    assert error_code("map([1, 0], x => 1 / x)") == "E0007"


def test_character_builtins():
    assert run("[char(65), type(char(65))]") == "[A, CHAR]"
    assert run('ord("A")') == "65"
    assert run("chr(97)") == "a"
    assert run('"a" + char(98)') == "ab"
    assert run('[isDigit("7"), isLetter("7"), isAlpha("7"), isSpace(" ")]') == "[true, false, true, true]"
    assert run('toUpper("abc")') == "ABC"
    assert error_code('ord("")') == "E0049"


@pytest.mark.parametrize("source, expected", [
    ('format("%d items cost %.2f", 3, 2.5)', "3 items cost 2.50"),
    ('format("%5s|%-4d|", "ab", 7)', "   ab|7   |"),
    ('format("%x %o %b", 255, 8, 5)', "ff 10 101"),
    ('format("%v and %t", [1], true)', "[1] and true"),
    ('format("%q", "hi")', '"hi"'),
    ('format("100%%")', "100%"),
    ('format("%d")', "%!d(MISSING)"),
    ('format("%d", 1, 2)', "1%!(EXTRA INTEGER=2)"),
    ('format("%d", "s")', "%!d(STRING=s)"),
])
def test_format(source, expected):
    assert run(source) == expected


def test_input_reads_a_trimmed_line(monkeypatch):
    monkeypatch.setattr(builtins, 'input', lambda prompt='': '  typed  ')
    assert run('input("name: ")') == "typed"


def test_input_at_end_of_file(monkeypatch):
    def eof(prompt=''):
        raise EOFError

    monkeypatch.setattr(builtins, 'input', eof)
    assert run('input()') == ""
