import logging

import pytest

from victoria import Interpreter, VictoriaError, parse_program, run_program


def run(source, **options):
    return run_program(source, **options).inspect()


def error_of(source, **options):
    with pytest.raises(VictoriaError) as info:
        run_program(source, **options)
    return info.value.diagnostic


def warnings_of(source):
    with Interpreter() as interp:
        interp.run(parse_program(source))
        return [d.code for d in interp.warnings]


###############################################################################
# End-to-end behaviour
###############################################################################

def test_arithmetic_and_precedence(capsys):
    run("let x = 2 + 3 * 4; print(x);")
    assert capsys.readouterr().out == "14\n"


def test_closure_over_parameter(capsys):
    run("define makeAdder(n) { define(x) { x + n } }\nlet add5 = makeAdder(5); print(add5(3));")
    assert capsys.readouterr().out == "8\n"


def test_typed_parameter_mismatch_reports_call_site():
    diag = error_of('define f(x:int) -> int { x + 1 } f("hi");')
    assert diag.code == "E0032"
    assert "'x'" in diag.message
    assert "expected int" in diag.message
    assert "got string" in diag.message
    assert diag.location.line == 1
    assert diag.location.column == 35


def test_division_by_zero_caught_as_message(capsys):
    run("let r = try { 10 / 0 } catch(e) { e }; print(r);")
    assert capsys.readouterr().out == "division by zero\n"


def test_slice_and_spread(capsys):
    run("let a = [1,2,3,4,5]; let b = [...a[1:4], 99]; print(b);")
    assert capsys.readouterr().out == "[2, 3, 4, 99]\n"


def test_undefined_variable_suggests_print():
    diag = error_of('println("hi");')
    assert diag.code == "E0002"
    assert "print" in diag.help


###############################################################################
# Numbers
###############################################################################

@pytest.mark.parametrize("source, expected", [
    ("7 / 2", "3"),
    ("-7 / 2", "-3"),
    ("7 % 3", "1"),
    ("7 / 2.0", "3.5"),
    ("0.1 + 0.2", "0.30000000000000004"),
    ("1.5 * 4", "6"),
    ("2.5 > 2", "true"),
    ("1 == 1.0", "true"),
    ("10 - 3 - 2", "5"),
    ("-(3 - 5)", "2"),
])
def test_numeric_results(source, expected):
    assert run(source) == expected


def test_integer_overflow_wraps_with_warning():
    with Interpreter() as interp:
        result = interp.run(parse_program("9223372036854775807 + 1"))
        assert result.value == -9223372036854775808
        assert [d.code for d in interp.warnings] == ["W0003"]


def test_negative_modulo_follows_dividend_sign_with_warning():
    assert run("-7 % 3") == "-1"
    assert warnings_of("let r = -7 % 3;") == ["W0005"]


def test_float_division_by_zero():
    assert error_of("1.5 / 0").code == "E0007"


def test_warnings_go_to_the_victoria_logger(caplog):
    with caplog.at_level(logging.WARNING, logger="victoria"):
        run("let big = 9223372036854775807 * 2;")
    assert "warning[W0003]" in caplog.text


###############################################################################
# Strings
###############################################################################

def test_string_concatenation_and_escapes():
    assert run('"a" + "b"') == "ab"
    assert run('"tab\\there"') == "tab\there"
    assert run('"line\\nbreak"') == "line\nbreak"


def test_interpolation_evaluates_expressions():
    assert run('let n = 3; "n squared is ${n * n}"') == "n squared is 9"
    assert run('let h = {"k": [1, 2]}; "${h.k} and ${len(h.k)}"') == "[1, 2] and 2"


def test_escaped_dollar_is_literal():
    assert run('"cost: \\${5}"') == "cost: ${5}"


def test_backtick_strings_are_raw():
    assert run('let x = 1; `no ${x} \\n`') == "no ${x} \\n"


def test_interpolation_errors_propagate():
    assert error_of('"${nope}"').code == "E0002"
    assert error_of('"${1 +}"').code == "E0100"


def test_string_indexing_and_slicing():
    assert run('"hello"[1]') == "e"
    assert run('"hello"[1:3]') == "el"


###############################################################################
# Equality, truthiness and logic
###############################################################################

def test_equality_rules():
    assert run("null == null") == "true"
    assert run("let x = 5; x == null") == "false"
    assert run("[1, [2]] == [1, [2]]") == "true"
    assert run('{"a": 1} != {"a": 2}') == "true"
    assert error_of('1 == "1"').code == "E0001"


def test_comparison_with_null_warns_then_fails():
    with Interpreter() as interp:
        with pytest.raises(VictoriaError) as info:
            interp.run(parse_program("let x = null; x < 1;"))
        assert info.value.diagnostic.code == "E0001"
        assert [d.code for d in interp.warnings] == ["W0004"]


@pytest.mark.parametrize("value, expected", [
    ("0", "false"), ("1", "true"), ("0.0", "false"), ('""', "false"), ('"a"', "true"),
    ("[]", "false"), ("[0]", "true"), ("{}", "false"), ("null", "false"), ("false", "false"),
])
def test_truthiness(value, expected):
    assert run(f"bool({value})") == expected
    assert run(f"if ({value}) {{ true }} else {{ false }}") == expected


def test_logical_operators_short_circuit():
    assert run("false && missing") == "false"
    assert run("true || missing") == "true"
    assert run("1 and 2") == "true"
    assert run("not 0") == "true"


###############################################################################
# Variables and scope
###############################################################################

def test_inner_block_variables_are_not_visible_outside():
    diag = error_of("if (true) { let inner = 1; } inner;")
    assert diag.code == "E0002"


def test_assignment_updates_enclosing_binding():
    assert run("let x = 1; if (true) { x = 2; } x") == "2"


def test_assignment_to_undeclared_name():
    assert error_of("y = 3;").code == "E0002"


def test_closures_see_later_mutations():
    assert run("let n = 1; define get() { n } n = 5; get()") == "5"


def test_constants():
    assert error_of("const X = 1; X = 2;").code == "E0047"
    assert error_of("const X = 1; let X = 2;").code == "E0047"
    assert error_of("const X = 1; X += 1;").code == "E0047"
    assert error_of("const N = 1; N++;").code == "E0047"


def test_inner_let_shadows_a_constant():
    assert run("const X = 1; let r = 0; if (true) { let X = 2; X = 3; r = X; }; [X, r]") == "[1, 3]"


def test_null_is_predeclared_and_shadowable():
    assert run("null") == "null"
    assert run("let len = 3; len") == "3"


def test_increment_and_decrement():
    assert run("let i = 1; let a = i++; let b = ++i; [a, b, i]") == "[1, 3, 3]"
    assert run("let f = 1.5; f--; f") == "0.5"
    assert error_of("5++;").code == "E0019"


def test_compound_assignment_on_index_and_member():
    assert run("let a = [1, 2]; a[1] += 5; a") == "[1, 7]"
    assert run('let h = {"n": 1}; h.n *= 10; h["n"]') == "10"


###############################################################################
# Control flow
###############################################################################

def test_while_loop():
    assert run("let i = 0; while (i < 5) { i++; } i") == "5"


def test_break_and_continue_affect_innermost_loop():
    source = """
    let out = [];
    for i in 0..3 {
        for j in 0..3 {
            if (j == 1) { continue; }
            if (j == 2) { break; }
            out = push(out, i * 10 + j);
        }
    }
    out
    """
    assert run(source) == "[0, 10, 20]"


def test_return_unwinds_nested_loops():
    source = """
    define find(xs, target) {
        for i, v in xs {
            while (true) {
                if (v == target) { return i; }
                break;
            }
        }
        return -1;
    }
    [find([5, 6, 7], 7), find([5], 1)]
    """
    assert run(source) == "[2, -1]"


def test_c_style_for():
    assert run("let s = 0; for (let i = 0; i < 4; i++) { s += i; } s") == "6"


def test_descending_range():
    assert run("let xs = []; for i in 5..1 { xs = push(xs, i); } xs") == "[5, 4, 3, 2]"


def test_range_values():
    assert run("let r = 2..5; [len(r), type(r)]") == "[3, RANGE]"
    assert error_of('1.."a"').code == "E0016"


def test_for_over_hash_yields_keys_in_insertion_order(capsys):
    run('for k in {"b": 1, "a": 2} { print(k); }')
    assert capsys.readouterr().out == "b\na\n"


def test_for_index_over_hash_and_string(capsys):
    run('for k, v in {"x": 1} { print(k, v); } for i, c in "hi" { print(i, c); }')
    assert capsys.readouterr().out.split() == ["x", "1", "0", "h", "1", "i"]


def test_for_over_non_iterable():
    assert error_of("for x in 5 { }").code == "E0015"


def test_infinite_loop_warning():
    with Interpreter() as interp:
        with pytest.raises(VictoriaError):
            interp.run(parse_program("while (true) { let x = 1 / 0; }"))
        assert [d.code for d in interp.warnings] == ["W0001"]
    assert warnings_of("let n = 0; while (true) { n++; if (n > 3) { break; } }") == []


def test_switch():
    source = """
    define name(n) {
        switch (n) {
            case 1: { "one" }
            case 2: { "two" }
            default: { "many" }
        }
    }
    [name(1), name(2), name(9)]
    """
    assert run(source) == "[one, two, many]"
    assert run('switch ("x") { case "y": { 1 } }') == "null"


def test_ternary():
    assert run('let x = 3; x > 2 ? "big" : "small"') == "big"


def test_chained_ternary_groups_to_the_right():
    assert run("true ? 1 : false ? 2 : 3") == "1"
    assert run("let n = 0; n > 0 ? \"pos\" : n < 0 ? \"neg\" : \"zero\"") == "zero"


def test_block_statement_ends_before_a_parenthesised_line():
    assert run("let x = 0;\nif (true) { x = 1 }\n(x + 1)") == "2"
    assert run("let i = 0;\nwhile (i < 3) { i++ }\n[i, 10][0]") == "3"
    assert run("if (true) { 1 } else { 2 } + 3") == "4"


def test_try_catch_forms():
    assert run("try { 1 / 0; } catch { 7 }") == "7"
    assert run("try { 1 / 0; }") == "null"
    assert run("try { 5 } catch (e) { 0 }") == "5"
    assert run("define boom() { [1][3] } try { boom(); } catch (e) { e }") == (
        "index out of bounds: index is 3 but length is 1")


###############################################################################
# Collections
###############################################################################

def test_index_errors():
    assert error_of("[1, 2][2]").code == "E0006"
    assert error_of("[1, 2][-1]").code == "E0046"
    assert error_of('[1]["a"]').code == "E0001"


def test_slices_clamp_and_accept_negative_bounds():
    assert run("[1, 2, 3, 4][-2:]") == "[3, 4]"
    assert run("[1, 2, 3][1:10]") == "[2, 3]"
    assert run("[1, 2, 3][2:1]") == "[]"
    assert error_of("5[1:2]").code == "E0011"


def test_spread_errors():
    assert error_of("[...5]").code == "E0012"
    assert error_of("print(...[1]);").code == "E0012"


def test_hash_access_and_assignment():
    assert run('let h = {"a": 1}; h["b"] = 2; h.c = 3; [h["a"], h.b, h.c, h["zzz"]]') == "[1, 2, 3, null]"
    assert error_of('let h = {"a": 1}; h.b').code == "E0008"
    assert error_of("let h = {[1]: 2};").code == "E0013"


def test_hash_keys_of_mixed_types():
    assert run('let h = {1: "int", true: "bool", "1": "str"}; [h[1], h[true], h["1"], len(h)]') == (
        "[int, bool, str, 3]")


def test_array_concatenation():
    assert run("[1] + [2, 3]") == "[1, 2, 3]"


###############################################################################
# Functions
###############################################################################

def test_recursion():
    assert run("define fib(n) { if (n < 2) { return n; } return fib(n - 1) + fib(n - 2); } fib(15)") == "610"


def test_deep_recursion_within_limit():
    assert run("define down(n) { if (n == 0) { return 0; } return down(n - 1); } down(300)") == "0"


def test_recursion_limit():
    diag = error_of("define f(n) { f(n + 1) } f(0)", max_depth=50)
    assert diag.code == "E0040"
    assert "'f'" in diag.message


def test_arity_errors():
    assert error_of("define f(a, b) { a } f(1);").code == "E0010"
    assert error_of("let g = x => x; g(1, 2);").code == "E0010"
    assert error_of("len(1, 2);").code == "E0010"


def test_calling_a_non_function():
    assert error_of("let x = 5; x();").code == "E0005"


def test_builtin_errors_point_at_the_call():
    diag = error_of("let n = 1;\nlen(n);")
    assert diag.code == "E0014"
    assert diag.location.line == 2


def test_function_values_print():
    assert run("define add(a, b) { a + b } add") == "define(a, b) { (a + b); }"
    assert run("len") == "builtin function"


def test_errors_carry_filename_and_source():
    diag = error_of("let x = 1 / 0;", filename="main.vc")
    assert diag.location.filename == "main.vc"
    assert str(diag.location) == "main.vc:1:11"
    assert diag.source == "let x = 1 / 0;"


###############################################################################
# Type annotations
###############################################################################

def test_typed_let():
    assert error_of('let x: int = "s";').code == "E0031"
    assert run("let f: float = 1; f") == "1"
    assert run("let xs: []int = [1, 2]; xs") == "[1, 2]"
    assert error_of('let xs: []int = [1, "2"];').code == "E0031"
    assert run('let m: map[string]int = {"a": "shallow"}; m.a') == "shallow"


def test_return_type_checks():
    assert error_of('define f() -> int { return "s"; } f();').code == "E0033"
    assert error_of("define f() -> void { return 1; } f();").code == "E0037"
    assert error_of("define f() -> int { let x = 1; } f();").code == "E0038"
    assert run("define f() -> void { let x = 1; } f()") == "null"
    assert run("define f() -> int { 5 } f()") == "5"


def test_multiple_return_types():
    assert run('define pair() -> int, string { return [1, "a"]; } pair()') == "[1, a]"
    assert error_of('define pair() -> int, string { return [1, 2]; } pair();').code == "E0033"


def test_struct_and_enum_annotations():
    source = """
    struct P { x }
    enum E { A }
    define pick(p: P, e: E) -> int { p.x }
    pick(P { x: 4 }, E.A)
    """
    assert run(source) == "4"
    assert error_of("struct P { x } define g(p: P) { p } g(1);").code == "E0032"


###############################################################################
# Structs and enums
###############################################################################

def test_struct_literal_defaults_and_errors():
    assert run("struct P { x, y } P { x: 1 }") == "P { x: 1, y: null }"
    assert error_of("struct P { x } P { z: 1 }").code == "E0008"
    assert error_of("Q { x: 1 }").code == "E0009"


def test_unknown_struct_field_gets_struct_help():
    diag = error_of("struct A { v } let a = A{v: 1}; a.w = 1;")
    assert diag.code == "E0008"
    assert diag.message == "property 'w' not found on type STRUCT_INSTANCE"
    assert diag.help == "check the struct definition for available fields"
    assert "struct A declares: v" in diag.notes
    assert error_of("struct A { v } let a = A{v: 1}; a.w").help == diag.help
    assert "struct P declares: x, y" in error_of("struct P { x, y } P { z: 1 }").notes


def test_methods_can_mutate_self():
    source = """
    struct Counter { n }
    define Counter.add(k) { self.n += k; return self.n; }
    let c = Counter { n: 1 };
    c.add(4);
    c.n
    """
    assert run(source) == "5"


def test_method_on_unknown_struct():
    assert error_of("define Nope.m() { 1 }").code == "E0009"


def test_enums():
    source = "enum Level { LOW, MID = 10, HIGH } [Level.LOW == Level.LOW, Level.HIGH == Level.MID, Level.HIGH]"
    assert run(source) == "[true, false, Level.HIGH]"
    assert error_of("enum Level { LOW } Level.NOPE").code == "E0048"
    with Interpreter() as interp:
        interp.run(parse_program("enum Level { LOW, MID = 10, HIGH }"))
        values = interp.global_env.get("Level").values
        assert [v.value for v in values.values()] == [0, 10, 11]


def test_enum_values_as_hash_keys():
    assert run('enum C { R, G } let h = {C.R: "red"}; h[C.R]') == "red"


###############################################################################
# Debug tracing
###############################################################################

def test_debug_trace_written_to_file(tmp_path):
    trace = tmp_path / "debug.txt"
    with Interpreter(debug_level=2, debug_file=str(trace)) as interp:
        interp.run(parse_program("let x = 1; define f(a) { a } f(2);"))
    text = trace.read_text(encoding="utf-8")
    assert "let x = 1" in text
    assert "call f(2)" in text


def test_debug_level_one_skips_assignments(tmp_path):
    trace = tmp_path / "debug.txt"
    with Interpreter(debug_level=1, debug_file=str(trace)) as interp:
        interp.run(parse_program("let x = 1; define f(a) { a } f(2);"))
    text = trace.read_text(encoding="utf-8")
    assert "let x = 1" not in text
    assert "call f(2)" in text
