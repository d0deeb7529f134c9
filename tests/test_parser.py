import pytest

from victoria import ast, parse_program, VictoriaError
from victoria.lexer import tokenize
from victoria.parser import Parser


def parse_one(source):
    program = parse_program(source)
    assert len(program.statements) == 1
    return program.statements[0]


@pytest.mark.parametrize("source, expected", [
    ("1 + 2 * 3", "(1 + (2 * 3));"),
    ("a = b = 1", "(a = (b = 1));"),
    ("a && b || c", "((a && b) || c);"),
    ("a..b+1", "(a..(b + 1));"),
    ("-a * b", "((-a) * b);"),
    ("!x == false", "((!x) == false);"),
    ("a < b == c > d", "((a < b) == (c > d));"),
    ("x > 0 ? 1 : 2", "((x > 0) ? 1 : 2);"),
    ("a ? b : c ? d : e", "(a ? b : (c ? d : e));"),
    ("f(a)[0].b", "((f(a)[0]).b);"),
    ("i++ + 1", "((i++) + 1);"),
    ("not a and b", "((not a) and b);"),
])
def test_operator_precedence(source, expected):
    assert str(parse_program(source)) == expected


def test_let_with_annotation():
    stmt = parse_one("let xs: []int = [1, 2];")
    assert isinstance(stmt, ast.LetStatement)
    assert str(stmt.type) == "[]int"
    assert str(stmt) == "let xs: []int = [1, 2];"


def test_define_is_a_named_function_binding():
    stmt = parse_one("define add(a: int, b: int) -> int { return a + b; }")
    assert isinstance(stmt, ast.LetStatement)
    assert stmt.name.value == "add"
    fn = stmt.value
    assert isinstance(fn, ast.FunctionLiteral)
    assert fn.name == "add"
    assert [p.value for p in fn.parameters] == ["a", "b"]
    assert [str(t) for t in fn.return_types] == ["int"]


def test_untyped_parameters_have_no_typed_list():
    fn = parse_one("let f = define(a, b) { a };").value
    assert fn.typed_parameters is None


def test_method_definition():
    stmt = parse_one("define Point.norm() { self.x }")
    assert isinstance(stmt, ast.MethodDefinition)
    assert stmt.struct_name.value == "Point"
    assert stmt.method_name.value == "norm"


def test_arrow_functions():
    single = parse_one("x => x * 2").expression
    assert isinstance(single, ast.ArrowFunction)
    assert [p.value for p in single.parameters] == ["x"]
    pair = parse_one("(a, b) => a + b").expression
    assert [p.value for p in pair.parameters] == ["a", "b"]
    grouped = parse_one("(a + b) * 2").expression
    assert isinstance(grouped, ast.InfixExpression)


def test_slices():
    assert str(parse_program("a[1:3]")) == "(a[1:3]);"
    assert str(parse_program("a[:2]")) == "(a[:2]);"
    assert str(parse_program("a[2:]")) == "(a[2:]);"


def test_struct_literal_is_not_taken_from_a_for_iterable():
    stmt = parse_one("for p in points { print(p); }").expression
    assert isinstance(stmt, ast.ForExpression)
    assert isinstance(stmt.iterable, ast.Identifier)


def test_for_forms():
    assert isinstance(parse_one("for i, v in xs { }").expression, ast.ForInIndexExpression)
    c_for = parse_one("for (let i = 0; i < 3; i++) { }").expression
    assert isinstance(c_for, ast.CForExpression)
    assert isinstance(c_for.init, ast.LetStatement)
    assert str(c_for.condition) == "(i < 3)"


def test_include_forms():
    assert parse_one('include "math";').modules == ["math"]
    assert parse_one('include ("math", "json");').modules == ["math", "json"]


def test_enum_and_struct_statements():
    program = parse_program("struct P { x, y }\nenum Color { RED, GREEN = 5, BLUE }")
    struct, enum = program.statements
    assert [f.value for f in struct.fields] == ["x", "y"]
    assert [str(v) for v in enum.variants] == ["RED", "GREEN = 5", "BLUE"]


ROUND_TRIP_SOURCES = [
    "let x = 2 + 3 * 4; print(x);",
    "define makeAdder(n) { define(x) { x + n } }",
    'if (x > 1) { print("big"); } else if (x == 1) { print("one"); } else { print("small"); }',
    "while (i < 10) { i += 1; if (i == 5) { break; } }",
    "for (let i = 0; i < 3; i++) { continue; }",
    "for k, v in {\"a\": 1} { print(k, v); }",
    "switch (c) { case 1: { x = 1; } default: { x = 2; } }",
    "struct P { x, y } let p = P { x: 1, y: -2 }; p.x = 3;",
    "enum E { A, B = 4 } define P.m(a: int) -> int, string { return [a, \"s\"]; }",
    "let r = try { 10 / 0 } catch (e) { e };",
    "let b = [...a[1:4], 99]; let f = (a, b) => a + b; let g = x => x * 2;",
    'include ("math", "json"); const PI: float = 3.14; let s = `raw ${x}`;',
    "let m: map[string]int = {\"k\": 1}; let ok = not done and !(x || y);",
    "let t = a ? b : c ? d : e; x--; ++y;",
]


@pytest.mark.parametrize("source", ROUND_TRIP_SOURCES)
def test_printed_ast_reparses_to_the_same_tree(source):
    first = parse_program(source)
    second = parse_program(str(first))
    assert second == first
    assert str(second) == str(first)


@pytest.mark.parametrize("source", [
    "let = 5;",
    "let x 5;",
    "print(1, 2",
    "if (x { }",
    "let x = 99999999999999999999;",
    'let s = "unterminated',
    "let x = 1 @ 2;",
    "define (a b) { }",
])
def test_parse_errors_raise_with_diagnostics(source):
    with pytest.raises(VictoriaError) as info:
        parse_program(source)
    diags = info.value.diagnostics
    assert diags
    assert all(d.code.startswith("E") for d in diags)
    assert all(d.location is not None for d in diags)


def test_integer_literal_overflow_code():
    with pytest.raises(VictoriaError) as info:
        parse_program("let x = 9223372036854775808;")
    assert info.value.diagnostic.code == "E0103"


def test_parser_collects_plain_errors_without_raising():
    parser = Parser(tokenize("let = ;"), "let = ;")
    parser.parse_program()
    assert parser.errors
    assert len(parser.errors) == len(parser.rich_errors)
