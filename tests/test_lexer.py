from victoria import tokens as T
from victoria.lexer import tokenize


def kinds(source):
    return [tok.type for tok in tokenize(source)]


def test_let_statement_tokens():
    assert kinds("let x = 5;") == [T.LET, T.IDENT, T.ASSIGN, T.INT, T.SEMICOLON, T.EOF]


def test_operators_longest_match():
    source = "a .. b ... c => d -> e ++ -- += -= *= /= %= == != <= >= && || ?"
    ops = [k for k in kinds(source) if k not in (T.IDENT, T.EOF)]
    assert ops == [T.RANGE, T.SPREAD, T.ARROW, T.ARROW_RETURN, T.INC, T.DEC,
                   T.PLUS_ASSIGN, T.MINUS_ASSIGN, T.ASTERISK_ASSIGN, T.SLASH_ASSIGN, T.MODULO_ASSIGN,
                   T.EQ, T.NOT_EQ, T.LTE, T.GTE, T.AND_AND, T.OR_OR, T.QUESTION]


def test_keywords_and_type_keywords():
    assert kinds("define struct enum include and or not")[:-1] == [
        T.FUNCTION, T.STRUCT, T.ENUM, T.INCLUDE, T.AND, T.OR, T.NOT]
    assert kinds("int string map void")[:-1] == [T.TYPE_INT, T.TYPE_STRING, T.TYPE_MAP, T.TYPE_VOID]
    assert kinds("println")[0] == T.IDENT


def test_numbers():
    toks = tokenize("42 3.14 .5 1..3")
    assert [(t.type, str(t)) for t in toks[:-1]] == [
        (T.INT, "42"), (T.FLOAT, "3.14"), (T.FLOAT, ".5"),
        (T.INT, "1"), (T.RANGE, ".."), (T.INT, "3"),
    ]


def test_string_literal_keeps_raw_text():
    toks = tokenize('"a\\"b ${x}" `raw\\n`')
    assert toks[0].type == T.STRING
    assert str(toks[0]) == 'a\\"b ${x}'
    assert toks[1].type == T.STRING
    assert str(toks[1]) == 'raw\\n'


def test_unterminated_string():
    toks = tokenize('let s = "oops')
    assert toks[-2].type == T.UNTERMINATED_STRING
    assert toks[-1].type == T.EOF


def test_comments_are_skipped():
    source = "// line comment\nlet /* block\ncomment */ x = 1;"
    assert kinds(source) == [T.LET, T.IDENT, T.ASSIGN, T.INT, T.SEMICOLON, T.EOF]


def test_positions_track_lines_and_columns():
    toks = tokenize("let a = 1;\n  let b = 2;")
    second_let = toks[5]
    assert second_let.type == T.LET
    assert second_let.line == 2
    assert second_let.column == 3
    assert toks[1].column == 5
    assert toks[1].end_column == 6


def test_lexer_always_terminates_with_valid_positions():
    for source in ["", "@#&|", "let x = \"unterminated", "\n\n\n", "a\n  b\n\tc $ ^"]:
        toks = tokenize(source)
        assert toks[-1].type == T.EOF
        assert all(tok.line >= 1 and tok.column >= 1 for tok in toks)
        assert toks[-1].line == 1 + source.count("\n")


def test_illegal_characters():
    toks = tokenize("a & b")
    assert toks[1].type == T.ILLEGAL
    assert str(toks[1]) == "&"
