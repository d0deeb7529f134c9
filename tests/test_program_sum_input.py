import builtins
from pathlib import Path

from victoria import parse_program, Interpreter

EXAMPLES = Path(__file__).parent.parent / 'examples'


def test_program_sum_input(monkeypatch, capsys):
    monkeypatch.setattr(builtins, 'input', lambda prompt='': '5')
    with open(EXAMPLES / 'sum_input.vc', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter()
    interp.run(ast)
    out = capsys.readouterr().out.strip()
    assert out == 'sum: 15'
