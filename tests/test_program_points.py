from pathlib import Path

from victoria import parse_program, Interpreter

EXAMPLES = Path(__file__).parent.parent / 'examples'


def test_program_struct_methods(capsys):
    with open(EXAMPLES / 'points.vc', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter()
    interp.run(ast)
    out = capsys.readouterr().out.strip().split('\n')
    assert out[0] == '25'
    # Field assignment mutates the instance in place
    assert out[1] == 'Point { x: 6, y: 4 }'
