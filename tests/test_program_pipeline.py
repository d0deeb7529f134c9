from pathlib import Path

from victoria import parse_program, Interpreter

EXAMPLES = Path(__file__).parent.parent / 'examples'


def test_program_map_filter_reduce(capsys):
    with open(EXAMPLES / 'pipeline.vc', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter()
    interp.run(ast)
    out = capsys.readouterr().out.strip().split('\n')
    assert out[0] == '[4, 16, 36]'
    assert out[1] == 'total: 56'
