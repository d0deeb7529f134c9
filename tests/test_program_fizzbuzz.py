from pathlib import Path

from victoria import parse_program, Interpreter

EXAMPLES = Path(__file__).parent.parent / 'examples'


def test_program_fizzbuzz(capsys):
    with open(EXAMPLES / 'fizzbuzz.vc', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter()
    interp.run(ast)
    out = capsys.readouterr().out.strip().split('\n')
    assert len(out) == 15
    assert out[:5] == ['1', '2', 'Fizz', '4', 'Buzz']
    assert out[-1] == 'FizzBuzz'
