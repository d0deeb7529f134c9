# Victoria language package
# This package provides a lexer, parser and tree-walking interpreter for the Victoria language.
import logging

from .errors import VictoriaError
from .interpreter import run_program, compile_module, Interpreter
from .parser import parse_program

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "1.0.0"

__all__ = [
    'run_program',
    'compile_module',
    'parse_program',
    'Interpreter',
    'VictoriaError',
]
