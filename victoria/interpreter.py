"""Tree-walking evaluator for the Victoria language.

:class:`Interpreter` evaluates a parsed :class:`~victoria.ast.Program`
node by node against a chain of :class:`~victoria.environment.Environment`
scopes. ``return``, ``break``, ``continue`` and runtime errors travel
back up the evaluator as signal objects (see :mod:`victoria.objects`);
only :meth:`Interpreter.run` turns an uncaught error into a
:class:`~victoria.errors.VictoriaError`.

Debug tracing goes through the ``victoria`` logger. With
``debug_level > 0`` the interpreter also writes that trace to
``debug_file``: level 1 traces calls, includes and caught errors, level 2
adds every declaration and assignment.
"""

from __future__ import annotations

import logging
import math
import sys
from typing import Callable, Dict, List, Optional, Tuple, Union

from . import ast
from . import catalog
from .builtin_function import BuiltinFunction
from .environment import Environment
from .errors import Diagnostic, VictoriaError
from .lexer import tokenize
from .objects import (
    NULL, TRUE, FALSE, BREAK, CONTINUE,
    Object, Integer, Float, Boolean, Null, String, Char, Byte, Rune, Array, Hash,
    Function, ArrowFunction, Struct, StructInstance, Enum, EnumValue, Range,
    ReturnValue, Error, Break, Continue, INSTANCE_OBJ,
    native_bool, is_signal, is_hashable, is_truthy, objects_equal,
)
from .parser import Parser, parse_program
from .std import core_builtins
from .std.modules import ModuleRegistry
from .types import check_type, type_name

log = logging.getLogger("victoria")

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1
DEFAULT_MAX_DEPTH = 1000

# Python frames used by one Victoria call, with headroom.
_FRAMES_PER_CALL = 40

ASSIGNMENT_OPERATORS = ("=", "+=", "-=", "*=", "/=", "%=")
COMPARISONS: Dict[str, Callable[[object, object], bool]] = {
    "<": lambda a, b: a < b,
    ">": lambda a, b: a > b,
    "<=": lambda a, b: a <= b,
    ">=": lambda a, b: a >= b,
}
ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", '"': '"', "$": "$"}

Evaluated = Union[List[Object], Error]


def wrap_int64(value: int) -> int:
    return (value - INT64_MIN) % (2 ** 64) + INT64_MIN


def decode_escapes(text: str) -> str:
    out: List[str] = []
    i = 0
    while i < len(text):
        if text[i] == "\\" and i + 1 < len(text) and text[i + 1] in ESCAPES:
            out.append(ESCAPES[text[i + 1]])
            i += 2
            continue
        out.append(text[i])
        i += 1
    return "".join(out)


def _interpolation_end(text: str, start: int) -> Optional[int]:
    """Index of the ``}`` closing a ``${`` whose body starts at ``start``."""
    depth = 1
    i = start
    while i < len(text):
        if text[i] == "{":
            depth += 1
        elif text[i] == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


class Interpreter:
    """Evaluates Victoria programs.

    One interpreter owns a builtins scope (the core functions and
    ``null``) and a global scope enclosed by it, so that programs may
    shadow a builtin without replacing it.
    """

    def __init__(self, debug_level: int = 0, debug_file: str = 'debug.txt',
                 max_depth: int = DEFAULT_MAX_DEPTH, source: str = "", filename: str = ""):
        self.debug_level = debug_level
        self.max_depth = max_depth
        self.source = source
        self.filename = filename
        self.depth = 0
        self.warnings: List[Diagnostic] = []
        self.builtins = Environment()
        self.global_env = Environment(self.builtins)
        self.modules = ModuleRegistry(self)
        self.debug_handler: Optional[logging.Handler] = None
        if debug_level > 0:
            self.debug_handler = logging.FileHandler(debug_file, mode='w', encoding='utf-8')
            self.debug_handler.setFormatter(logging.Formatter("%(message)s"))
            log.addHandler(self.debug_handler)
            log.setLevel(logging.DEBUG)
        self.load_standard_module()

        self.dispatch: Dict[type, Callable[[ast.Node, Environment], Object]] = {
            ast.Program: self.eval_program,
            ast.BlockStatement: self.eval_block,
            ast.ExpressionStatement: self.eval_expression_statement,
            ast.LetStatement: self.eval_let,
            ast.ConstStatement: self.eval_let,
            ast.ReturnStatement: self.eval_return,
            ast.IncludeStatement: self.eval_include,
            ast.TryStatement: self.eval_try,
            ast.StructStatement: self.eval_struct,
            ast.EnumStatement: self.eval_enum,
            ast.MethodDefinition: self.eval_method_definition,
            ast.BreakStatement: lambda node, env: BREAK,
            ast.ContinueStatement: lambda node, env: CONTINUE,
            ast.Identifier: self.eval_identifier,
            ast.IntegerLiteral: lambda node, env: Integer(node.value),
            ast.FloatLiteral: lambda node, env: Float(node.value),
            ast.StringLiteral: self.eval_string_literal,
            ast.Boolean: lambda node, env: native_bool(node.value),
            ast.ArrayLiteral: self.eval_array_literal,
            ast.HashLiteral: self.eval_hash_literal,
            ast.StructInstantiation: self.eval_struct_instantiation,
            ast.PrefixExpression: self.eval_prefix,
            ast.InfixExpression: self.eval_infix,
            ast.PostfixExpression: self.eval_postfix,
            ast.TernaryExpression: self.eval_ternary,
            ast.RangeExpression: self.eval_range,
            ast.SpreadExpression: self.eval_spread,
            ast.CallExpression: self.eval_call,
            ast.IndexExpression: self.eval_index,
            ast.SliceExpression: self.eval_slice,
            ast.FunctionLiteral: self.eval_function_literal,
            ast.ArrowFunction: lambda node, env: ArrowFunction(node.parameters, node.body, env),
            ast.IfExpression: self.eval_if,
            ast.WhileExpression: self.eval_while,
            ast.ForExpression: self.eval_for,
            ast.ForInIndexExpression: self.eval_for_index,
            ast.CForExpression: self.eval_c_for,
            ast.SwitchExpression: self.eval_switch,
        }

    def debug(self, msg: str, level: int = 1):
        if self.debug_level >= level:
            log.debug(msg)

    def warn(self, diag: Diagnostic) -> None:
        self.warnings.append(diag)
        log.warning("%s[%s]: %s", diag.kind.value, diag.code, diag.message)

    def close(self) -> None:
        if self.debug_handler is not None:
            log.removeHandler(self.debug_handler)
            self.debug_handler.close()
            self.debug_handler = None

    def __enter__(self) -> "Interpreter":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # Standard module loading
    def load_standard_module(self):
        for name, builtin in core_builtins(self).items():
            self.builtins.set_const(name, builtin)
        self.builtins.set_const("null", NULL)

    ###########################################################################
    # Public API
    ###########################################################################

    def run(self, program: ast.Program, env: Optional[Environment] = None) -> Object:
        """Evaluate ``program`` and return its value.

        Raises :class:`~victoria.errors.VictoriaError` when an error
        reaches the top level uncaught.
        """
        if env is None:
            env = self.global_env
        limit = self.max_depth * _FRAMES_PER_CALL + 1000
        if sys.getrecursionlimit() < limit:
            sys.setrecursionlimit(limit)
        try:
            result = self.eval(program, env)
        except RecursionError:
            self.depth = 0
            result = Error(catalog.recursion_depth("<program>", self.max_depth))
        if isinstance(result, Error):
            raise VictoriaError([result.diagnostic.with_source(self.source).with_filename(self.filename)])
        return result

    def run_source(self, source: str, filename: str = "") -> Object:
        """Parse and run ``source`` in this interpreter's global scope."""
        self.source = source
        self.filename = filename or self.filename
        program = parse_program(source, self.filename)
        return self.run(program)

    ###########################################################################
    # Evaluation
    ###########################################################################

    def eval(self, node: ast.Node, env: Environment) -> Object:
        handler = self.dispatch.get(type(node))
        if handler is None:
            return Error(catalog.parse_error(f"cannot evaluate {type(node).__name__}", node.location))
        return handler(node, env)

    def eval_program(self, program: ast.Program, env: Environment) -> Object:
        result: Object = NULL
        for stmt in program.statements:
            result = self.eval(stmt, env)
            if isinstance(result, ReturnValue):
                return result.value
            if isinstance(result, Error):
                return result
            if isinstance(result, (Break, Continue)):
                result = NULL
        return result

    def eval_block(self, block: ast.BlockStatement, env: Environment) -> Object:
        scope = env.enclosed()
        result: Object = NULL
        for stmt in block.statements:
            result = self.eval(stmt, scope)
            if is_signal(result):
                return result
        return result

    def eval_expression_statement(self, node: ast.ExpressionStatement, env: Environment) -> Object:
        return self.eval(node.expression, env)

    def eval_expressions(self, exprs: List[ast.Expression], env: Environment) -> Evaluated:
        values: List[Object] = []
        for expr in exprs:
            if isinstance(expr, ast.SpreadExpression):
                return self.eval_spread(expr, env)
            value = self.eval(expr, env)
            if is_signal(value):
                return value
            values.append(value)
        return values

    # Statements

    def eval_let(self, node: ast.LetStatement, env: Environment) -> Object:
        name = node.name.value
        if name in env.store and name in env.consts:
            return Error(catalog.constant_reassignment(name, node.name.location))
        value = self.eval(node.value, env)
        if is_signal(value):
            return value
        if node.type is not None and not check_type(value, node.type):
            return Error(catalog.variable_type_mismatch(name, str(node.type), type_name(value), node.name.location))
        if isinstance(node, ast.ConstStatement):
            env.set_const(name, value)
        else:
            env.set(name, value)
        self.debug(f"{node.keyword} {name} = {value.inspect()}", 2)
        return NULL

    def eval_return(self, node: ast.ReturnStatement, env: Environment) -> Object:
        if node.value is None:
            return ReturnValue(NULL)
        value = self.eval(node.value, env)
        if is_signal(value):
            return value
        return ReturnValue(value)

    def eval_include(self, node: ast.IncludeStatement, env: Environment) -> Object:
        for name in node.modules:
            self.debug(f"include {name}")
            err = self.modules.include(name, env)
            if err is not None:
                if err.diagnostic.location is None:
                    err.diagnostic.with_label(node.location, "included here")
                return err
        return NULL

    def eval_try(self, node: ast.TryStatement, env: Environment) -> Object:
        result = self.eval_block(node.block, env)
        if not isinstance(result, Error):
            return result
        self.debug(f"caught error: {result.message}")
        if node.catch_block is None:
            return NULL
        scope = env.enclosed()
        if node.catch_variable is not None:
            scope.set(node.catch_variable.value, String(result.message))
        return self.eval_block(node.catch_block, scope)

    def eval_struct(self, node: ast.StructStatement, env: Environment) -> Object:
        env.set(node.name.value, Struct(node.name.value, [f.value for f in node.fields]))
        self.debug(f"struct {node.name.value}", 2)
        return NULL

    def eval_enum(self, node: ast.EnumStatement, env: Environment) -> Object:
        enum = Enum(node.name.value)
        counter = 0
        for variant in node.variants:
            if variant.value is not None:
                value = self.eval(variant.value, env)
                if is_signal(value):
                    return value
                if not isinstance(value, Integer):
                    return Error(catalog.enum_value(enum.name, value.inspect(), variant.value.location))
                counter = value.value
            enum.values[variant.name.value] = EnumValue(enum.name, variant.name.value, counter)
            counter += 1
        env.set(enum.name, enum)
        self.debug(f"enum {enum.name}", 2)
        return NULL

    def eval_method_definition(self, node: ast.MethodDefinition, env: Environment) -> Object:
        struct = env.get(node.struct_name.value)
        if not isinstance(struct, Struct):
            return Error(catalog.struct_not_found(node.struct_name.value, node.struct_name.location))
        fn = node.function
        struct.methods[node.method_name.value] = Function(
            fn.parameters, fn.body, env, fn.typed_parameters, fn.return_types, fn.name)
        self.debug(f"method {fn.name}", 2)
        return NULL

    # Names and literals

    def eval_identifier(self, node: ast.Identifier, env: Environment) -> Object:
        value = env.get(node.value)
        if value is None:
            return Error(catalog.undefined_variable(node.value, node.location))
        return value

    def eval_string_literal(self, node: ast.StringLiteral, env: Environment) -> Object:
        if node.quote == "`":
            return String(node.value)
        text = node.value
        out: List[str] = []
        i = 0
        while i < len(text):
            ch = text[i]
            if ch == "\\" and i + 1 < len(text) and text[i + 1] in ESCAPES:
                out.append(ESCAPES[text[i + 1]])
                i += 2
                continue
            if ch == "$" and text[i + 1:i + 2] == "{":
                end = _interpolation_end(text, i + 2)
                if end is not None:
                    piece = self.eval_interpolation(decode_escapes(text[i + 2:end]), node, env)
                    if isinstance(piece, Error):
                        return piece
                    out.append(piece)
                    i = end + 1
                    continue
            out.append(ch)
            i += 1
        return String("".join(out))

    def eval_interpolation(self, text: str, node: ast.Node, env: Environment) -> Union[str, Error]:
        parser = Parser(tokenize(text), text, self.filename)
        program = parser.parse_program()
        if parser.errors:
            return Error(catalog.parse_error(f"string interpolation parse error: {parser.errors[0]}",
                                             node.location))
        if not program.statements:
            return ""
        value = self.eval(program.statements[0], env)
        if isinstance(value, Error):
            return value
        if isinstance(value, ReturnValue):
            value = value.value
        return value.inspect()

    def eval_array_literal(self, node: ast.ArrayLiteral, env: Environment) -> Object:
        elements: List[Object] = []
        for expr in node.elements:
            if isinstance(expr, ast.SpreadExpression):
                value = self.eval(expr.right, env)
                if is_signal(value):
                    return value
                if not isinstance(value, Array):
                    return Error(catalog.spread_error(f"cannot spread {value.type}: only arrays can be spread",
                                                      expr.location))
                elements.extend(value.elements)
                continue
            value = self.eval(expr, env)
            if is_signal(value):
                return value
            elements.append(value)
        return Array(elements)

    def eval_spread(self, node: ast.SpreadExpression, env: Environment) -> Object:
        return Error(catalog.spread_error("spread operator is only allowed inside array literals", node.location))

    def eval_hash_literal(self, node: ast.HashLiteral, env: Environment) -> Object:
        result = Hash()
        for key_node, value_node in node.pairs:
            key = self.eval(key_node, env)
            if is_signal(key):
                return key
            if not is_hashable(key):
                return Error(catalog.hash_key_error(key.type, key_node.location))
            value = self.eval(value_node, env)
            if is_signal(value):
                return value
            result.set(key, value)
        return result

    def eval_struct_instantiation(self, node: ast.StructInstantiation, env: Environment) -> Object:
        struct = env.get(node.name.value)
        if not isinstance(struct, Struct):
            return Error(catalog.struct_not_found(node.name.value, node.location))
        fields: Dict[str, Object] = {name: NULL for name in struct.fields}
        for key, expr in node.fields:
            if key not in fields:
                return Error(catalog.property_not_found(key, INSTANCE_OBJ, expr.location,
                                                        struct.name, struct.fields))
            value = self.eval(expr, env)
            if is_signal(value):
                return value
            fields[key] = value
        return StructInstance(struct, fields)

    def eval_function_literal(self, node: ast.FunctionLiteral, env: Environment) -> Object:
        return Function(node.parameters, node.body, env, node.typed_parameters, node.return_types, node.name)

    # Operators

    def eval_prefix(self, node: ast.PrefixExpression, env: Environment) -> Object:
        if node.operator in ("++", "--"):
            return self.eval_step(node.right, node.operator, node, env, prefix=True)
        right = self.eval(node.right, env)
        if is_signal(right):
            return right
        if node.operator in ("!", "not"):
            return native_bool(not is_truthy(right))
        if node.operator == "-":
            if isinstance(right, Integer):
                return self.integer_result(-right.value, "negation", node)
            if isinstance(right, Float):
                return Float(-right.value)
        return Error(catalog.unknown_operator(node.operator, right.type, node.location))

    def eval_postfix(self, node: ast.PostfixExpression, env: Environment) -> Object:
        return self.eval_step(node.left, node.operator, node, env, prefix=False)

    def eval_step(self, target: ast.Expression, operator: str, node: ast.Node, env: Environment,
                  prefix: bool) -> Object:
        """``++``/``--`` on a variable; returns the new value (prefix) or the old one."""
        if not isinstance(target, ast.Identifier):
            return Error(catalog.operator_error(f"operator {operator} requires a variable, got {target}",
                                                node.location))
        name = target.value
        current = env.get(name)
        if current is None:
            return Error(catalog.undefined_variable(name, target.location))
        if env.is_const(name):
            return Error(catalog.constant_reassignment(name, node.location))
        delta = 1 if operator == "++" else -1
        if isinstance(current, Integer):
            updated = self.integer_result(current.value + delta, "increment", node)
        elif isinstance(current, Float):
            updated = Float(current.value + delta)
        else:
            return Error(catalog.unknown_operator(operator, current.type, node.location))
        env.update(name, updated)
        self.debug(f"{name} = {updated.inspect()}", 2)
        return updated if prefix else current

    def eval_infix(self, node: ast.InfixExpression, env: Environment) -> Object:
        op = node.operator
        if op in ASSIGNMENT_OPERATORS:
            return self.eval_assignment(node, env)
        if op == ".":
            return self.eval_dot(node, env)

        left = self.eval(node.left, env)
        if is_signal(left):
            return left
        if op in ("&&", "and", "||", "or"):
            if op in ("&&", "and") and not is_truthy(left):
                return FALSE
            if op in ("||", "or") and is_truthy(left):
                return TRUE
            right = self.eval(node.right, env)
            if is_signal(right):
                return right
            return native_bool(is_truthy(right))

        right = self.eval(node.right, env)
        if is_signal(right):
            return right
        return self.infix_values(op, left, right, node)

    def infix_values(self, op: str, left: Object, right: Object, node: ast.Node) -> Object:
        loc = node.location
        if isinstance(left, Integer) and isinstance(right, Integer):
            return self.integer_infix(op, left.value, right.value, node)
        if isinstance(left, (Integer, Float)) and isinstance(right, (Integer, Float)):
            return self.float_infix(op, float(left.value), float(right.value), node)
        if isinstance(left, String) and isinstance(right, String):
            if op == "+":
                return String(left.value + right.value)
            if op in ("==", "!="):
                return native_bool((left.value == right.value) == (op == "=="))
            return Error(catalog.unknown_operator(op, left.type, loc))
        if op == "+" and isinstance(left, String) and isinstance(right, Char):
            return String(left.value + right.value)
        if op == "+" and isinstance(left, Array) and isinstance(right, Array):
            return Array(left.elements + right.elements)

        if op in ("==", "!="):
            if type(left) is type(right) or isinstance(left, Null) or isinstance(right, Null):
                return native_bool(objects_equal(left, right) == (op == "=="))
        if op in COMPARISONS:
            if type(left) is type(right) and isinstance(left, (Char, Byte, Rune)):
                return native_bool(COMPARISONS[op](left.value, right.value))
            if isinstance(left, Null) or isinstance(right, Null):
                self.warn(catalog.comparison_with_null(op, loc))

        if type(left) is not type(right):
            return Error(catalog.type_mismatch(left.type, op, right.type, loc))
        return Error(catalog.unknown_operator(op, left.type, loc))

    def integer_result(self, value: int, operation: str, node: ast.Node) -> Integer:
        if INT64_MIN <= value <= INT64_MAX:
            return Integer(value)
        self.warn(catalog.integer_overflow(operation, node.location))
        return Integer(wrap_int64(value))

    def integer_infix(self, op: str, a: int, b: int, node: ast.Node) -> Object:
        if op == "+":
            return self.integer_result(a + b, "addition", node)
        if op == "-":
            return self.integer_result(a - b, "subtraction", node)
        if op == "*":
            return self.integer_result(a * b, "multiplication", node)
        if op in ("/", "%"):
            if b == 0:
                return Error(catalog.division_by_zero(node.location))
            if op == "/":
                # Truncate toward zero.
                q = abs(a) // abs(b)
                return self.integer_result(q if (a < 0) == (b < 0) else -q, "division", node)
            if a < 0 or b < 0:
                self.warn(catalog.modulo_with_negative(node.location))
            r = abs(a) % abs(b)
            return Integer(-r if a < 0 else r)
        if op in COMPARISONS:
            return native_bool(COMPARISONS[op](a, b))
        if op == "==":
            return native_bool(a == b)
        if op == "!=":
            return native_bool(a != b)
        return Error(catalog.unknown_operator(op, "INTEGER", node.location))

    def float_infix(self, op: str, a: float, b: float, node: ast.Node) -> Object:
        if op == "+":
            return Float(a + b)
        if op == "-":
            return Float(a - b)
        if op == "*":
            return Float(a * b)
        if op in ("/", "%"):
            if b == 0:
                return Error(catalog.division_by_zero(node.location))
            return Float(a / b if op == "/" else math.fmod(a, b))
        if op in COMPARISONS:
            return native_bool(COMPARISONS[op](a, b))
        if op == "==":
            return native_bool(a == b)
        if op == "!=":
            return native_bool(a != b)
        return Error(catalog.unknown_operator(op, "FLOAT", node.location))

    def eval_assignment(self, node: ast.InfixExpression, env: Environment) -> Object:
        if node.operator == "=":
            value = self.eval(node.right, env)
            if is_signal(value):
                return value
        else:
            current = self.eval(node.left, env)
            if is_signal(current):
                return current
            rhs = self.eval(node.right, env)
            if is_signal(rhs):
                return rhs
            value = self.infix_values(node.operator[:-1], current, rhs, node)
            if is_signal(value):
                return value
        return self.assign(node.left, value, node, env)

    def assign(self, target: ast.Expression, value: Object, node: ast.Node, env: Environment) -> Object:
        if isinstance(target, ast.Identifier):
            name = target.value
            if env.is_const(name):
                return Error(catalog.constant_reassignment(name, target.location))
            if not env.update(name, value):
                return Error(catalog.undefined_variable(name, target.location))
            self.debug(f"{name} = {value.inspect()}", 2)
            return value

        if isinstance(target, ast.IndexExpression):
            container = self.eval(target.left, env)
            if is_signal(container):
                return container
            index = self.eval(target.index, env)
            if is_signal(index):
                return index
            if isinstance(container, Array):
                if not isinstance(index, Integer):
                    return Error(catalog.type_mismatch(container.type, "[]", index.type, target.index.location))
                err = self.check_index(index.value, len(container.elements), target.index)
                if err is not None:
                    return err
                container.elements[index.value] = value
                return value
            if isinstance(container, Hash):
                if not is_hashable(index):
                    return Error(catalog.hash_key_error(index.type, target.index.location))
                container.set(index, value)
                return value
            return Error(catalog.assignment_error(f"cannot assign by index to {container.type}", target.location))

        if isinstance(target, ast.InfixExpression) and target.operator == ".":
            obj = self.eval(target.left, env)
            if is_signal(obj):
                return obj
            name = target.right.value
            if isinstance(obj, Hash):
                obj.set(String(name), value)
                return value
            if isinstance(obj, StructInstance):
                if name not in obj.fields:
                    return Error(catalog.property_not_found(name, obj.type, target.right.location,
                                                          obj.struct.name, obj.struct.fields))
                obj.fields[name] = value
                return value
            return Error(catalog.member_access(f"cannot set property '{name}' on {obj.type}", obj.type,
                                               target.location))

        return Error(catalog.assignment_error(f"cannot assign to {target}", node.location))

    def eval_dot(self, node: ast.InfixExpression, env: Environment) -> Object:
        left = self.eval(node.left, env)
        if is_signal(left):
            return left
        name = node.right.value
        loc = node.right.location
        if isinstance(left, Hash):
            value = left.get(String(name))
            if value is None:
                return Error(catalog.property_not_found(name, left.type, loc))
            return value
        if isinstance(left, StructInstance):
            if name in left.fields:
                return left.fields[name]
            method = left.struct.methods.get(name)
            if method is not None:
                return self.bind_method(method, left)
            return Error(catalog.property_not_found(name, left.type, loc, left.struct.name, left.struct.fields))
        if isinstance(left, Enum):
            variant = left.values.get(name)
            if variant is None:
                return Error(catalog.enum_value(left.name, name, loc))
            return variant
        return Error(catalog.member_access(f"cannot access '{name}' on {left.type}", left.type, node.location))

    @staticmethod
    def bind_method(method: Function, instance: StructInstance) -> Function:
        scope = method.env.enclosed()
        scope.set("self", instance)
        return Function(method.parameters, method.body, scope, method.typed_parameters, method.return_types,
                        method.name)

    def eval_ternary(self, node: ast.TernaryExpression, env: Environment) -> Object:
        condition = self.eval(node.condition, env)
        if is_signal(condition):
            return condition
        return self.eval(node.consequence if is_truthy(condition) else node.alternative, env)

    def eval_range(self, node: ast.RangeExpression, env: Environment) -> Object:
        start = self.eval(node.start, env)
        if is_signal(start):
            return start
        end = self.eval(node.end, env)
        if is_signal(end):
            return end
        if not isinstance(start, Integer) or not isinstance(end, Integer):
            return Error(catalog.range_error(f"range bounds must be integers, got {start.type} and {end.type}",
                                             node.location))
        return Range(start.value, end.value)

    # Calls

    def eval_call(self, node: ast.CallExpression, env: Environment) -> Object:
        fn = self.eval(node.function, env)
        if is_signal(fn):
            return fn
        args = self.eval_expressions(node.arguments, env)
        if not isinstance(args, list):
            return args
        return self.apply_function(fn, args, node)

    def apply_function(self, fn: Object, args: List[Object], node: Optional[ast.Node] = None) -> Object:
        loc = node.location if node is not None else None
        if isinstance(fn, BuiltinFunction):
            if fn.arity is not None and len(args) != fn.arity:
                return Error(catalog.invalid_argument(fn.name, fn.arity, len(args), loc))
            result = fn.fn(args)
            if isinstance(result, Error) and result.diagnostic.location is None and loc is not None:
                result.diagnostic.with_label(loc, f"in call to '{fn.name}'")
            return result

        if not isinstance(fn, (Function, ArrowFunction)):
            return Error(catalog.not_a_function(fn.type, loc))

        name = getattr(fn, "name", "") or "<anonymous>"
        if len(args) != fn.arity:
            return Error(catalog.invalid_argument(name, fn.arity, len(args), loc))
        if self.depth >= self.max_depth:
            return Error(catalog.recursion_depth(name, self.depth, loc))

        scope = fn.env.enclosed()
        for i, param in enumerate(fn.parameters):
            if isinstance(fn, Function) and fn.typed_parameters:
                ann = fn.typed_parameters[i].type
                if ann is not None and not check_type(args[i], ann):
                    return Error(catalog.parameter_type_mismatch(param.value, name, str(ann), type_name(args[i]),
                                                                 loc))
            scope.set(param.value, args[i])

        self.debug(f"call {name}({', '.join(a.inspect() for a in args)})")
        self.depth += 1
        try:
            if isinstance(fn, ArrowFunction):
                result = self.eval(fn.body, scope)
            else:
                result = self.eval_block(fn.body, scope)
        finally:
            self.depth -= 1

        if isinstance(fn, ArrowFunction):
            if isinstance(result, ReturnValue):
                return result.value
            if isinstance(result, (Break, Continue)):
                return NULL
            return result
        return self.check_return(fn, name, result, loc)

    def check_return(self, fn: Function, name: str, result: Object, loc) -> Object:
        if isinstance(result, Error):
            return result
        explicit = isinstance(result, ReturnValue)
        if explicit:
            value = result.value
        elif isinstance(result, (Break, Continue)):
            value = NULL
        else:
            value = result
        if not fn.return_types:
            return value

        if len(fn.return_types) == 1:
            ann = fn.return_types[0]
            if ann.type_name == "void" and not ann.is_array:
                if explicit and not isinstance(value, Null):
                    return Error(catalog.void_return(loc))
                return NULL
            if not explicit and isinstance(value, Null):
                return Error(catalog.missing_return(name, str(ann), loc))
            if not check_type(value, ann):
                return Error(catalog.return_type_mismatch(name, str(ann), type_name(value), loc))
            return value

        expected = ", ".join(str(t) for t in fn.return_types)
        if (not isinstance(value, Array) or len(value.elements) != len(fn.return_types)
                or not all(check_type(v, t) for v, t in zip(value.elements, fn.return_types))):
            return Error(catalog.return_type_mismatch(name, expected, type_name(value), loc))
        return value

    # Indexing

    @staticmethod
    def check_index(index: int, length: int, node: ast.Node) -> Optional[Error]:
        if index < 0:
            return Error(catalog.negative_index(index, node.location))
        if index >= length:
            return Error(catalog.index_out_of_bounds(index, length, node.location))
        return None

    def eval_index(self, node: ast.IndexExpression, env: Environment) -> Object:
        left = self.eval(node.left, env)
        if is_signal(left):
            return left
        index = self.eval(node.index, env)
        if is_signal(index):
            return index

        if isinstance(left, (Array, String)):
            if not isinstance(index, Integer):
                return Error(catalog.type_mismatch(left.type, "[]", index.type, node.index.location))
            items = left.elements if isinstance(left, Array) else left.value
            err = self.check_index(index.value, len(items), node.index)
            if err is not None:
                return err
            item = items[index.value]
            return item if isinstance(left, Array) else String(item)
        if isinstance(left, Hash):
            if not is_hashable(index):
                return Error(catalog.hash_key_error(index.type, node.index.location))
            value = left.get(index)
            return NULL if value is None else value
        return Error(catalog.unknown_operator("[]", left.type, node.location))

    def eval_slice(self, node: ast.SliceExpression, env: Environment) -> Object:
        left = self.eval(node.left, env)
        if is_signal(left):
            return left
        bounds: List[Optional[int]] = []
        for bound in (node.start, node.end):
            if bound is None:
                bounds.append(None)
                continue
            value = self.eval(bound, env)
            if is_signal(value):
                return value
            if not isinstance(value, Integer):
                return Error(catalog.slice_error(f"slice indices must be integers, got {value.type}",
                                                 bound.location))
            bounds.append(value.value)

        if not isinstance(left, (Array, String)):
            return Error(catalog.slice_error(f"cannot slice {left.type}", node.location))
        items = left.elements if isinstance(left, Array) else left.value
        length = len(items)
        start = 0 if bounds[0] is None else bounds[0]
        end = length if bounds[1] is None else bounds[1]
        if start < 0:
            start += length
        if end < 0:
            end += length
        start = max(0, min(start, length))
        end = max(start, min(end, length))
        if isinstance(left, Array):
            return Array(left.elements[start:end])
        return String(left.value[start:end])

    # Control flow

    def eval_if(self, node: ast.IfExpression, env: Environment) -> Object:
        condition = self.eval(node.condition, env)
        if is_signal(condition):
            return condition
        if is_truthy(condition):
            return self.eval_block(node.consequence, env)
        if node.alternative is not None:
            return self.eval_block(node.alternative, env)
        return NULL

    @classmethod
    def escapes_loop(cls, block: ast.BlockStatement) -> bool:
        """Whether ``block`` has a break or return outside nested loops."""
        for stmt in block.statements:
            if isinstance(stmt, (ast.BreakStatement, ast.ReturnStatement)):
                return True
            expr = stmt.expression if isinstance(stmt, ast.ExpressionStatement) else None
            if isinstance(expr, ast.IfExpression):
                if cls.escapes_loop(expr.consequence):
                    return True
                if expr.alternative is not None and cls.escapes_loop(expr.alternative):
                    return True
            if isinstance(expr, (ast.TryStatement, ast.SwitchExpression)):
                return True
        return False

    def eval_while(self, node: ast.WhileExpression, env: Environment) -> Object:
        if isinstance(node.condition, ast.Boolean) and node.condition.value and not self.escapes_loop(node.body):
            self.warn(catalog.infinite_loop("condition is always true and the body never breaks",
                                            node.location))
        while True:
            condition = self.eval(node.condition, env)
            if is_signal(condition):
                return condition
            if not is_truthy(condition):
                return NULL
            result = self.eval_block(node.body, env)
            if isinstance(result, Break):
                return NULL
            if isinstance(result, (ReturnValue, Error)):
                return result

    def iteration_pairs(self, iterable: Object, node: ast.Node) -> Union[List[Tuple[Object, Object]], Error]:
        """(index-or-key, value) pairs for a for loop over ``iterable``."""
        if isinstance(iterable, Array):
            return [(Integer(i), v) for i, v in enumerate(iterable.elements)]
        if isinstance(iterable, String):
            return [(Integer(i), String(ch)) for i, ch in enumerate(iterable.value)]
        if isinstance(iterable, Range):
            return [(Integer(i), Integer(v)) for i, v in enumerate(iterable)]
        if isinstance(iterable, Hash):
            return [(p.key, p.value) for p in list(iterable.pairs.values())]
        return Error(catalog.not_iterable(iterable.type, node.location))

    def run_loop(self, pairs: List[Tuple[Object, Object]], bind: Callable[[Environment, Object, Object], None],
                 body: ast.BlockStatement, env: Environment) -> Object:
        for key, value in pairs:
            scope = env.enclosed()
            bind(scope, key, value)
            result = self.eval_block(body, scope)
            if isinstance(result, Break):
                break
            if isinstance(result, (ReturnValue, Error)):
                return result
        return NULL

    def eval_for(self, node: ast.ForExpression, env: Environment) -> Object:
        iterable = self.eval(node.iterable, env)
        if is_signal(iterable):
            return iterable
        pairs = self.iteration_pairs(iterable, node.iterable)
        if isinstance(pairs, Error):
            return pairs
        name = node.item.value
        # Hashes iterate over their keys.
        if isinstance(iterable, Hash):
            return self.run_loop(pairs, lambda scope, k, v: scope.set(name, k), node.body, env)
        return self.run_loop(pairs, lambda scope, k, v: scope.set(name, v), node.body, env)

    def eval_for_index(self, node: ast.ForInIndexExpression, env: Environment) -> Object:
        iterable = self.eval(node.iterable, env)
        if is_signal(iterable):
            return iterable
        pairs = self.iteration_pairs(iterable, node.iterable)
        if isinstance(pairs, Error):
            return pairs

        def bind(scope: Environment, key: Object, value: Object) -> None:
            scope.set(node.index.value, key)
            scope.set(node.value.value, value)

        return self.run_loop(pairs, bind, node.body, env)

    def eval_c_for(self, node: ast.CForExpression, env: Environment) -> Object:
        loop_env = env.enclosed()
        if node.init is not None:
            init = self.eval(node.init, loop_env)
            if isinstance(init, Error):
                return init
        while True:
            if node.condition is not None:
                condition = self.eval(node.condition, loop_env)
                if is_signal(condition):
                    return condition
                if not is_truthy(condition):
                    return NULL
            result = self.eval_block(node.body, loop_env)
            if isinstance(result, Break):
                return NULL
            if isinstance(result, (ReturnValue, Error)):
                return result
            if node.update is not None:
                update = self.eval(node.update, loop_env)
                if isinstance(update, Error):
                    return update

    def eval_switch(self, node: ast.SwitchExpression, env: Environment) -> Object:
        value = self.eval(node.value, env)
        if is_signal(value):
            return value
        for case in node.cases:
            candidate = self.eval(case.value, env)
            if is_signal(candidate):
                return candidate
            if objects_equal(value, candidate):
                return self.eval_block(case.body, env)
        if node.default is not None:
            return self.eval_block(node.default, env)
        return NULL


def run_program(source: str, debug_level: int = 0, filename: str = "", **options) -> Object:
    """Convenience function to parse and run a Victoria program from a source string."""
    program = parse_program(source, filename)
    with Interpreter(debug_level=debug_level, source=source, filename=filename, **options) as interpreter:
        return interpreter.run(program)


def compile_module(file_path: str, debug_level: int = 0, **options) -> Interpreter:
    """Parse and run a Victoria file, returning the interpreter so its globals can be inspected."""
    with open(file_path, 'r', encoding='utf-8') as f:
        source = f.read()
    program = parse_program(source, file_path)
    interpreter = Interpreter(debug_level=debug_level, source=source, filename=file_path, **options)
    try:
        interpreter.run(program)
    finally:
        interpreter.close()
    return interpreter
