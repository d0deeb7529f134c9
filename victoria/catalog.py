"""The catalog of Victoria diagnostics.

Each entry is a small function registered under its code. It takes the
facts of one situation (operand types, a variable name, an index...)
plus the source location, and returns a fully populated
:class:`~victoria.errors.Diagnostic`. Entries never render anything and
never consult randomness, so the same arguments always give the same
record.

    >>> d = lookup("E0007")(loc)
    >>> d.message
    'division by zero'
"""

from __future__ import annotations

from typing import Callable, Dict, Optional, Sequence

from .errors import Diagnostic, ErrorKind, SourceLocation

Loc = Optional[SourceLocation]

CATALOG: Dict[str, Callable[..., Diagnostic]] = {}


def entry(code: str):
    def register(fn: Callable[..., Diagnostic]) -> Callable[..., Diagnostic]:
        def build(*args, **kwargs) -> Diagnostic:
            return fn(*args, **kwargs).with_code(code)
        build.__name__ = fn.__name__
        build.__doc__ = fn.__doc__
        build.code = code
        CATALOG[code] = build
        return build
    return register


def lookup(code: str) -> Callable[..., Diagnostic]:
    return CATALOG[code]


def _diag(message: str, loc: Loc, label: str, kind: ErrorKind = ErrorKind.ERROR, primary: bool = True) -> Diagnostic:
    return Diagnostic(message, kind=kind).with_label(loc, label, primary)


###############################################################################
# Core runtime and parse errors
###############################################################################

@entry("E0001")
def type_mismatch(left: str, op: str, right: str, loc: Loc = None) -> Diagnostic:
    d = _diag(f"type mismatch: cannot apply '{op}' to {left} and {right}", loc,
              f"'{op}' cannot be applied to these types")
    d.with_note(f"left operand has type {left}")
    d.with_note(f"right operand has type {right}")
    d.with_note("Victoria is dynamically typed but operators require compatible types")
    pair = {left, right}
    if pair == {"STRING", "INTEGER"}:
        d.with_help('use string() to convert integers: "text" + string(42)')
        d.with_note("string concatenation requires both operands to be strings")
    elif pair == {"STRING", "FLOAT"}:
        d.with_help('use string() to convert floats: "value: " + string(3.14)')
    elif left == "STRING" and right == "STRING" and op != "+":
        d.with_help("strings only support '+' for concatenation and '==' / '!=' for comparison")
    elif pair == {"BOOLEAN", "INTEGER"}:
        d.with_help("use int() to convert boolean: int(true) returns 1, int(false) returns 0")
    elif "ARRAY" in pair:
        d.with_help("arrays only support '+' for concatenation: [1, 2] + [3, 4]")
        d.with_note("use push(), pop(), or spread operator for array manipulation")
    elif "HASH" in pair:
        d.with_help('hashes don\'t support arithmetic; access values with hash["key"]')
    elif "NULL" in pair:
        d.with_help("check for null before performing operations: if value != null { ... }")
        d.with_note("null cannot be used in arithmetic operations")
    else:
        d.with_help("convert one operand to match the other's type")
    return d


_PRINT = "did you mean 'print'? Victoria uses print() for output"
_STRING = "did you mean 'string'? Victoria uses string() for conversion"
_LEN = "did you mean 'len'? Victoria uses len() for length"
_PUSH = "did you mean 'push'? Victoria uses push(array, element)"
_NULL = "did you mean 'null'? Victoria uses null for no value"
_NULL_CASE = "did you mean 'null'? Keywords are lowercase in Victoria"
_TRUE = "did you mean 'true'? Booleans are lowercase in Victoria"
_FALSE = "did you mean 'false'? Booleans are lowercase in Victoria"
_DEFINE = "did you mean 'define'? Victoria uses 'define' for functions"
_SLICE = "use string slicing: str[start:end]"
_FOR_IN = "use a for-in loop: for item in array { ... }"
_INCLUDE = "did you mean 'include'? Victoria uses include \"filename\""

# Names people bring from other languages, mapped to the Victoria spelling.
SUGGESTIONS: Dict[str, str] = {
    "println": _PRINT,
    "printf": "did you mean 'format'? Victoria uses format() for formatted strings",
    "console": _PRINT,
    "log": _PRINT,
    "echo": _PRINT,
    "puts": _PRINT,
    "write": _PRINT,
    "str": _STRING,
    "toString": _STRING,
    "String": "did you mean 'string'? Victoria uses lowercase string()",
    "parseInt": "did you mean 'int'? Victoria uses int() for conversion",
    "toInt": "did you mean 'int'? Victoria uses int() for conversion",
    "Int": "did you mean 'int'? Victoria uses lowercase int()",
    "parseFloat": "did you mean 'float'? Victoria uses float() for conversion",
    "Float": "did you mean 'float'? Victoria uses lowercase float()",
    "Bool": "did you mean 'bool'? Victoria uses lowercase bool()",
    "boolean": "did you mean 'bool'? Victoria uses bool() for conversion",
    "typeof": "did you mean 'type'? Victoria uses type(value)",
    "size": _LEN,
    "length": _LEN,
    "count": _LEN,
    "sizeof": _LEN,
    "append": _PUSH,
    "add": _PUSH,
    "insert": "did you mean 'push'? Victoria uses push() for the end; use slicing for other positions",
    "shift": "did you mean 'rest'? Victoria uses rest(array) to skip the first element",
    "unshift": "use array concatenation: [newElement, ...array]",
    "remove": "did you mean 'pop'? Victoria uses pop(array) for the last element",
    "delete": "use filter() to create a new array without elements",
    "concat": "use the + operator or spread: [...arr1, ...arr2]",
    "head": "did you mean 'first'? Victoria uses first(array)",
    "tail": "did you mean 'rest'? Victoria uses rest(array)",
    "fold": "did you mean 'reduce'? Victoria uses reduce(array, fn, initial)",
    "nil": _NULL,
    "none": _NULL,
    "None": _NULL,
    "undefined": _NULL,
    "NULL": _NULL_CASE,
    "Null": _NULL_CASE,
    "True": _TRUE,
    "False": _FALSE,
    "TRUE": _TRUE,
    "FALSE": _FALSE,
    "fn": _DEFINE,
    "func": _DEFINE,
    "function": _DEFINE,
    "lambda": _DEFINE,
    "def": _DEFINE,
    "var": "did you mean 'let'? Victoria uses 'let' for variable declaration",
    "substr": _SLICE,
    "substring": _SLICE,
    "charAt": "use string indexing: str[index]",
    "indexOf": "did you mean 'index'? Victoria uses index(string, substring)",
    "includes": "did you mean 'contains'? Victoria uses contains(string, substring)",
    "toUpperCase": "did you mean 'upper'? Victoria uses upper(string)",
    "toLowerCase": "did you mean 'lower'? Victoria uses lower(string)",
    "startsWith": "use slicing: str[0:len(prefix)] == prefix",
    "endsWith": "use slicing: str[len(str)-len(suffix):] == suffix",
    "trim": "Victoria doesn't have trim() yet; use a custom function",
    "replace": "Victoria doesn't have replace() yet; use split() and join()",
    "forEach": _FOR_IN,
    "foreach": _FOR_IN,
    "each": _FOR_IN,
    "abs": "Victoria doesn't have abs() yet; use: if x < 0 { -x } else { x }",
    "max": "Victoria doesn't have max() yet; use: if a > b { a } else { b }",
    "min": "Victoria doesn't have min() yet; use: if a < b { a } else { b }",
    "floor": "use int() to truncate: int(3.7) returns 3",
    "round": "use int() with 0.5: int(x + 0.5)",
    "sqrt": "Victoria doesn't have sqrt() yet; include \"math\" for math.sqrt()",
    "pow": "Victoria doesn't have pow() yet; use repeated multiplication",
    "random": "Victoria doesn't have random() yet",
    "exit": "Victoria doesn't have exit() yet",
    "sleep": "Victoria doesn't have sleep() yet",
    "require": _INCLUDE,
    "import": _INCLUDE,
    "self": "'self' is only bound inside methods defined with define Struct.method()",
}


@entry("E0002")
def undefined_variable(name: str, loc: Loc = None) -> Diagnostic:
    d = _diag(f"undefined variable: '{name}'", loc, "not found in this scope")
    d.with_note("variables must be declared before use")
    if name in SUGGESTIONS:
        d.with_help(SUGGESTIONS[name])
    else:
        d.with_help(f"declare with 'let {name} = <value>' or 'const {name} = <value>'")
        d.with_note("check spelling and ensure the variable is in scope")
    return d


_OPERATOR_HELP = {
    "STRING": ("strings support: + (concatenation), == and != (comparison)",
               "use string functions for other operations: upper(), lower(), split(), contains()"),
    "BOOLEAN": ("booleans support: == and != (comparison), and, or, ! (logical)",
                "use 'and', 'or', '!' for boolean logic, not arithmetic operators"),
    "ARRAY": ("arrays support: + (concatenation), == and != (comparison)",
              "use array functions: push(), pop(), map(), filter(), reduce()"),
    "HASH": ("hashes support: == and != (comparison) only",
             'access hash values with hash["key"] or hash.key'),
    "FUNCTION": ("functions can only be compared with == and !=",
                 "call the function first to operate on its return value: fn() + 1"),
}


@entry("E0003")
def unknown_operator(op: str, type_name: str, loc: Loc = None) -> Diagnostic:
    d = _diag(f"unknown operator: '{op}' for type {type_name}", loc, "unsupported operator for this type")
    note, help = _OPERATOR_HELP.get(type_name, (
        f"the operator '{op}' is not defined for type {type_name}",
        "check the language reference for supported operators",
    ))
    return d.with_note(note).with_help(help)


_EXPECTED_HELP = {
    "=": ("variable declarations require an initializer",
          "add an initial value: let variable = value"),
    ")": ("every opening parenthesis '(' must have a matching closing ')'",
          "check for missing closing parenthesis in function calls or expressions"),
    "}": ("every opening brace '{' must have a matching closing '}'",
          "check for missing closing brace in blocks, functions, or hashes"),
    "]": ("every opening bracket '[' must have a matching closing ']'",
          "check for missing closing bracket in array literals or index expressions"),
    ";": ("statements should be separated by newlines",
          "Victoria doesn't require semicolons; just use a new line"),
    "identifier": ("an identifier (variable name) was expected here",
                   "variable names must start with a letter and contain only letters, numbers, and underscores"),
}


@entry("E0004")
def unexpected_token(expected: str, found: str, loc: Loc = None) -> Diagnostic:
    d = _diag(f"expected '{expected}' but found '{found}'", loc, f"expected '{expected}' here")
    note, help = _EXPECTED_HELP.get(expected, (
        "the parser encountered an unexpected token",
        "check the syntax around this location",
    ))
    return d.with_note(note).with_help(help)


_CALL_HELP = {
    "INTEGER": "remove the parentheses, or use a function that returns an integer",
    "STRING": "strings cannot be called; use string methods like upper(), lower(), split()",
    "ARRAY": "use array[index] to access elements, not array(index)",
    "HASH": 'use hash["key"] or hash.key to access values, not hash()',
    "BOOLEAN": "booleans cannot be called; use boolean expressions with 'and', 'or', '!'",
}


@entry("E0005")
def not_a_function(type_name: str, loc: Loc = None) -> Diagnostic:
    d = _diag(f"'{type_name}' is not a function", loc, "cannot be called as a function")
    d.with_note(f"found type {type_name}, but expected FUNCTION or BUILTIN")
    d.with_note("only functions defined with define can be called")
    return d.with_help(_CALL_HELP.get(type_name, "ensure the variable contains a function before calling it"))


@entry("E0006")
def index_out_of_bounds(index: int, length: int, loc: Loc = None) -> Diagnostic:
    d = _diag(f"index out of bounds: index is {index} but length is {length}", loc,
              f"index {index} is out of range")
    if length == 0:
        d.with_note("the array/string is empty (length 0)")
        d.with_note("there are no valid indices for an empty collection")
        d.with_help("check if the collection is empty with len() before accessing")
    else:
        d.with_note(f"valid indices are 0 to {length - 1} (inclusive)")
        d.with_note("Victoria uses zero-based indexing")
        if index < 0:
            d.with_help("negative indices are not supported; use len(arr) - 1 for the last element")
        else:
            d.with_help(f"use an index between 0 and {length - 1}")
    return d


@entry("E0007")
def division_by_zero(loc: Loc = None) -> Diagnostic:
    return (_diag("division by zero", loc, "divisor is zero here")
            .with_note("dividing by zero is undefined in mathematics")
            .with_note("this error occurs at runtime when the divisor evaluates to 0")
            .with_help("add a check: if divisor != 0 { result = x / divisor }"))


@entry("E0008")
def property_not_found(prop: str, type_name: str, loc: Loc = None, struct: Optional[str] = None,
                       fields: Sequence[str] = ()) -> Diagnostic:
    d = _diag(f"property '{prop}' not found on type {type_name}", loc, "unknown property or method")
    d.with_note(f"type {type_name} does not have a property named '{prop}'")
    if type_name == "HASH":
        d.with_help(f'check if key exists: if hash["{prop}"] != null {{ ... }}')
        d.with_note("use keys(hash) to see all available keys")
    elif type_name == "STRUCT_INSTANCE":
        d.with_help("check the struct definition for available fields")
        d.with_note("struct fields must be defined when the struct is created")
        if struct is not None:
            d.with_note(f"struct {struct} declares: {', '.join(fields) if fields else 'no fields'}")
    elif type_name == "ARRAY":
        d.with_help("arrays don't have properties; use len(), first(), last(), etc.")
        d.with_note("common array functions: push, pop, first, last, rest, len")
    elif type_name == "STRING":
        d.with_help("strings don't have properties; use string functions instead")
        d.with_note("common string functions: upper, lower, split, len, contains")
    else:
        d.with_help("check that the property name is spelled correctly")
    return d


@entry("E0009")
def struct_not_found(name: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"struct '{name}' not found", loc, "undefined struct type")
            .with_note("structs must be defined before they can be instantiated")
            .with_note(f"no struct named '{name}' exists in the current scope")
            .with_help(f"define the struct first:\n       struct {name} {{\n           field1,\n"
                       f"           field2\n       }}"))


USAGE: Dict[str, str] = {
    "len": "len(collection) - returns the length of an array, string, or hash",
    "push": "push(array, element) - adds an element to the end of an array",
    "pop": "pop(array) - removes and returns the last element",
    "first": "first(array) - returns the first element",
    "last": "last(array) - returns the last element",
    "rest": "rest(array) - returns all elements except the first",
    "split": "split(string, delimiter) - splits a string into an array",
    "join": "join(array, separator) - joins array elements into a string",
    "upper": "upper(string) - converts string to uppercase",
    "lower": "lower(string) - converts string to lowercase",
    "contains": "contains(collection, element) - checks if element exists",
    "index": "index(collection, element) - finds the index of an element",
    "map": "map(array, fn) - applies fn to each element",
    "filter": "filter(array, fn) - keeps elements where fn returns true",
    "reduce": "reduce(array, fn, [initial]) - reduces array to single value",
    "range": "range(end) or range(start, end) or range(start, end, step)",
    "format": "format(template, ...values) - formats a string with values",
    "int": "int(value) - converts value to integer",
    "float": "float(value) - converts value to float",
    "bool": "bool(value) - converts value to boolean using truthiness",
    "string": "string(value) - converts value to string",
    "type": "type(value) - returns the type of a value as a string",
    "keys": "keys(hash) - returns array of hash keys",
    "values": "values(hash) - returns array of hash values",
    "print": "print(...values) - prints values to stdout",
    "input": "input([prompt]) - reads a line from stdin",
}


@entry("E0010")
def invalid_argument(fn: str, expected: int, got: int, loc: Loc = None) -> Diagnostic:
    if expected == got:
        message = f"wrong number of arguments to '{fn}'"
    elif got < expected:
        message = f"too few arguments to '{fn}': expected {expected}, got {got}"
    else:
        message = f"too many arguments to '{fn}': expected {expected}, got {got}"
    d = _diag(message, loc, f"expected {expected} argument(s), found {got}")
    if fn in USAGE:
        d.with_help(f"usage: {USAGE[fn]}")
    return d


@entry("E0011")
def slice_error(message: str, loc: Loc = None) -> Diagnostic:
    return (_diag(message, loc, "invalid slice operation")
            .with_note("slice syntax: collection[start:end]")
            .with_note("both start and end must be integers")
            .with_help("example: arr[0:5] or str[2:10]"))


@entry("E0012")
def spread_error(message: str, loc: Loc = None) -> Diagnostic:
    return (_diag(message, loc, "invalid spread operation")
            .with_note("the spread operator (...) unpacks array elements")
            .with_note("it can only be used inside array literals: [...arr]")
            .with_help("example: let combined = [...arr1, ...arr2]"))


@entry("E0013")
def hash_key_error(type_name: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"unusable as hash key: {type_name}", loc, "cannot be used as a hash key")
            .with_note("hash keys must be hashable (immutable) types")
            .with_note("valid key types: STRING, INTEGER, BOOLEAN, CHAR, BYTE, RUNE, ENUM_VALUE")
            .with_help("use a string, integer, or boolean value as the key"))


@entry("E0014")
def argument_type(fn: str, position: str, expected: str, got: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"argument {position} to '{fn}' must be {expected}, got {got}", loc, f"expected {expected}")
            .with_note(f"'{fn}' requires a {expected} value for this argument")
            .with_help(f"convert the value to {expected} or use a different value"))


@entry("E0015")
def not_iterable(type_name: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"not iterable: {type_name}", loc, "cannot iterate over this value")
            .with_note("for-in loops require an iterable collection")
            .with_note("iterable types: ARRAY, STRING, HASH, and ranges")
            .with_help("use range() to iterate over numbers: for i in range(10) { ... }"))


@entry("E0016")
def range_error(message: str, loc: Loc = None) -> Diagnostic:
    return (_diag(message, loc, "invalid range")
            .with_note("range() creates a sequence of integers")
            .with_note("all range arguments must be integers")
            .with_help("usage: range(end), range(start, end), or range(start, end, step)"))


@entry("E0017")
def conversion_error(value: str, target: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"could not convert '{value}' to {target}", loc, "conversion failed")
            .with_note(f"the value '{value}' cannot be interpreted as {target}")
            .with_help(f"ensure the value is a valid {target} representation"))


@entry("E0018")
def assignment_error(message: str, loc: Loc = None) -> Diagnostic:
    return (_diag(message, loc, "invalid assignment target")
            .with_note("assignments must target a variable name or index expression")
            .with_help('use: variable = value, array[index] = value, or hash["key"] = value'))


@entry("E0019")
def operator_error(message: str, loc: Loc = None) -> Diagnostic:
    return (_diag(message, loc, "invalid operator usage")
            .with_note("increment (++) and decrement (--) require a variable")
            .with_help("use: i++ or ++i where i is a declared variable"))


@entry("E0020")
def member_access(message: str, type_name: str, loc: Loc = None) -> Diagnostic:
    return (_diag(message, loc, "cannot access member")
            .with_note(f"type {type_name} does not support dot notation")
            .with_note("dot access is for hashes, structs, and objects with methods")
            .with_help('for dynamic keys, use bracket notation: hash["key"]'))


@entry("E0021")
def module_not_found(name: str, searched: str = "", loc: Loc = None) -> Diagnostic:
    d = _diag(f"module or file not found: {name}", loc, "cannot include this module")
    d.with_note("built-in modules: std, math, json, time, path, os")
    if searched:
        d.with_note(f"searched: {searched}")
    return d.with_help(f'create {name}.vc next to your program, or install it under victoria_modules/{name}/')


@entry("E0022")
def module_error(module: str, message: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"{module}: {message}", loc, f"{module} call failed")
            .with_note(f"the '{module}' module reported an error from the host system")
            .with_help("check the arguments, file paths and permissions involved"))


###############################################################################
# Type annotations
###############################################################################

@entry("E0030")
def type_annotation_mismatch(expected: str, actual: str, context: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"type mismatch: expected {expected}, got {actual}", loc, f"expected {expected}")
            .with_note(f"in {context}: expected type '{expected}' but received '{actual}'")
            .with_note("Victoria's type system helps catch errors early")
            .with_help(f"ensure the value is of type {expected}, or adjust the type annotation"))


@entry("E0031")
def variable_type_mismatch(name: str, expected: str, actual: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"cannot assign {actual} to variable '{name}' of type {expected}", loc,
                  f"expected {expected}, found {actual}")
            .with_note(f"variable '{name}' was declared with type annotation :{expected}")
            .with_note("type annotations are enforced at runtime for type safety")
            .with_help(f"either assign a {expected} value, or change the type annotation to :{actual}"))


@entry("E0032")
def parameter_type_mismatch(param: str, fn: str, expected: str, actual: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"type mismatch for parameter '{param}': expected {expected}, got {actual}", loc,
                  f"wrong type for parameter '{param}'")
            .with_note(f"function '{fn}' expects parameter '{param}' to be of type {expected}")
            .with_note("typed parameters enforce type checking when the function is called")
            .with_help(f"pass a {expected} value, or use type conversion: {expected}(value)"))


@entry("E0033")
def return_type_mismatch(fn: str, expected: str, actual: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"return type mismatch: expected {expected}, got {actual}", loc,
                  f"returns {actual}, expected {expected}")
            .with_note(f"function '{fn}' has return type annotation -> {expected}")
            .with_note("return type annotations ensure the function returns the expected type")
            .with_help(f"return a {expected} value, or change the return type annotation"))


@entry("E0034")
def invalid_type_annotation(type_name: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"invalid type annotation: '{type_name}'", loc, "unknown type")
            .with_note("type annotations must be valid type names")
            .with_note("built-in types: int, float, string, bool, char, byte, rune, array, map, any, void")
            .with_help("use a built-in type or a defined struct name"))


@entry("E0035")
def type_annotation_required(context: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"type annotation required in {context}", loc, "missing type annotation")
            .with_note("some contexts require explicit type annotations")
            .with_help("add a type annotation using the syntax :type (e.g., x:int)"))


@entry("E0036")
def array_type_mismatch(expected: str, actual: str, index: int, loc: Loc = None) -> Diagnostic:
    return (_diag(f"array element type mismatch at index {index}: expected {expected}, got {actual}", loc,
                  f"wrong element type at index {index}")
            .with_note(f"typed arrays ([]{expected}) require all elements to be of type {expected}")
            .with_help(f"ensure all array elements are of type {expected}"))


@entry("E0037")
def void_return(loc: Loc = None) -> Diagnostic:
    return (_diag("cannot return a value from a void function", loc, "unexpected return value")
            .with_note("functions with return type -> void should not return a value")
            .with_note("use 'return' without a value, or simply let the function end")
            .with_help("remove the return value, or change the return type annotation"))


@entry("E0038")
def missing_return(fn: str, expected: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"function '{fn}' must return a value of type {expected}", loc, "missing return statement")
            .with_note(f"function '{fn}' has return type -> {expected}")
            .with_note("all code paths must return a value of the declared type")
            .with_help(f"add a return statement that returns a {expected} value"))


###############################################################################
# Algorithm and data-structure mistakes
###############################################################################

@entry("E0040")
def recursion_depth(fn: str, depth: int, loc: Loc = None) -> Diagnostic:
    return (_diag(f"maximum recursion depth exceeded in '{fn}' (depth: {depth})", loc, "recursion too deep")
            .with_note(f"function '{fn}' called itself too many times")
            .with_note("this usually indicates missing base case or incorrect termination condition")
            .with_note("DSA tip: every recursive function needs a base case that stops the recursion")
            .with_help("check your base case: ensure the recursion stops for some input "
                       "(e.g., n <= 0, array is empty)"))


@entry("E0041")
def off_by_one(context: str, suggestion: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"off-by-one error: {context}", loc, "index boundary issue")
            .with_note("off-by-one errors are one of the most common bugs in algorithms")
            .with_note("remember: arrays use 0-based indexing (first element is index 0)")
            .with_note("the last valid index is len(array) - 1, not len(array)")
            .with_help(suggestion))


@entry("E0042")
def empty_collection(operation: str, type_name: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"cannot {operation} on empty {type_name}", loc, f"{type_name} is empty")
            .with_note(f"the {type_name} has no elements to operate on")
            .with_note("DSA tip: always check for empty collections before accessing elements")
            .with_help("add a check: if len(collection) > 0 { ... } or "
                       "if len(collection) == 0 { return defaultValue }"))


@entry("E0043")
def binary_search(mistake: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"binary search error: {mistake}", loc, "binary search issue")
            .with_note("binary search requires a sorted array")
            .with_note("common mistakes: wrong mid calculation, incorrect boundary updates")
            .with_note("DSA tip: use mid = left + (right - left) / 2 to avoid integer overflow")
            .with_help("ensure: 1) array is sorted, 2) boundaries update correctly, "
                       "3) loop condition is left <= right"))


@entry("E0044")
def graph_cycle(loc: Loc = None) -> Diagnostic:
    return (_diag("cycle detected in graph", loc, "cycle found here")
            .with_note("a cycle exists in the graph structure")
            .with_note("DSA tip: use visited state tracking (UNVISITED, VISITING, VISITED) for cycle detection")
            .with_help("use an enum to track node states during DFS traversal"))


@entry("E0045")
def sorted_array_required(operation: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"{operation} requires a sorted array", loc, "array may not be sorted")
            .with_note(f"'{operation}' assumes the input array is sorted in ascending order")
            .with_note("DSA tip: sort the array first, or use a different algorithm")
            .with_help("ensure the array is sorted before calling this function"))


@entry("E0046")
def negative_index(index: int, loc: Loc = None) -> Diagnostic:
    return (_diag(f"negative index: {index}", loc, "negative indices not supported")
            .with_note(f"index {index} is negative")
            .with_note("Victoria arrays use zero-based positive indexing")
            .with_help("to access from the end, use: arr[len(arr) - 1] for the last element"))


@entry("E0047")
def constant_reassignment(name: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"cannot reassign constant: '{name}'", loc, "constant cannot be modified")
            .with_note(f"'{name}' was declared as a constant with 'const'")
            .with_note("constants are immutable and cannot be changed after declaration")
            .with_help(f"if you need to modify '{name}', declare it with 'let' instead of 'const'"))


@entry("E0048")
def enum_value(enum: str, value: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"enum '{enum}' has no value '{value}'", loc, "invalid enum value")
            .with_note(f"'{value}' is not a valid member of enum '{enum}'")
            .with_note("DSA tip: enums are great for representing finite states (e.g., NodeState.VISITED)")
            .with_help(f"check the enum definition for valid values: enum {enum} {{ VALUE1, VALUE2, ... }}"))


@entry("E0049")
def character_conversion(value: str, operation: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"cannot {operation}: '{value}'", loc, "invalid character operation")
            .with_note("character operations expect single characters or valid code points")
            .with_note("ord() expects a character, chr() expects a non-negative integer")
            .with_help("for ord(): pass a single character 'a'. For chr(): pass an integer like 97"))


@entry("E0050")
def make_directive(message: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"#make error: {message}", loc, "invalid #make directive")
            .with_note("#make creates compile-time constants, similar to C's #define")
            .with_note("syntax: #make NAME value")
            .with_help("example: #make MOD 1000000007 or #make MAX_N 100005"))


###############################################################################
# Lexing and parsing
###############################################################################

@entry("E0100")
def parse_error(message: str, loc: Loc = None) -> Diagnostic:
    d = _diag(message, loc, "")
    if "expected" in message:
        d.with_note("the parser encountered an unexpected token")
        if "=" in message:
            d.with_help("check that variable declarations use 'let' or 'const'")
        elif ")" in message:
            d.with_help("ensure all opening parentheses '(' have matching closing parentheses ')'")
        elif "}" in message:
            d.with_help("ensure all opening braces '{' have matching closing braces '}'")
        elif "]" in message:
            d.with_help("ensure all opening brackets '[' have matching closing brackets ']'")
    return d


_ILLEGAL_HELP = {
    "@": "Victoria doesn't use @ for decorators; use regular function calls",
    "$": "variable names don't need $; just use: let name = value",
    "#": "Victoria uses // for comments, not #",
    "&": "use '&&' or 'and' for logical and",
    "|": "use '||' or 'or' for logical or",
}


@entry("E0101")
def illegal_character(char: str, loc: Loc = None) -> Diagnostic:
    d = _diag(f"illegal character: '{char}'", loc, "this character is not valid here")
    d.with_note(f"the character '{char}' (code point {ord(char[0]) if char else 0}) is not recognized")
    d.with_help(_ILLEGAL_HELP.get(char, "check for copy-paste errors or encoding issues"))
    if char == "$":
        d.with_note('$ is only used inside strings for interpolation: "${variable}"')
    return d


@entry("E0102")
def unterminated_string(loc: Loc = None) -> Diagnostic:
    return (_diag("unterminated string literal", loc, "string starts here but never ends")
            .with_note("strings must begin and end with double quotes")
            .with_note("multi-line strings are supported; ensure the closing quote exists")
            .with_help("add a closing quote '\"' to terminate the string"))


@entry("E0103")
def invalid_integer(literal: str, loc: Loc = None) -> Diagnostic:
    return (parse_error(f"invalid integer literal '{literal}'", loc)
            .with_help("integers must be valid numeric values within the supported range"))


@entry("E0104")
def invalid_float(literal: str, loc: Loc = None) -> Diagnostic:
    return (parse_error(f"invalid float literal '{literal}'", loc)
            .with_help("floats must be valid numeric values like 3.14 or 0.5"))


###############################################################################
# Warnings and notes
###############################################################################

@entry("W0001")
def infinite_loop(reason: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"potential infinite loop: {reason}", loc, "this loop may never terminate", ErrorKind.WARNING)
            .with_note("infinite loops can freeze your program")
            .with_note("ensure your loop condition will eventually become false")
            .with_help("check that your loop variable is being modified inside the loop"))


@entry("W0002")
def time_complexity(operation: str, complexity: str, suggestion: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"potentially slow: {operation} has {complexity} complexity", loc,
                  f"O({complexity}) operation", ErrorKind.WARNING)
            .with_note(f"this operation has {complexity} time complexity")
            .with_note("for large inputs, this may cause performance issues")
            .with_help(suggestion))


@entry("W0003")
def integer_overflow(operation: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"potential integer overflow in {operation}", loc, "may overflow for large values",
                  ErrorKind.WARNING)
            .with_note("integer operations can overflow for very large numbers")
            .with_note("DSA tip: use modular arithmetic to prevent overflow")
            .with_help("use modulo: result = (a * b) % MOD"))


@entry("W0004")
def comparison_with_null(op: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"comparing with null using '{op}' may not work as expected", loc, "null comparison",
                  ErrorKind.WARNING)
            .with_note("null is a special value representing 'no value'")
            .with_note("only == and != are meaningful for null comparisons")
            .with_help("use 'value == null' or 'value != null' to check for null"))


@entry("W0005")
def modulo_with_negative(loc: Loc = None) -> Diagnostic:
    return (_diag("modulo with negative number may give unexpected results", loc, "modulo with negative",
                  ErrorKind.WARNING)
            .with_note("modulo behavior varies: some languages return negative, some positive")
            .with_note("DSA tip: to ensure positive result, use: ((a % m) + m) % m")
            .with_help("for competitive programming, normalize negative results: ((result % MOD) + MOD) % MOD"))


@entry("N0001")
def memoization_suggestion(fn: str, loc: Loc = None) -> Diagnostic:
    return (_diag(f"function '{fn}' may benefit from memoization", loc, "consider memoizing",
                  ErrorKind.NOTE, primary=False)
            .with_note("memoization stores results of expensive function calls")
            .with_note("it can dramatically improve performance for recursive algorithms")
            .with_note("DSA tip: use a hash map to cache results")
            .with_help("add a cache: let memo = {}; if memo[key] != null { return memo[key] }; "
                       "... memo[key] = result"))
