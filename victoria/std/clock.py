"""The ``time`` module.

Timestamps are Unix seconds. ``format`` and ``parse`` take layouts
written with the tokens ``YYYY YY MM DD HH hh mm ss SSS Z A a``; any
other character is copied literally. Formatting uses local time;
parsing a layout without ``Z`` reads the text as UTC.
"""

import time
from datetime import datetime, timezone
from typing import List, Union

from .. import catalog
from ..builtin_function import BuiltinFunction
from ..objects import NULL, Object, Integer, String, Error, Hash
from .core import arity_error, type_error

DEFAULT_LAYOUT = "YYYY-MM-DD HH:mm:ss"

# Longest tokens first so that YYYY wins over YY.
LAYOUT_TOKENS = (
    ("YYYY", "%Y"), ("SSS", "%f"), ("YY", "%y"), ("MM", "%m"), ("DD", "%d"), ("HH", "%H"),
    ("hh", "%I"), ("mm", "%M"), ("ss", "%S"), ("Z", "%z"), ("A", "%p"), ("a", "%p"),
)


def split_layout(layout: str) -> List[str]:
    """Split ``layout`` into tokens and single literal characters."""
    parts = []
    i = 0
    while i < len(layout):
        for token, _ in LAYOUT_TOKENS:
            if layout.startswith(token, i):
                parts.append(token)
                i += len(token)
                break
        else:
            parts.append(layout[i])
            i += 1
    return parts


def format_timestamp(seconds: int, layout: str = DEFAULT_LAYOUT) -> str:
    dt = datetime.fromtimestamp(seconds).astimezone()
    directives = dict(LAYOUT_TOKENS)
    out = []
    for part in split_layout(layout):
        if part == "SSS":
            out.append(f"{dt.microsecond // 1000:03d}")
        elif part == "a":
            out.append(dt.strftime("%p").lower())
        elif part in directives:
            out.append(dt.strftime(directives[part]))
        else:
            out.append(part)
    return "".join(out)


def parse_timestamp(text: str, layout: str = DEFAULT_LAYOUT) -> int:
    directives = dict(LAYOUT_TOKENS)
    pattern = "".join(directives.get(p, p.replace("%", "%%")) for p in split_layout(layout))
    dt = datetime.strptime(text, pattern)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


def populate_time_module() -> Hash:
    """Build the ``time`` module hash."""

    def timestamp_arg(name: str, args: List[Object]) -> Union[datetime, Error]:
        if len(args) != 1:
            return Error(catalog.invalid_argument(f"time.{name}", 1, len(args)))
        if not isinstance(args[0], Integer):
            return type_error(f"time.{name}", 0, "INTEGER (unix timestamp)", args[0])
        return datetime.fromtimestamp(args[0].value)

    def field(name: str, read) -> BuiltinFunction:
        def apply(args: List[Object]) -> Object:
            dt = timestamp_arg(name, args)
            if isinstance(dt, Error):
                return dt
            return Integer(read(dt))
        return BuiltinFunction(name, None, apply)

    def time_now(args: List[Object]) -> Object:
        return Integer(int(time.time()))

    def time_now_ms(args: List[Object]) -> Object:
        return Integer(time.time_ns() // 1_000_000)

    def layout_arg(name: str, args: List[Object]) -> Union[str, Error]:
        if len(args) < 2:
            return DEFAULT_LAYOUT
        if not isinstance(args[1], String):
            return type_error(f"time.{name}", 1, "STRING (format)", args[1])
        return args[1].value

    def time_format(args: List[Object]) -> Object:
        err = arity_error("time.format", args, 1, 2)
        if err:
            return err
        if not isinstance(args[0], Integer):
            return type_error("time.format", 0, "INTEGER (unix timestamp)", args[0])
        layout = layout_arg("format", args)
        if isinstance(layout, Error):
            return layout
        return String(format_timestamp(args[0].value, layout))

    def time_parse(args: List[Object]) -> Object:
        err = arity_error("time.parse", args, 1, 2)
        if err:
            return err
        if not isinstance(args[0], String):
            return type_error("time.parse", 0, "STRING", args[0])
        layout = layout_arg("parse", args)
        if isinstance(layout, Error):
            return layout
        try:
            return Integer(parse_timestamp(args[0].value, layout))
        except ValueError as e:
            return Error(catalog.module_error("time", f"failed to parse time: {e}"))

    def time_sleep(args: List[Object]) -> Object:
        if not isinstance(args[0], Integer):
            return type_error("time.sleep", 0, "INTEGER (milliseconds)", args[0])
        time.sleep(max(args[0].value, 0) / 1000)
        return NULL

    def clock_text(name: str, layout: str) -> BuiltinFunction:
        def apply(args: List[Object]) -> Object:
            if not args:
                return String(format_timestamp(int(time.time()), layout))
            if len(args) == 1 and isinstance(args[0], Integer):
                return String(format_timestamp(args[0].value, layout))
            return Error(catalog.argument_type(f"time.{name}", "1", "INTEGER (unix timestamp) or no arguments",
                                               args[0].type if args else "nothing"))
        return BuiltinFunction(name, None, apply)

    functions = [
        BuiltinFunction("now", 0, time_now),
        BuiltinFunction("nowMs", 0, time_now_ms),
        BuiltinFunction("format", None, time_format),
        BuiltinFunction("parse", None, time_parse),
        field("year", lambda dt: dt.year),
        field("month", lambda dt: dt.month),
        field("day", lambda dt: dt.day),
        field("hour", lambda dt: dt.hour),
        field("minute", lambda dt: dt.minute),
        field("second", lambda dt: dt.second),
        # Sunday is 0.
        field("weekday", lambda dt: dt.isoweekday() % 7),
        BuiltinFunction("sleep", 1, time_sleep),
        clock_text("date", "YYYY-MM-DD"),
        clock_text("time", "HH:mm:ss"),
    ]
    return Hash.from_dict({fn.name: fn for fn in functions})
