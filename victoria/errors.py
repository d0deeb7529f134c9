"""Diagnostic records and renderers for Victoria.

A :class:`Diagnostic` describes one problem found while lexing, parsing
or evaluating a program: its severity, a stable code such as ``E0001``,
a message, labelled source spans, notes and an optional help line. The
catalog of concrete diagnostics lives in :mod:`victoria.catalog`; this
module only knows how to store and print them.

Two renderers are provided. :func:`render` produces the annotated,
ANSI-coloured report with a source snippet and caret underlines.
:func:`render_plain` produces a short colourless report that is stable
from run to run and suitable for logs and tests.
"""

from __future__ import annotations

import os
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence


RESET = "\033[0m"
BOLD = "\033[1m"
DIM = "\033[2m"
WHITE = "\033[37m"
CYAN = "\033[36m"
BRIGHT_RED = "\033[91m"
BRIGHT_GREEN = "\033[92m"
BRIGHT_YELLOW = "\033[93m"
BRIGHT_BLUE = "\033[94m"
BRIGHT_MAGENTA = "\033[95m"
BRIGHT_CYAN = "\033[96m"


JOKES: Sequence[str] = (
    "Why do programmers prefer dark mode? Because light attracts bugs!",
    "There are only 2 types of people: those who understand binary and those who don't.",
    "A SQL query walks into a bar, walks up to two tables and asks... 'Can I join you?'",
    "Why do Java developers wear glasses? Because they don't C#!",
    "How many programmers does it take to change a light bulb? None, that's a hardware problem.",
    "Why was the JavaScript developer sad? Because he didn't Node how to Express himself.",
    "A programmer's wife tells him: 'Go to the store and buy a loaf of bread. If they have eggs, "
    "buy a dozen.' He comes home with 12 loaves of bread.",
    "There's no place like 127.0.0.1",
    "Why do programmers always mix up Halloween and Christmas? Because Oct 31 == Dec 25!",
    "Programming is like writing a book... except if you miss a single comma on page 126, "
    "the whole thing makes no sense.",
    "99 little bugs in the code, 99 little bugs. Take one down, patch it around... "
    "127 little bugs in the code.",
    "It works on my machine! ¯\\_(ツ)_/¯",
    "The best thing about a boolean is that even if you're wrong, you're only off by a bit.",
    "A programmer puts two glasses on his bedside table before going to sleep. A full one, in case "
    "he gets thirsty, and an empty one, in case he doesn't.",
    "To understand recursion, you must first understand recursion.",
    "I would tell you a UDP joke, but you might not get it.",
    "Why did the developer go broke? Because he used up all his cache!",
    "['hip', 'hip'] // hooray!",
    "A foo walks into a bar, takes a look around and says 'Hello World!'",
    "An SEO expert walks into a bar, bars, pub, tavern, public house, Irish pub, drinks, beer...",
    "The glass is neither half full nor half empty. It's twice as big as it needs to be.",
    "I've got a really good UDP joke to tell you but I don't know if you'll get it.",
    "If at first you don't succeed, call it version 1.0",
    "Software and cathedrals are much the same: first we build them, then we pray.",
    "Debugging: Being the detective in a crime movie where you are also the murderer.",
    "I don't always test my code, but when I do, I do it in production.",
    "In theory, there's no difference between theory and practice. In practice, there is.",
    "Real programmers count from 0.",
    "!false - It's funny because it's true.",
    "A string walks into a bar. The bartender says, 'We don't serve your type here.'",
    "Why did the type checker break up with the dynamic language? Too many unexpected surprises!",
    "Strong typing: Because 'undefined is not a function' should never be a runtime error.",
    "Types are like vegetables, you know they're good for you, but sometimes you just want dessert.",
    "In a statically typed world, bugs are caught at compile time. In a dynamically typed world, "
    "bugs are caught in production.",
    "Type inference: because sometimes the compiler knows you better than you know yourself.",
    "Any: the type that says 'I give up, do whatever you want.'",
    "void: for when your function has commitment issues about returning values.",
)


class ErrorKind(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"
    HELP = "help"

    @property
    def color(self) -> str:
        return {
            ErrorKind.ERROR: BRIGHT_RED,
            ErrorKind.WARNING: BRIGHT_YELLOW,
            ErrorKind.NOTE: BRIGHT_CYAN,
            ErrorKind.HELP: BRIGHT_GREEN,
        }[self]


@dataclass(frozen=True)
class SourceLocation:
    """A span in a source file. Lines and columns are 1-based."""
    line: int
    column: int
    end_line: int = 0
    end_column: int = 0
    filename: str = ""

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"

    def with_filename(self, filename: str) -> "SourceLocation":
        return SourceLocation(self.line, self.column, self.end_line, self.end_column, filename)


@dataclass
class Label:
    location: SourceLocation
    message: str = ""
    primary: bool = True


@dataclass
class Diagnostic:
    """One error, warning or note together with its source context.

    The ``with_*`` methods mutate and return ``self`` so that catalog
    entries can be assembled as a single chained expression.
    """
    message: str
    kind: ErrorKind = ErrorKind.ERROR
    code: str = ""
    labels: List[Label] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)
    help: str = ""
    source: str = ""

    def with_code(self, code: str) -> "Diagnostic":
        self.code = code
        return self

    def with_label(self, location: Optional[SourceLocation], message: str = "", primary: bool = True) -> "Diagnostic":
        if location is not None:
            self.labels.append(Label(location, message, primary))
        return self

    def with_note(self, note: str) -> "Diagnostic":
        self.notes.append(note)
        return self

    def with_help(self, help: str) -> "Diagnostic":
        self.help = help
        return self

    def with_source(self, source: str) -> "Diagnostic":
        self.source = source
        return self

    def with_filename(self, filename: str) -> "Diagnostic":
        if filename:
            self.labels = [
                Label(lbl.location if lbl.location.filename else lbl.location.with_filename(filename),
                      lbl.message, lbl.primary)
                for lbl in self.labels
            ]
        return self

    @property
    def location(self) -> Optional[SourceLocation]:
        return self.labels[0].location if self.labels else None

    def __str__(self) -> str:
        return render_plain(self)


class JokeTeller:
    """Decides whether a rendered diagnostic carries a joke.

    The probability and seed are injectable so that test runs can turn
    jokes off (``probability=0``) or make the choice reproducible.
    """

    def __init__(self, probability: float = 0.3, seed: Optional[int] = None, jokes: Sequence[str] = JOKES):
        self.probability = probability
        self.jokes = list(jokes)
        self._rng = random.Random(seed)

    def pick(self) -> Optional[str]:
        if self.probability <= 0 or not self.jokes:
            return None
        if self._rng.random() < self.probability:
            return self._rng.choice(self.jokes)
        return None


def _jokes_from_env() -> JokeTeller:
    if os.environ.get("VICTORIA_NO_JOKES"):
        return JokeTeller(probability=0.0)
    return JokeTeller()


default_jokes = _jokes_from_env()


def _source_lines(source: str, start: int, end: int) -> List[str]:
    lines = source.split("\n")
    start = max(start, 1)
    end = min(end, len(lines))
    if start > end:
        return []
    return lines[start - 1:end]


def render(diag: Diagnostic, jokes: Optional[JokeTeller] = None) -> str:
    """Render a diagnostic as an annotated, coloured report."""
    if jokes is None:
        jokes = default_jokes
    out: List[str] = []

    header = f"{BOLD}{diag.kind.color}{diag.kind.value}{RESET}"
    if diag.code:
        header += f"{DIM}[{diag.code}]{RESET}"
    header += f"{BOLD}{WHITE}: {diag.message}{RESET}"
    out.append(header)

    max_line = 0
    for lbl in diag.labels:
        max_line = max(max_line, lbl.location.line, lbl.location.end_line)
    width = max(len(str(max_line)), 1)
    pad = " " * width

    if diag.labels and diag.labels[0].location.line > 0:
        out.append(f"{CYAN}{pad}--> {RESET}{diag.labels[0].location}")
        out.append(f"{CYAN}{pad} |{RESET}")

    if diag.source and diag.labels:
        by_line = {}
        for lbl in diag.labels:
            by_line.setdefault(lbl.location.line, []).append(lbl)
        first = min(lbl.location.line for lbl in diag.labels)
        last = max(max(lbl.location.line, lbl.location.end_line) for lbl in diag.labels)
        start = max(first - 1, 1)
        for offset, text in enumerate(_source_lines(diag.source, start, last + 1)):
            lineno = start + offset
            out.append(f"{CYAN}{lineno:>{width}} | {RESET}{text}")
            for lbl in by_line.get(lineno, []):
                col = max(lbl.location.column, 1)
                end_col = lbl.location.end_column
                if end_col < col:
                    end_col = col + 1
                length = max(end_col - col, 1)
                color, mark = (BRIGHT_RED, "^") if lbl.primary else (BRIGHT_BLUE, "-")
                line = f"{CYAN}{pad} | {RESET}{' ' * (col - 1)}{BOLD}{color}{mark * length}{RESET}"
                if lbl.message:
                    line += f" {color}{lbl.message}{RESET}"
                out.append(line)
        out.append(f"{CYAN}{pad} |{RESET}")

    for note in diag.notes:
        out.append(f"{CYAN}{pad} = {RESET}{BOLD}{BRIGHT_CYAN}note{RESET}: {note}")
    if diag.help:
        out.append(f"{CYAN}{pad} = {RESET}{BOLD}{BRIGHT_GREEN}help{RESET}: {diag.help}")

    joke = jokes.pick()
    if joke:
        out.append(f"{CYAN}{pad} = {RESET}{BOLD}{BRIGHT_MAGENTA}joke{RESET}: {joke}")

    return "\n".join(out) + "\n"


def render_plain(diag: Diagnostic) -> str:
    """Render a diagnostic without colours, snippet or jokes."""
    out = [diag.kind.value + (f"[{diag.code}]" if diag.code else "") + f": {diag.message}"]
    if diag.labels and diag.labels[0].location.line > 0:
        out.append(f"  --> {diag.labels[0].location}")
    for note in diag.notes:
        out.append(f"  = note: {note}")
    if diag.help:
        out.append(f"  = help: {diag.help}")
    return "\n".join(out) + "\n"


class ErrorReporter:
    """Collects diagnostics for one source file and renders them together."""

    def __init__(self, source: str, filename: str = ""):
        self.source = source
        self.filename = filename
        self.errors: List[Diagnostic] = []

    def add(self, diag: Diagnostic) -> None:
        diag.with_source(self.source).with_filename(self.filename)
        self.errors.append(diag)

    def extend(self, diags: Sequence[Diagnostic]) -> None:
        for diag in diags:
            self.add(diag)

    def has_errors(self) -> bool:
        return any(d.kind is ErrorKind.ERROR for d in self.errors)

    def format(self, color: bool = True, jokes: Optional[JokeTeller] = None) -> str:
        if color:
            parts = [render(d, jokes) for d in self.errors]
        else:
            parts = [render_plain(d) for d in self.errors]
        text = "\n".join(parts)
        count = sum(1 for d in self.errors if d.kind is ErrorKind.ERROR)
        if count:
            if color:
                text += f"\n{BOLD}{BRIGHT_RED}error{RESET}: could not compile due to {count} previous error(s)\n"
            else:
                text += f"\nerror: could not compile due to {count} previous error(s)\n"
        return text


class VictoriaError(Exception):
    """Exception used to hand Victoria diagnostics back to host code.

    Inside the evaluator errors travel as ``Error`` objects; this
    exception is raised only at the boundary (``parse_program`` and
    ``Interpreter.run``) so callers can ``except VictoriaError``.
    """

    def __init__(self, diagnostics: Sequence[Diagnostic]):
        self.diagnostics = list(diagnostics)
        first = self.diagnostics[0] if self.diagnostics else None
        summary = f"{first.code}: {first.message}" if first else "unknown error"
        super().__init__(f"VictoriaError: {summary}")

    @property
    def diagnostic(self) -> Diagnostic:
        return self.diagnostics[0]
