"""Minimal reader for readline init files (the file named by $INPUTRC).

Only `set <variable> <value>` lines matter to the shell; everything else
(key bindings, `$if` blocks, `$include`) is kept as an `Other` directive so
callers can skip it.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from prompt_toolkit.enums import EditingMode

BELL_STYLES = ('none', 'visible', 'audible')


class InputrcError(ValueError):
    def __init__(self, lineno: int, message: str):
        super().__init__(f'line {lineno}: {message}')
        self.lineno = lineno


@dataclass(frozen=True)
class SetVariable:
    key: str
    value: str


@dataclass(frozen=True)
class Other:
    line: str


Directive = Union[SetVariable, Other]


def parse(text: str) -> List[Directive]:
    directives: List[Directive] = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith('#'):
            continue
        parts = line.split(None, 2)
        if parts[0] != 'set':
            directives.append(Other(line))
            continue
        if len(parts) < 3:
            raise InputrcError(lineno, f'expected `set <variable> <value>`, got {line!r}')
        directives.append(SetVariable(parts[1], parts[2].strip()))
    return directives


def parse_file(path: str) -> Optional[List[Directive]]:
    """Parse the init file at `path`; None if it can't be read or parsed."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return parse(f.read())
    except (OSError, UnicodeDecodeError, InputrcError):
        return None


@dataclass
class EditorSettings:
    edit_mode: EditingMode = EditingMode.EMACS
    bell_style: str = 'audible'
    # milliseconds; None keeps prompt_toolkit's default, negative waits forever
    keyseq_timeout: Optional[int] = None

    def keyseq_timeout_seconds(self) -> Optional[float]:
        if self.keyseq_timeout is None or self.keyseq_timeout < 0:
            return None
        return self.keyseq_timeout / 1000.0


def editor_settings(directives: Iterable[Directive]) -> EditorSettings:
    """Translate the directives the shell understands into editor settings.

    Raises ValueError when `keyseq-timeout` is not an integer.
    """
    settings = EditorSettings()
    for directive in directives:
        if not isinstance(directive, SetVariable):
            continue
        key, value = directive.key, directive.value
        if key == 'editing-mode':
            settings.edit_mode = EditingMode.VI if value == 'vi' else EditingMode.EMACS
        elif key == 'bell-style':
            settings.bell_style = value if value in BELL_STYLES else 'audible'
        elif key == 'keyseq-timeout':
            try:
                settings.keyseq_timeout = int(value)
            except ValueError:
                raise ValueError(f'invalid keyseq-timeout in inputrc: {value!r}')
    return settings
