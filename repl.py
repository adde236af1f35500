"""Read-eval-print loops for the rink shell.

`noninteractive` reads from any file-like object (a piped file, stdin) and
prints one result per line. `interactive` runs a prompt_toolkit session with
tab completion, init-file settings and persistent history.
"""
import os
import signal
import sys
from contextlib import contextmanager
from typing import List, Optional, TextIO

from prompt_toolkit import PromptSession
from prompt_toolkit.history import History
from prompt_toolkit.shortcuts import CompleteStyle

import inputrc
import unit_engine
from rink_config import Config, history_path
from rink_fmt import print_fmt, theme_style
from rink_helper import RinkCompleter, SharedContext
from unit_engine import EvalError

HELP_TEXT = (
    "For information on how to use Rink, see the manual: "
    "https://github.com/tiffany352/rink-rs/wiki/Rink-Manual\n"
    "To quit, type `quit`."
)
QUIT_COMMANDS = ('quit', ':q', 'exit')
QUIT_SIGNALS = ('SIGTERM', 'SIGHUP', 'SIGQUIT')


class StartupError(Exception):
    """The interactive shell could not be set up."""


class QuitSignal(Exception):
    def __init__(self, signum: int):
        super().__init__(f'received signal {signum}')
        self.signum = signum


def noninteractive(f: TextIO, config: Config, show_prompt: bool = True) -> None:
    ctx = unit_engine.load(config)
    while True:
        if show_prompt:
            print('> ', end='')
        sys.stdout.flush()
        try:
            line = f.readline()
        except (OSError, UnicodeDecodeError):
            return
        # a line without its newline means the input ended mid-line
        if '\n' not in line:
            return
        try:
            print(unit_engine.one_line(ctx, line))
        except EvalError as e:
            print(e)


# ---------------------------------------------------------------------
# History
# ---------------------------------------------------------------------

class ShellHistory(History):
    """History that only records lines the shell chose to keep.

    prompt_toolkit appends every accepted line through `append_string`;
    here that is a no-op and the shell calls `add_entry` after a successful
    evaluation instead. `save` appends the new entries to the file.
    """

    def __init__(self, path: Optional[str]):
        super().__init__()
        self.path = path
        self.entries: List[str] = []
        self._unsaved: List[str] = []

    def load_file(self) -> None:
        """Read saved entries. Raises OSError (FileNotFoundError included)."""
        if self.path is None:
            return
        with open(self.path, 'r', encoding='utf-8') as f:
            self.entries = [line.rstrip('\n') for line in f if line.strip()]

    def load_history_strings(self):
        # newest first
        yield from reversed(self.entries)

    def store_string(self, string: str) -> None:
        self.entries.append(string)
        self._unsaved.append(string)

    def append_string(self, string: str) -> None:
        pass

    def add_entry(self, line: str) -> None:
        if self.entries and self.entries[-1] == line:
            return
        super().append_string(line)

    def save(self) -> None:
        if self.path is None or not self._unsaved:
            return
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with open(self.path, 'a', encoding='utf-8') as f:
            for line in self._unsaved:
                f.write(line + '\n')
        self._unsaved = []


def load_history(history: ShellHistory) -> None:
    try:
        history.load_file()
    except FileNotFoundError:
        pass
    except (OSError, UnicodeDecodeError) as e:
        print(f'Loading history failed: {e}', file=sys.stderr)


# ---------------------------------------------------------------------
# Interactive shell
# ---------------------------------------------------------------------

def _raise_quit(signum, frame):
    raise QuitSignal(signum)


@contextmanager
def quit_signals():
    """Turn terminal quit/hangup signals into QuitSignal while active."""
    previous = {}
    for name in QUIT_SIGNALS:
        signum = getattr(signal, name, None)
        if signum is None:
            continue
        try:
            previous[signum] = signal.signal(signum, _raise_quit)
        except (OSError, ValueError):
            # only the main thread may install handlers
            continue
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


class InteractiveShell:
    def __init__(self, config: Config, context: SharedContext, session, history: ShellHistory):
        self.config = config
        self.context = context
        self.session = session
        self.history = history

    @classmethod
    def from_environment(cls, config: Config) -> 'InteractiveShell':
        inputrc_path = os.environ.get('INPUTRC')
        if not inputrc_path:
            raise StartupError('environment variable INPUTRC is not set')
        directives = inputrc.parse_file(inputrc_path) or []
        try:
            settings = inputrc.editor_settings(directives)
        except ValueError as e:
            raise StartupError(str(e)) from e

        context = SharedContext(unit_engine.load(config))
        history = ShellHistory(history_path())
        load_history(history)

        session = PromptSession(
            history=history,
            completer=RinkCompleter(context, config, settings.bell_style),
            complete_style=CompleteStyle.READLINE_LIKE,
            complete_while_typing=False,
            editing_mode=settings.edit_mode,
            style=theme_style(config),
        )
        if settings.keyseq_timeout is not None:
            session.app.ttimeoutlen = settings.keyseq_timeout_seconds()
        return cls(config, context, session, history)

    def save_history(self) -> None:
        try:
            self.history.save()
        except OSError as e:
            print(f'Saving history failed: {e}', file=sys.stderr)

    def evaluate(self, line: str) -> None:
        with self.context.lock() as ctx:
            try:
                value = unit_engine.eval_line(ctx, line)
            except EvalError as e:
                print_fmt(self.config, e)
            else:
                self.history.add_entry(line)
                print_fmt(self.config, value)
        print()

    def run(self) -> int:
        """Read and evaluate lines until the user quits.

        Returns the process exit status: 0 normally, 1 when the line editor
        itself failed.
        """
        with quit_signals():
            try:
                return self._loop()
            except QuitSignal:
                self.save_history()
                return 0

    def _loop(self) -> int:
        while True:
            try:
                line = self.session.prompt(self.config.rink.prompt)
            except KeyboardInterrupt:
                continue
            except EOFError:
                self.save_history()
                return 0
            except QuitSignal:
                raise
            except Exception as e:
                print(f'Readline: {e!r}', file=sys.stderr)
                return 1

            if line == 'help':
                print(HELP_TEXT)
            elif line in QUIT_COMMANDS:
                self.save_history()
                return 0
            else:
                self.evaluate(line)


def interactive(config: Config) -> int:
    return InteractiveShell.from_environment(config).run()
