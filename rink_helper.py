"""Tab completion of unit names for the interactive shell."""
import itertools
import re
import threading
from contextlib import contextmanager
from typing import Iterator, List

from prompt_toolkit.application.current import get_app
from prompt_toolkit.completion import Completer, Completion

from rink_config import Config
from rink_fmt import to_ansi_string
from unit_engine import Context, query

# how many results the engine is asked for, and how many are shown
QUERY_LIMIT = 100
MAX_CANDIDATES = 10

WORD_BEFORE_CURSOR_RE = re.compile(r'[A-Za-z_][A-Za-z0-9_]*$')


class SharedContext:
    """Engine context shared by the read-eval loop and the completer.

    Every access goes through `lock()`, reads included.
    """

    def __init__(self, context: Context):
        self._context = context
        self._lock = threading.Lock()

    @contextmanager
    def lock(self) -> Iterator[Context]:
        with self._lock:
            yield self._context


class RinkCompleter(Completer):
    def __init__(self, context: SharedContext, config: Config, bell_style: str = 'audible'):
        self.context = context
        self.config = config
        self.bell_style = bell_style

    def complete(self, word: str) -> List[Completion]:
        """Unit names starting with `word`, in the engine's ranking order."""
        with self.context.lock() as ctx:
            reply = query(ctx, word, QUERY_LIMIT)

        matches = (
            result for result in reply.results
            if result.unit is not None and result.unit.startswith(word)
        )
        return [
            Completion(
                result.unit,
                start_position=-len(word),
                display=to_ansi_string(self.config, result),
            )
            for result in itertools.islice(matches, MAX_CANDIDATES)
        ]

    def get_completions(self, document, complete_event):
        m = WORD_BEFORE_CURSOR_RE.search(document.text_before_cursor)
        word = m.group(0) if m else ''
        candidates = self.complete(word)
        if not candidates and complete_event.completion_requested:
            self.ring_bell()
        yield from candidates

    def ring_bell(self) -> None:
        # prompt_toolkit has no visual bell, so `visible` stays silent
        if self.bell_style == 'audible':
            get_app().output.bell()
