"""Rendering of engine output for the terminal.

Everything is turned into prompt_toolkit formatted text first, so the same
fragments serve both the printed results and the completion menu.
"""
from typing import Any, Dict

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import FormattedText, to_plain_text
from prompt_toolkit.styles import Style

from rink_config import Config
from unit_engine import EvalError, QueryResult, Value

THEMES: Dict[str, Dict[str, str]] = {
    'default': {
        'number': 'bold',
        'unit': 'ansicyan',
        'quantity': 'ansibrightblack',
        'error': 'ansired',
    },
    'none': {},
}


def theme_style(config: Config) -> Style:
    return Style.from_dict(THEMES.get(config.colors.theme, {}))


def to_formatted(obj: Any) -> FormattedText:
    """Split a value, error or query result into styled fragments."""
    if isinstance(obj, Value):
        parts = [('class:number', obj.magnitude)]
        if obj.unit:
            parts += [('', ' '), ('class:unit', obj.unit)]
        if obj.quantity:
            parts += [('', ' '), ('class:quantity', f'({obj.quantity})')]
        return FormattedText(parts)
    if isinstance(obj, EvalError):
        return FormattedText([('class:error', str(obj))])
    if isinstance(obj, QueryResult):
        parts = [('class:unit', str(obj.unit))]
        if obj.quantity:
            parts += [('', ' '), ('class:quantity', f'({obj.quantity})')]
        return FormattedText(parts)
    return FormattedText([('', str(obj))])


def to_ansi_string(config: Config, obj: Any):
    """Display text for the completion menu: styled when colours are on."""
    if config.use_colors():
        return to_formatted(obj)
    return to_plain_text(to_formatted(obj))


def print_fmt(config: Config, obj: Any) -> None:
    if config.use_colors():
        print_formatted_text(to_formatted(obj), style=theme_style(config))
    else:
        print(to_plain_text(to_formatted(obj)))
