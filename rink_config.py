"""Settings for the rink shell.

Settings live in a small JSON file (`<config dir>/rink/config.json`):

    {
      "rink": {"prompt": "> "},
      "colors": {"enabled": null, "theme": "default"}
    }

Missing keys fall back to defaults and a missing file is the same as `{}`.
"""
import json
import os
import sys
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

APP_DIR = 'rink'
CONFIG_FILE = 'config.json'
HISTORY_FILE = 'history.txt'


class ConfigError(Exception):
    """The config file exists but could not be read or validated."""


class RinkSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra='ignore')

    prompt: str = '> '


class ColorSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra='ignore')

    # None means: colour when stdout is a terminal and NO_COLOR is unset
    enabled: Optional[bool] = None
    theme: Literal['default', 'none'] = 'default'


class Config(BaseModel):
    model_config = ConfigDict(frozen=True, extra='ignore')

    rink: RinkSettings = Field(default_factory=RinkSettings)
    colors: ColorSettings = Field(default_factory=ColorSettings)

    def use_colors(self) -> bool:
        if self.colors.enabled is not None:
            return self.colors.enabled
        if os.environ.get('NO_COLOR'):
            return False
        return sys.stdout.isatty()


# ---------------------------------------------------------------------
# Platform directories
# ---------------------------------------------------------------------

def _home() -> Optional[str]:
    home = os.path.expanduser('~')
    return None if home == '~' else home


def data_local_dir() -> Optional[str]:
    """Per-user, machine-local data directory, or None if it can't be found."""
    if sys.platform == 'win32':
        return os.environ.get('LOCALAPPDATA') or None
    home = _home()
    if sys.platform == 'darwin':
        return os.path.join(home, 'Library', 'Application Support') if home else None
    xdg = os.environ.get('XDG_DATA_HOME')
    if xdg and os.path.isabs(xdg):
        return xdg
    return os.path.join(home, '.local', 'share') if home else None


def config_dir() -> Optional[str]:
    if sys.platform == 'win32':
        return os.environ.get('APPDATA') or None
    home = _home()
    if sys.platform == 'darwin':
        return os.path.join(home, 'Library', 'Application Support') if home else None
    xdg = os.environ.get('XDG_CONFIG_HOME')
    if xdg and os.path.isabs(xdg):
        return xdg
    return os.path.join(home, '.config') if home else None


def history_path() -> Optional[str]:
    base = data_local_dir()
    return os.path.join(base, APP_DIR, HISTORY_FILE) if base else None


def config_path() -> Optional[str]:
    base = config_dir()
    return os.path.join(base, APP_DIR, CONFIG_FILE) if base else None


# ---------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> Config:
    """Read the config file at `path` (default: `config_path()`).

    A missing default file gives the default config. An explicitly given
    path must exist.
    """
    explicit = path is not None
    p = path or config_path()
    if p is None or (not explicit and not os.path.exists(p)):
        return Config()
    try:
        with open(p, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f'Failed to read config file {p}: {e}') from e
    try:
        return Config.model_validate(data or {})
    except ValidationError as e:
        raise ConfigError(f'Invalid config file {p}: {e}') from e
