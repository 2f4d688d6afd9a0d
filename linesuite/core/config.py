"""Settings and logging for the linesuite command line.

Settings come from (first wins):
  1. Command-line flags.
  2. OS environment variables.
  3. A .env file: the --env-file path if given, otherwise the first .env
     found walking up from the working directory, stopping at the
     repository boundary (a .git dir or file).

Recognised variables:
  LINESUITE_DATA       default test data file for `linesuite run`
  LINESUITE_SUITE      dotted path of the declaration module to load
  LINESUITE_FORMAT     transcript format: text (default) or json
  LINESUITE_LOG_LEVEL  diagnostics level on stderr (default WARNING)
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from linesuite.core.errors import ConfigError

ENV_PREFIX = 'LINESUITE_'
FORMATS = ('text', 'json')


def find_dotenv(start: Path) -> Path | None:
    """Nearest .env at or above `start`, not crossing a .git boundary."""
    for directory in (start.resolve(), *start.resolve().parents):
        candidate = directory / '.env'
        if candidate.is_file():
            return candidate
        if (directory / '.git').exists():
            break
    return None


def read_dotenv(path: Path) -> dict[str, str]:
    """KEY=value pairs from a .env file; quotes around values are dropped."""
    values: dict[str, str] = {}
    for raw in path.read_text(encoding='utf-8').splitlines():
        line = raw.strip()
        if line.startswith('export '):
            line = line[len('export ') :].lstrip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        key, _, value = line.partition('=')
        key = key.strip()
        if key:
            values[key] = value.strip().strip('"').strip("'")
    return values


def load_env(env_file: str | None = None) -> Path | None:
    """Copy .env values into os.environ without overriding what is already set.

    Returns the file that was read, or None. An explicit `env_file` that does
    not exist is a ConfigError.
    """
    if env_file:
        path = Path(env_file)
        if not path.is_file():
            raise ConfigError(f'env file not found: {env_file}')
    else:
        path = find_dotenv(Path.cwd())
        if path is None:
            return None
    for key, value in read_dotenv(path).items():
        os.environ.setdefault(key, value)
    return path


@dataclass
class Settings:
    data: str | None = None
    suite: str | None = None
    format: str = 'text'
    log_level: str = 'WARNING'

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        settings = cls(
            data=env.get(ENV_PREFIX + 'DATA') or None,
            suite=env.get(ENV_PREFIX + 'SUITE') or None,
            format=(env.get(ENV_PREFIX + 'FORMAT') or 'text').lower(),
            log_level=(env.get(ENV_PREFIX + 'LOG_LEVEL') or 'WARNING').upper(),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.format not in FORMATS:
            raise ConfigError(f'{ENV_PREFIX}FORMAT must be one of {", ".join(FORMATS)}, got {self.format!r}')
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigError(f'{ENV_PREFIX}LOG_LEVEL is not a logging level: {self.log_level!r}')


def setup_logging(level: str | int = logging.WARNING) -> logging.Logger:
    """Send linesuite diagnostics to stderr. The transcript itself is not logged."""
    logger = logging.getLogger('linesuite')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('linesuite: %(levelname)s: %(message)s'))
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
