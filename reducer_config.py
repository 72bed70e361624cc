"""
Runtime settings for the tm-reducer command.

Settings come from environment variables, optionally loaded from a .env file:
    TM_REDUCER_VERBOSE       print progress while reducing (default: off)
    TM_REDUCER_INPUT_FORMAT  'auto', 'text' or 'yaml' (default: 'auto')

Command line flags take precedence over both.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv


INPUT_FORMATS = ('auto', 'text', 'yaml')

_TRUE_VALUES = ('1', 'true', 'yes', 'on')
_FALSE_VALUES = ('', '0', 'false', 'no', 'off')


def _parse_bool(value: str, name: str) -> bool:
    value = value.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be one of {_TRUE_VALUES + _FALSE_VALUES[1:]}, got '{value}'")


@dataclass(frozen=True)
class ReducerSettings:
    verbose: bool = False
    input_format: str = 'auto'

    def __post_init__(self):
        if self.input_format not in INPUT_FORMATS:
            raise ValueError(f"input_format must be one of {INPUT_FORMATS}, got '{self.input_format}'")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, load_env_file: bool = True) -> 'ReducerSettings':
        """
        Build settings from the environment.

        Args:
            environ: Mapping to read instead of os.environ
            load_env_file: If True, load a .env file into os.environ first
                           (existing variables are not overridden)

        Returns:
            ReducerSettings
        """
        if load_env_file:
            # Load environment variables from .env file
            load_dotenv()
        if environ is None:
            environ = os.environ

        verbose = _parse_bool(environ.get('TM_REDUCER_VERBOSE', ''), 'TM_REDUCER_VERBOSE')
        input_format = environ.get('TM_REDUCER_INPUT_FORMAT', '').strip().lower() or 'auto'
        return cls(verbose=verbose, input_format=input_format)
