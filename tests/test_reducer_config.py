import pytest

import reducer_config
from reducer_config import ReducerSettings


def test_defaults() -> None:
    settings = ReducerSettings.from_env({}, load_env_file=False)

    assert settings == ReducerSettings(verbose=False, input_format='auto')


@pytest.mark.parametrize(
    "environ, expected",
    [
        ({'TM_REDUCER_VERBOSE': '1'}, ReducerSettings(verbose=True)),
        ({'TM_REDUCER_VERBOSE': ' Yes '}, ReducerSettings(verbose=True)),
        ({'TM_REDUCER_VERBOSE': 'off'}, ReducerSettings(verbose=False)),
        ({'TM_REDUCER_INPUT_FORMAT': ' YAML '}, ReducerSettings(input_format='yaml')),
        ({'TM_REDUCER_INPUT_FORMAT': ''}, ReducerSettings(input_format='auto')),
    ],
)
def test_reads_environment(environ, expected: ReducerSettings) -> None:
    assert ReducerSettings.from_env(environ, load_env_file=False) == expected


@pytest.mark.parametrize(
    "environ",
    [{'TM_REDUCER_VERBOSE': 'maybe'}, {'TM_REDUCER_INPUT_FORMAT': 'json'}],
)
def test_invalid_values(environ) -> None:
    with pytest.raises(ValueError):
        ReducerSettings.from_env(environ, load_env_file=False)


def test_invalid_format_argument() -> None:
    with pytest.raises(ValueError, match="input_format"):
        ReducerSettings(input_format='xml')


def test_env_file_loaded_on_request(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(reducer_config, 'load_dotenv', lambda: calls.append('loaded'))

    ReducerSettings.from_env({}, load_env_file=False)
    assert calls == []

    ReducerSettings.from_env({})
    assert calls == ['loaded']
