"""
Top level of the testing suites!

"""
from __future__ import annotations

import pytest
import birpc
from birpc import _state


pytest_plugins = ['pytester']


def pytest_addoption(
    parser: pytest.Parser,
):
    parser.addoption(
        "--ll",
        action="store",
        dest='loglevel',
        default='ERROR', help="logging level to set when testing"
    )


@pytest.fixture(scope='session', autouse=True)
def loglevel(request):
    orig = _state._default_loglevel
    level = _state._default_loglevel = request.config.option.loglevel
    birpc.log.get_console_log(level)
    yield level
    _state._default_loglevel = orig


class Counter:
    '''
    A tiny stateful "remote" service for one-way event tests.

    '''
    def __init__(self) -> None:
        self.count: int = 0

    def bump(self) -> None:
        self.count += 1


@pytest.fixture
def counter() -> Counter:
    return Counter()


@pytest.fixture
def alice_fns() -> dict:
    '''
    Functions exposed by "alice".

    '''
    async def hello(name: str) -> str:
        return f'Hello {name}, my name is Alice'

    return {
        'hello': hello,
    }


@pytest.fixture
def bob_fns(counter: Counter) -> dict:
    '''
    Functions exposed by "bob".

    '''
    def hi(name: str) -> str:
        return f'Hi {name}, I am Bob'

    return {
        'hi': hi,
        'bump': counter.bump,
        'get_count': lambda: counter.count,
    }
