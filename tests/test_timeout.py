"""
Per-call response deadlines.

"""
import time

import pytest
import trio

import birpc
from birpc._testing import (
    open_rpc_pair,
    rpc_test,
)


def mk_rpc(**kwargs) -> birpc.BiRPC:
    return birpc.BiRPC(
        {},
        post=lambda data: None,
        on=lambda handler: None,
        **kwargs,
    )


@rpc_test
async def test_timeout_names_method():
    '''
    The remote `slow` never responds; the caller gives up after its
    (10ms) deadline.

    '''
    async with open_rpc_pair(
        {'slow': trio.sleep_forever},
        {},
        timeout=0.01,
    ) as (alice, bob):
        start = time.monotonic()
        with pytest.raises(
            birpc.RPCTimeoutError,
            match='timeout on calling "slow"',
        ) as excinfo:
            await bob['slow'].invoke()

        assert time.monotonic() - start < 1
        assert excinfo.value.method == 'slow'
        assert isinstance(excinfo.value, TimeoutError)
        assert not bob.pending


@rpc_test
async def test_negative_timeout_disables_deadline():
    rpc = mk_rpc(timeout=-1)

    with trio.move_on_after(0.05) as cs:
        await rpc['never'].invoke()

    assert cs.cancelled_caught

    # the caller's own cancellation drops the entry
    assert not rpc.pending


@rpc_test
async def test_default_timeout():
    rpc = mk_rpc()
    assert rpc.timeout == birpc._state._default_timeout == 60.0


@rpc_test
async def test_timeout_hook_suppresses():
    '''
    A hook returning `True` suppresses the timeout error; the call
    is dropped from the table but never settles.

    '''
    seen: list[tuple[str, list]] = []

    def on_timeout_error(method, args):
        seen.append((method, args))
        return True

    rpc = mk_rpc(
        timeout=0.01,
        on_timeout_error=on_timeout_error,
    )

    with trio.move_on_after(0.1) as cs:
        await rpc['slow'].invoke(1, 2)

    assert cs.cancelled_caught
    assert seen == [('slow', [1, 2])]
    assert not rpc.pending


@rpc_test
async def test_timeout_hook_may_raise_its_own_error():

    class Custom(Exception):
        pass

    def on_timeout_error(method, args):
        raise Custom(method)

    rpc = mk_rpc(
        timeout=0.01,
        on_timeout_error=on_timeout_error,
    )
    with pytest.raises(Custom):
        await rpc['slow'].invoke()

    assert not rpc.pending


@rpc_test
async def test_timeout_hook_not_suppressing():
    seen: list[str] = []
    rpc = mk_rpc(
        timeout=0.01,
        on_timeout_error=lambda method, args: seen.append(method),
    )
    with pytest.raises(birpc.RPCTimeoutError):
        await rpc['slow'].invoke()

    assert seen == ['slow']


@rpc_test
async def test_response_clears_deadline():
    '''
    A settled call's deadline is disarmed so a late timer can't
    (re)settle it.

    '''
    async with open_rpc_pair(
        {'fast': lambda: 'done'},
        {},
        timeout=0.05,
    ) as (alice, bob):
        assert await bob['fast'].invoke() == 'done'

        # well past the (cleared) deadline nothing blows up
        await trio.sleep(0.1)
        assert not bob.pending
