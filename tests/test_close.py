"""
Engine closure: pending calls are rejected and the dispatcher is
detached from the transport.

"""
import pytest
import trio

import birpc
from birpc._testing import (
    open_channel_pair,
    rpc_test,
)


def mk_rpc(**kwargs) -> tuple[birpc.BiRPC, list]:
    posted: list = []
    rpc = birpc.BiRPC(
        {},
        post=posted.append,
        on=lambda handler: None,
        **kwargs,
    )
    return rpc, posted


@rpc_test
async def test_close_rejects_pending():
    '''
    Closing while calls are pending rejects each with
    a `ClosedError` naming its own method path.

    '''
    rpc, posted = mk_rpc()
    errors: dict[str, birpc.ClosedError] = {}

    async def call(path: str):
        with pytest.raises(birpc.ClosedError) as excinfo:
            await rpc[path].invoke()
        errors[path] = excinfo.value

    async with trio.open_nursery() as tn:
        tn.start_soon(call, 'c1')
        tn.start_soon(call, 'c2')

        with trio.fail_after(1):
            while len(rpc.pending) < 2:
                await trio.sleep(0)

        rpc.close()

    assert not rpc.pending
    assert rpc.closed
    assert len(posted) == 2
    for path in ('c1', 'c2'):
        err = errors[path]
        assert err.method == path
        assert f'"{path}"' in str(err)
        assert 'closed' in str(err)


@pytest.mark.parametrize(
    'path',
    ['hello', 'deeply.nested.path'],
)
@rpc_test
async def test_invoke_after_close(path):
    '''
    Calls made after close fail immediately and post nothing.

    '''
    rpc, posted = mk_rpc()
    rpc.close()

    with pytest.raises(
        birpc.ClosedError,
        match=f'rpc is closed, cannot call "{path}"',
    ):
        await rpc[path].invoke()

    assert posted == []
    assert not rpc.pending


@rpc_test
async def test_close_is_idempotent():
    detached: list = []
    rpc = birpc.BiRPC(
        {},
        post=lambda data: None,
        on=lambda handler: None,
        off=detached.append,
    )
    rpc.close()
    rpc.close()
    await rpc.aclose()

    assert rpc.closed
    assert detached == [rpc.dispatcher.on_message]


@rpc_test
async def test_send_after_close_still_posts():
    '''
    One-way events are not blocked by close; only two-way calls
    are.

    '''
    rpc, posted = mk_rpc()
    rpc.close()
    assert rpc['bump'].send(1) is None
    assert posted == [birpc.msg.Request(m='bump', a=[1])]
    assert not rpc.pending


@rpc_test
async def test_async_off_awaited_by_aclose():
    detached = trio.Event()

    async def off(handler):
        await trio.sleep(0)
        detached.set()

    rpc = birpc.BiRPC(
        {},
        post=lambda data: None,
        on=lambda handler: None,
        off=off,
    )
    await rpc.aclose()
    assert detached.is_set()


@rpc_test
async def test_responses_dropped_after_detach():
    '''
    After close the transport's `off()` detaches our handler so
    responses to the (already rejected) calls go nowhere.

    '''
    async with open_channel_pair() as (port1, port2):
        async with (
            birpc.open_birpc(
                {},
                post=port1.post,
                on=port1.on,
                off=port1.off,
            ) as alice,
            birpc.open_birpc(
                {'later': trio.sleep},
                post=port2.post,
                on=port2.on,
                off=port2.off,
            ),
        ):
            async def call():
                with pytest.raises(birpc.ClosedError):
                    await alice['later'].invoke(0.01)

            async with trio.open_nursery() as tn:
                tn.start_soon(call)
                with trio.fail_after(1):
                    while not alice.pending:
                        await trio.sleep(0)
                alice.close()

            assert port1._handler is None

            # wait for bob's (now ignored) response
            await trio.sleep(0.05)
            assert len(port2.posted) == 1
            assert not alice.pending


@rpc_test
async def test_open_birpc_closes_on_exit():
    async with birpc.open_birpc(
        {},
        post=lambda data: None,
        on=lambda handler: None,
    ) as rpc:
        assert not rpc.closed

    assert rpc.closed
