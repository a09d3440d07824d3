"""
Two-way calls and one-way events between two back-to-back engines.

"""
from types import SimpleNamespace

import pytest
import trio

import birpc
from birpc._testing import (
    open_channel_pair,
    open_rpc_pair,
    rpc_test,
)


@rpc_test
async def test_hello(alice_fns, bob_fns):
    async with open_rpc_pair(alice_fns, bob_fns) as (alice, bob):

        # bob calls alice and vice versa over the same channel
        assert (
            await bob['hello'].invoke('Bob')
            ==
            'Hello Bob, my name is Alice'
        )
        assert (
            await alice['hi'].invoke('Alice')
            ==
            'Hi Alice, I am Bob'
        )
        assert not alice.pending
        assert not bob.pending


def test_one_way_event(alice_fns, bob_fns, counter):
    '''
    `.send()` returns nothing, registers no pending call and the
    remote side never replies.

    '''
    async def main():
        async with open_channel_pair() as (port1, port2):
            async with (
                birpc.open_birpc(
                    alice_fns,
                    post=port1.post,
                    on=port1.on,
                ) as alice,
                birpc.open_birpc(
                    bob_fns,
                    post=port2.post,
                    on=port2.on,
                ),
            ):
                assert alice['bump'].send() is None
                assert not alice.pending
                assert counter.count == 0

                with trio.fail_after(1):
                    while counter.count == 0:
                        await trio.sleep(0.001)

                assert counter.count == 1

                # bob never posted anything back
                assert port2.posted == []

    trio.run(main)


@pytest.mark.parametrize(
    'value',
    [
        None,
        0,
        '',
        'doggy',
        [1, 'two', [3.0]],
        {'nested': {'list': [1, 2, {'deep': None}]}},
        (1, 2),
    ],
    ids=lambda v: type(v).__name__,
)
@rpc_test
async def test_result_round_trip(value):
    '''
    Results are delivered to the caller unmodified.

    '''
    async with open_rpc_pair(
        {'echo': lambda x: x},
        {},
    ) as (alice, bob):
        assert await bob['echo'].invoke(value) == value


@rpc_test
async def test_sync_and_async_functions():

    async def add(x, y):
        await trio.sleep(0)
        return x + y

    async with open_rpc_pair(
        {
            'add': add,
            'mul': lambda x, y: x * y,
        },
        {},
    ) as (alice, bob):
        assert await bob['add'].invoke(1, 2) == 3
        assert await bob['mul'].invoke(3, 4) == 12


@rpc_test
async def test_concurrent_calls_out_of_order():
    '''
    Responses may arrive in any order, correlation is by id only.

    '''
    async def wait_then_return(delay: float, value: str):
        await trio.sleep(delay)
        return value

    results: dict[str, str] = {}

    async with open_rpc_pair(
        {'wait': wait_then_return},
        {},
    ) as (alice, bob):

        async def call(delay, value):
            results[value] = await bob['wait'].invoke(delay, value)

        async with trio.open_nursery() as tn:
            tn.start_soon(call, 0.05, 'slow')
            tn.start_soon(call, 0, 'fast')
            tn.start_soon(call, 0.02, 'medium')

    assert results == {
        'slow': 'slow',
        'fast': 'fast',
        'medium': 'medium',
    }


@pytest.mark.parametrize(
    'table',
    [
        {'bob': {'hi': lambda name: f'Hi {name}, I am Bob'}},
        {'bob.hi': lambda name: f'Hi {name}, I am Bob'},
        {'bob': SimpleNamespace(hi=lambda name: f'Hi {name}, I am Bob')},
    ],
    ids=['nested', 'flat', 'namespace'],
)
@rpc_test
async def test_multi_namespace(table):
    '''
    Nested and flat (dotted key) registration resolve the same way.

    '''
    async with open_rpc_pair(table, {}) as (alice, bob):
        assert (
            await bob.fn('bob', 'hi').invoke('Alice')
            ==
            'Hi Alice, I am Bob'
        )
        assert bob.fn('bob', 'hi') is bob['bob.hi']
        assert bob['bob'].fn('hi') is bob['bob.hi']


@rpc_test
async def test_async_on_registration(alice_fns, bob_fns):
    '''
    An async `on()` registration is awaited before anything is
    posted.

    '''
    async with open_rpc_pair(
        alice_fns,
        bob_fns,
        async_on=True,
    ) as (alice, bob):
        assert await bob['hello'].invoke('Bob') == (
            'Hello Bob, my name is Alice'
        )


@rpc_test
async def test_lazy_on_awaited_once_before_first_post():
    events: list[str] = []

    async def on(handler):
        await trio.sleep(0.01)
        events.append('registered')

    def post(data):
        events.append('posted')

    rpc = birpc.BiRPC(
        {},
        post=post,
        on=on,
        timeout=0.01,
    )

    async def call():
        with pytest.raises(birpc.RPCTimeoutError):
            await rpc['noop'].invoke()

    async with trio.open_nursery() as tn:
        tn.start_soon(call)
        tn.start_soon(call)

    assert events == ['registered', 'posted', 'posted']


@rpc_test
async def test_extra_args_forwarded_with_response():
    '''
    Any `extra` args delivered alongside a request are passed back
    to `post()` along with the response.

    '''
    posted: list[tuple] = []

    rpc = birpc.BiRPC(
        {'hi': lambda: 'hi'},
        post=lambda data, *extra: posted.append((data, extra)),
        on=lambda handler: None,
    )
    await rpc.dispatcher.on_message(
        birpc.msg.Request(m='hi', a=[], i='abc'),
        'reply-port',
    )
    [(resp, extra)] = posted
    assert resp == birpc.msg.Response(i='abc', r='hi')
    assert extra == ('reply-port',)


def test_post_and_on_must_be_callable():
    with pytest.raises(TypeError):
        birpc.BiRPC({}, post=None, on=lambda h: None)

    with pytest.raises(TypeError):
        birpc.BiRPC({}, post=lambda d: None, on='doggy')


def test_empty_path_rejected():
    rpc = birpc.BiRPC(
        {},
        post=lambda data: None,
        on=lambda handler: None,
    )
    with pytest.raises(ValueError):
        rpc.fn()
