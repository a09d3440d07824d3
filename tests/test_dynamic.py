"""
The local function table is re-read per inbound request so it can be
mutated at any time.

"""
import pytest

import birpc
from birpc._testing import (
    open_rpc_pair,
    rpc_test,
)


@rpc_test
async def test_add_function_after_construction(alice_fns, bob_fns):
    async with open_rpc_pair(alice_fns, bob_fns) as (alice, bob):

        assert await bob['hello'].invoke('Bob') == (
            'Hello Bob, my name is Alice'
        )
        with pytest.raises(birpc.NotFoundError, match='"bar"'):
            await bob['bar'].invoke('Bob')

        # the table passed in IS the one in use
        assert alice.functions is alice_fns

        async def bar(name: str) -> str:
            return f'A random function, called by {name}'

        alice.functions['bar'] = bar
        assert await bob['bar'].invoke('Bob') == (
            'A random function, called by Bob'
        )


@rpc_test
async def test_replace_function(alice_fns, bob_fns):
    async with open_rpc_pair(alice_fns, bob_fns) as (alice, bob):

        alice.functions['hello'] = (
            lambda name: f'Alice says hello to {name}'
        )
        assert await bob['hello'].invoke('Bob') == (
            'Alice says hello to Bob'
        )

        # and removal
        del alice.functions['hello']
        with pytest.raises(birpc.NotFoundError):
            await bob['hello'].invoke('Bob')


@rpc_test
async def test_nested_table_mutation():
    table: dict = {'ns': {}}
    async with open_rpc_pair(table, {}) as (alice, bob):
        with pytest.raises(birpc.NotFoundError):
            await bob.fn('ns', 'leaf').invoke()

        table['ns']['leaf'] = lambda: 'leaf'
        assert await bob.fn('ns', 'leaf').invoke() == 'leaf'
