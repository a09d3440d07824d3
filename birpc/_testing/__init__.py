# birpc: symmetric bidirectional RPC over any duplex channel.
# Copyright 2018-eternity Tyler Goodlet.

# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.

# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

'''
Various helpers/utils for testing `birpc` and apps built on it.

'''
from collections.abc import AsyncGenerator
from contextlib import (
    asynccontextmanager as acm,
)
import pathlib
from typing import Any

from birpc import (
    BiRPC,
    open_birpc,
)
from birpc._resolve import FunctionTable
from .pytest import (
    rpc_test as rpc_test,
)
from ._chan import (
    MemoryPort as MemoryPort,
    open_channel_pair as open_channel_pair,
)


def repodir() -> pathlib.Path:
    '''
    Return the abspath to the repo directory.

    '''
    # 3 .parents bc:
    # <._testing-pkg>.<birpc-pkg>.<git-repo-dir>
    return pathlib.Path(
        __file__
    ).parent.parent.parent.absolute()


def examples_dir() -> pathlib.Path:
    '''
    Return the abspath to the examples directory as `pathlib.Path`.

    '''
    return repodir() / 'examples'


@acm
async def open_rpc_pair(
    alice_fns: FunctionTable|None = None,
    bob_fns: FunctionTable|None = None,
    *,
    async_on: bool = False,
    alice_kwargs: dict[str, Any]|None = None,
    bob_kwargs: dict[str, Any]|None = None,
    **kwargs,

) -> AsyncGenerator[tuple[BiRPC, BiRPC], None]:
    '''
    Open two engines connected back-to-back over an in-process
    channel pair; `kwargs` apply to both sides, the per-side
    `*_kwargs` override them.

    '''
    async with (
        open_channel_pair(async_on=async_on) as (port1, port2),
        open_birpc(
            alice_fns,
            post=port1.post,
            on=port1.on,
            off=port1.off,
            **(kwargs | (alice_kwargs or {})),
        ) as alice,
        open_birpc(
            bob_fns,
            post=port2.post,
            on=port2.on,
            off=port2.off,
            **(kwargs | (bob_kwargs or {})),
        ) as bob,
    ):
        yield alice, bob
