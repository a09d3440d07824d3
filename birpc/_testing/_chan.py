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
In-process duplex transport built on `trio` memory channels.

Each `MemoryPort` end offers the `post()`/`on()`/`off()` trio
expected by the engine and delivers every received msg to the
registered handler in its own task, much like a browser/node
`MessagePort` does.

'''
from __future__ import annotations
from collections.abc import AsyncGenerator
from contextlib import (
    asynccontextmanager as acm,
)
import math
from typing import (
    Any,
    Awaitable,
    Callable,
)

import trio

from birpc.log import get_logger


log = get_logger(__name__)

Handler = Callable[..., Awaitable[None]]


class MemoryPort:
    '''
    One end of an in-process duplex pipe.

    Msgs posted before any handler is registered are buffered
    until one is; msgs received after `.off()` are dropped.

    '''
    def __init__(
        self,
        name: str,
        tx: trio.MemorySendChannel,
        rx: trio.MemoryReceiveChannel,
        async_on: bool = False,
    ) -> None:
        self.name: str = name
        self._tx = tx
        self._rx = rx
        self._async_on: bool = async_on
        self._handler: Handler|None = None
        self._has_handler = trio.Event()

        # every raw msg we posted, handy for asserting wire traffic
        self.posted: list[Any] = []

    def __repr__(self) -> str:
        return f'<{type(self).__name__}(name={self.name!r})>'

    def post(
        self,
        data: Any,
        *extra: Any,
    ) -> None:
        self.posted.append(data)
        self._tx.send_nowait((data, extra))

    def _register(
        self,
        handler: Handler,
    ) -> None:
        self._handler = handler
        self._has_handler.set()

    def on(
        self,
        handler: Handler,
    ) -> Awaitable[None]|None:
        if self._async_on:
            return self._aon(handler)

        self._register(handler)
        return None

    async def _aon(
        self,
        handler: Handler,
    ) -> None:
        # simulate a listener registration which takes a while
        await trio.sleep(0)
        self._register(handler)

    def off(
        self,
        handler: Handler,
    ) -> None:
        if self._handler == handler:
            self._handler = None

    async def _pump(
        self,
        nursery: trio.Nursery,
    ) -> None:
        await self._has_handler.wait()
        async with self._rx:
            async for data, extra in self._rx:
                handler: Handler|None = self._handler
                if handler is None:
                    log.transport(f'{self.name} dropped msg, no handler\n{data!r}')
                    continue

                nursery.start_soon(handler, data, *extra)


@acm
async def open_channel_pair(
    async_on: bool = False,

) -> AsyncGenerator[tuple[MemoryPort, MemoryPort], None]:
    '''
    Open a pair of connected `MemoryPort`s (msgs posted on one
    arrive at the other) for the lifetime of the block.

    '''
    a_tx, a_rx = trio.open_memory_channel(math.inf)
    b_tx, b_rx = trio.open_memory_channel(math.inf)
    port1 = MemoryPort('port1', tx=a_tx, rx=b_rx, async_on=async_on)
    port2 = MemoryPort('port2', tx=b_tx, rx=a_rx, async_on=async_on)

    async with trio.open_nursery() as tn:
        tn.start_soon(port1._pump, tn)
        tn.start_soon(port2._pump, tn)
        try:
            yield port1, port2
        finally:
            tn.cancel_scope.cancel()
