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
Per method-path call handles, the "portal" through which the local
side calls functions exposed by the remote peer.

'''
from __future__ import annotations
import math
from typing import (
    Any,
    TYPE_CHECKING,
)

import trio

from ._exceptions import (
    ClosedError,
    RPCTimeoutError,
)
from ._pending import PendingCall
from .log import get_logger
from .msg import Request

if TYPE_CHECKING:
    from ._engine import BiRPC

log = get_logger(__name__)


class RPCFn:
    '''
    A handle to the remote function at dotted method path `.path`.

    Offers two call styles,

    - `await .invoke(*args)`: a two-way call which waits for (and
      returns) the remote function's result, raising its error.

    - `.send(*args)`: a "fire-and-forget" one-way event; no
      response is ever sent back for it.

    '''
    def __init__(
        self,
        rpc: BiRPC,
        path: str,
    ) -> None:
        self._rpc = rpc
        self.path: str = path

    def __repr__(self) -> str:
        return f'<{type(self).__name__}(path={self.path!r})>'

    def fn(
        self,
        *parts: str,
    ) -> RPCFn:
        '''
        Return the handle for a child path of this one.

        '''
        return self._rpc.fn(self.path, *parts)

    def send(
        self,
        *args: Any,
    ) -> None:
        # NOTE: events still go out after `.close()` if the
        # transport accepts them.
        if self._rpc.closed:
            log.warning(
                f'Sending one-way event for "{self.path}" on a closed rpc'
            )

        self._rpc._post_nowait(
            Request(m=self.path, a=list(args)),
            method=self.path,
        )

    async def invoke(
        self,
        *args: Any,
    ) -> Any:
        rpc: BiRPC = self._rpc
        path: str = self.path
        if rpc.closed:
            raise ClosedError(path)

        # wait for any async `on()` listener registration
        await rpc._wait_on_ready()
        if rpc.closed:
            raise ClosedError(path)

        # register BEFORE posting so a (very) fast response can't
        # race ahead of its entry.
        call: PendingCall = rpc.pending.register(
            PendingCall(
                id=rpc.next_id(),
                method=path,
            )
        )
        timeout: float|None = rpc.timeout
        deadline: float = (
            math.inf
            if timeout is None or timeout < 0
            else trio.current_time() + timeout
        )
        try:
            with trio.CancelScope(deadline=deadline) as cs:
                call.cancel_scope = cs
                await rpc._apost(
                    Request(
                        m=path,
                        a=list(args),
                        i=call.id,
                    ),
                    method=path,
                )
                await call.wait()

            if (
                cs.cancelled_caught
                and
                not call.settled
            ):
                self._on_timeout(call, args)

                # the user hook suppressed the timeout error; as with
                # a never answered call the caller stays blocked
                # until its own (outer) scope is cancelled.
                await trio.sleep_forever()

            return call.unwrap()

        finally:
            if not call.settled:
                rpc.pending.discard(call.id)

    def _on_timeout(
        self,
        call: PendingCall,
        args: tuple[Any, ...],
    ) -> None:
        rpc: BiRPC = self._rpc
        rpc.pending.discard(call.id)
        log.cancel(
            f'Call timed out after {rpc.timeout}s\n'
            f'{call!r}'
        )
        # NOTE: the hook may also raise its own error
        if rpc._on_timeout_error(self.path, list(args)) is not True:
            raise RPCTimeoutError(self.path)
