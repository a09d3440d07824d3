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
Outstanding (two-way) call book-keeping.

No I/O happens here; a `PendingTable` maps each correlation id to
the `PendingCall` awaiting its response and every settlement path
(response, timeout, close) pops the entry exactly once.

'''
from __future__ import annotations
import math
from typing import (
    Any,
    Iterator,
)

import outcome
import trio

from ._exceptions import (
    ClosedError,
    InternalError,
    unpack_error,
)
from .log import get_logger

log = get_logger(__name__)


class PendingCall:
    '''
    A single in-flight `RPCFn.invoke()` awaiting its `Response`.

    The caller's task blocks on `.wait()`; the final value (or
    error) is delivered as an `outcome.Outcome` exactly once, any
    later settle attempt is ignored.

    '''
    def __init__(
        self,
        id: str,
        method: str,
    ) -> None:
        self.id: str = id
        self.method: str = method

        # the "timer handle": deadline scope of the waiting caller
        self.cancel_scope: trio.CancelScope|None = None

        self._outcome: outcome.Outcome|None = None
        self._settled = trio.Event()

    def __repr__(self) -> str:
        return (
            f'<{type(self).__name__}('
            f'id={self.id!r}, method={self.method!r}, '
            f'settled={self.settled})>'
        )

    @property
    def settled(self) -> bool:
        return self._outcome is not None

    def clear_timeout(self) -> None:
        if self.cancel_scope is not None:
            self.cancel_scope.deadline = math.inf

    def _set(
        self,
        result: outcome.Outcome,
    ) -> bool:
        if self.settled:
            return False

        self._outcome = result
        self._settled.set()
        return True

    def resolve(self, value: Any) -> bool:
        return self._set(outcome.Value(value))

    def reject(self, error: BaseException) -> bool:
        return self._set(outcome.Error(error))

    async def wait(self) -> None:
        await self._settled.wait()

    def unwrap(self) -> Any:
        '''
        Return the delivered value or raise the delivered error.

        '''
        if self._outcome is None:
            raise InternalError(
                f'Call {self.id!r} to "{self.method}" was never settled?'
            )
        return self._outcome.unwrap()


class PendingTable:
    '''
    The single source of truth for outstanding calls.

    NOTE: the engine is single-task-at-a-time (cooperative `trio`
    scheduling) so no locking is done; mutating a table from
    multiple OS threads requires external synchronization.

    '''
    def __init__(self) -> None:
        self._calls: dict[str, PendingCall] = {}

    def __len__(self) -> int:
        return len(self._calls)

    def __contains__(self, id: str) -> bool:
        return id in self._calls

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._calls))

    def __repr__(self) -> str:
        return f'<{type(self).__name__}(ids={list(self._calls)!r})>'

    def get(self, id: str) -> PendingCall|None:
        return self._calls.get(id)

    def register(
        self,
        call: PendingCall,
    ) -> PendingCall:
        if call.id in self._calls:
            raise InternalError(
                f'Call id collision for {call.id!r}!?\n'
                f'pending: {self._calls[call.id]!r}\n'
                f'new: {call!r}\n'
            )

        self._calls[call.id] = call
        log.runtime(f'Registered pending call\n{call!r}')
        return call

    def discard(self, id: str) -> PendingCall|None:
        '''
        Drop an entry *without* settling it.

        '''
        call: PendingCall|None = self._calls.pop(id, None)
        if call is not None:
            call.clear_timeout()
        return call

    def settle(
        self,
        id: str,
        result: Any = None,
        error: Any = None,
    ) -> bool:
        '''
        Deliver the outcome for call `id`; a non-`None` `error` rejects,
        otherwise `result` resolves.

        Unknown (stale or duplicate) ids are ignored and `False` is
        returned.

        '''
        call: PendingCall|None = self.discard(id)
        if call is None:
            log.runtime(f'Dropping response for unknown call {id!r}')
            return False

        if error is not None:
            return call.reject(
                unpack_error(error, call.method)
            )

        return call.resolve(result)

    def drain_on_close(self) -> int:
        '''
        Reject every remaining call with a `ClosedError` and empty
        the table; return the number of rejected calls.

        '''
        calls: list[PendingCall] = list(self._calls.values())
        self._calls.clear()
        for call in calls:
            call.clear_timeout()
            call.reject(ClosedError(call.method))

        if calls:
            log.cancel(
                f'Rejected {len(calls)} pending call(s) on close\n'
                + '\n'.join(repr(call) for call in calls)
            )
        return len(calls)
