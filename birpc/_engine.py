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
The engine: one side of a bidirectional rpc "connection".

Each side exposes a local (mutable) function table and gets call
handles (`RPCFn`s) to the functions exposed by the other side, all
multiplexed over a single caller supplied duplex channel described by
just 3 primitives,

- `post(data, *extra)`: emit one (serialized) envelope,
- `on(handler)`: register our single inbound handler,
- `off(handler)`: (optional) deregister it on close.

Any of these may be plain functions or return awaitables.

'''
from __future__ import annotations
from contextlib import (
    asynccontextmanager as acm,
)
import inspect
from typing import (
    Any,
    AsyncGenerator,
    Awaitable,
    Callable,
)

import trio

from . import _state
from ._exceptions import (
    SerializationError,
    TransportError,
)
from ._ids import nanoid
from ._pending import PendingTable
from ._portal import RPCFn
from ._resolve import (
    DELIM,
    FunctionTable,
)
from ._rpc import Dispatcher
from .log import (
    get_console_log,
    get_logger,
)
from .msg import (
    Request,
    Response,
    identity,
)

log = get_logger(__name__)

Handler = Callable[..., Awaitable[None]]

# hook sigs
Resolver = Callable[[str, Callable|None], Callable|None]
FunctionErrorHook = Callable[[BaseException, str, list], bool|None]
GeneralErrorHook = Callable[..., bool|None]
TimeoutErrorHook = Callable[[str, list], bool|None]


def _maybe_close(aw: Awaitable) -> None:
    # avoid "coroutine was never awaited" warnings for dropped awaitables
    if inspect.iscoroutine(aw):
        aw.close()


class BiRPC:
    '''
    A symmetric, bidirectional rpc engine over any duplex channel.

    Get a call handle for the remote function at a dotted path with
    `.fn('a', 'b')` or `['a.b']` and either,

      result = await rpc['a.b'].invoke(*args)
      rpc['a.b'].send(*args)

    The local function table is `.functions`; it is re-read for
    every inbound request so it may be mutated at any time.

    NOTE: all engine state is mutated only from `trio` tasks of the
    same run; there is no locking.

    '''
    def __init__(
        self,
        functions: FunctionTable|None = None,
        *,
        post: Callable[..., Any],
        on: Callable[[Handler], Any],
        off: Callable[[Handler], Any]|None = None,
        serialize: Callable[[Any], Any]|None = None,
        deserialize: Callable[[Any], Any]|None = None,

        timeout: float|None = None,
        resolver: Resolver|None = None,
        on_function_error: FunctionErrorHook|None = None,
        on_general_error: GeneralErrorHook|None = None,
        on_timeout_error: TimeoutErrorHook|None = None,

        id_factory: Callable[[], str]|None = None,
        nursery: trio.Nursery|None = None,

    ) -> None:
        if not callable(post):
            raise TypeError(f'`post` must be callable, got {post!r}')
        if not callable(on):
            raise TypeError(f'`on` must be callable, got {on!r}')

        self.functions: FunctionTable = (
            functions
            if functions is not None
            else {}
        )
        self._post = post
        self._off = off
        self.serialize: Callable[[Any], Any] = serialize or identity
        self.deserialize: Callable[[Any], Any] = deserialize or identity

        self.timeout: float|None = (
            _state._default_timeout
            if timeout is None
            else timeout
        )
        self.resolver: Resolver|None = resolver
        self.on_function_error = on_function_error
        self.on_general_error = on_general_error
        self.on_timeout_error = on_timeout_error

        self.next_id: Callable[[], str] = id_factory or nanoid
        self.nursery: trio.Nursery|None = nursery

        self.pending = PendingTable()
        self.dispatcher = Dispatcher(self)
        self._fns: dict[str, RPCFn] = {}
        self._closed: bool = False
        self._detached: bool = False

        # async `on()` registration, awaited (once) before the first
        # outbound call
        self._on_aw: Awaitable|None = None
        self._on_ready: trio.Event|None = None

        self._handler: Handler = self.dispatcher.on_message
        res = on(self._handler)
        if inspect.isawaitable(res):
            self._on_aw = res

        log.runtime(f'Opened rpc engine\n{self!r}')

    def __repr__(self) -> str:
        return (
            f'<{type(self).__name__}('
            f'closed={self._closed}, '
            f'pending={len(self.pending)}, '
            f'timeout={self.timeout})>'
        )

    @property
    def closed(self) -> bool:
        return self._closed

    # call handles
    def fn(
        self,
        *parts: str,
    ) -> RPCFn:
        '''
        Return the (cached) call handle for the method path made by
        joining `parts` with `'.'`.

        '''
        path: str = DELIM.join(parts)
        if not path:
            raise ValueError('A method path is required')

        handle: RPCFn|None = self._fns.get(path)
        if handle is None:
            handle = self._fns[path] = RPCFn(self, path)
        return handle

    def __getitem__(self, path: str) -> RPCFn:
        return self.fn(path)

    # user hooks, each returns `True` to suppress
    def _on_function_error(
        self,
        error: BaseException,
        method: str,
        args: list,
    ) -> bool|None:
        if self.on_function_error is None:
            return None
        return self.on_function_error(error, method, args)

    def _on_general_error(
        self,
        error: BaseException,
        method: str|None = None,
        args: list|None = None,
    ) -> bool|None:
        if self.on_general_error is None:
            return None
        return self.on_general_error(error, method, args)

    def _on_timeout_error(
        self,
        method: str,
        args: list,
    ) -> bool|None:
        if self.on_timeout_error is None:
            return None
        return self.on_timeout_error(method, args)

    # outbound
    def _encode(
        self,
        msg: Request|Response,
        method: str|None,
    ) -> Any:
        try:
            return self.serialize(msg)
        except Exception as src_err:
            raise SerializationError(
                f'Failed to serialize msg for "{method}": {src_err}',
                method=method,
            ) from src_err

    def _post_raw(
        self,
        data: Any,
        *extra: Any,
        method: str|None,
    ) -> Any:
        log.transport(f'=> posting\n{data!r}')
        try:
            return self._post(data, *extra)
        except Exception as src_err:
            raise TransportError(
                f'Failed to post msg for "{method}": {src_err}',
                method=method,
            ) from src_err

    async def _apost(
        self,
        msg: Request|Response,
        *extra: Any,
        method: str|None = None,
    ) -> None:
        res = self._post_raw(
            self._encode(msg, method),
            *extra,
            method=method,
        )
        if inspect.isawaitable(res):
            try:
                await res
            except Exception as src_err:
                raise TransportError(
                    f'Failed to post msg for "{method}": {src_err}',
                    method=method,
                ) from src_err

    def _post_nowait(
        self,
        msg: Request|Response,
        method: str|None = None,
    ) -> None:
        res = self._post_raw(
            self._encode(msg, method),
            method=method,
        )
        if inspect.isawaitable(res):
            if self.nursery is None:
                _maybe_close(res)
                raise TransportError(
                    f'Async `post()` for "{method}" requires a nursery, '
                    'use `open_birpc()` or pass `nursery=`',
                    method=method,
                )
            self.nursery.start_soon(self._await, res)

    @staticmethod
    async def _await(aw: Awaitable) -> None:
        await aw

    async def _wait_on_ready(self) -> None:
        '''
        Wait on an async `on()` listener registration, only ever
        awaited by the first caller; concurrent callers wait on
        its completion.

        '''
        if self._on_aw is not None:
            aw, self._on_aw = self._on_aw, None
            self._on_ready = trio.Event()
            try:
                await aw
            finally:
                self._on_ready.set()

        elif (
            self._on_ready is not None
            and
            not self._on_ready.is_set()
        ):
            await self._on_ready.wait()

    # lifecycle
    def _close(self) -> Awaitable|None:
        if not self._closed:
            log.cancel(f'Closing rpc engine\n{self!r}')

        self._closed = True
        self.pending.drain_on_close()

        if self._on_aw is not None:
            _maybe_close(self._on_aw)
            self._on_aw = None

        if (
            self._detached
            or
            self._off is None
        ):
            return None

        self._detached = True
        res = self._off(self._handler)
        if inspect.isawaitable(res):
            return res
        return None

    def close(self) -> None:
        '''
        Close this engine: reject all pending calls with
        a `ClosedError` and detach from the transport (via `off()`
        if provided). Safe to call many times.

        '''
        aw: Awaitable|None = self._close()
        if aw is None:
            return

        if self.nursery is not None:
            self.nursery.start_soon(self._await, aw)
        else:
            _maybe_close(aw)
            log.warning(
                'Async `off()` result dropped without a nursery, '
                'use `await rpc.aclose()` instead'
            )

    async def aclose(self) -> None:
        '''
        Same as `.close()` but awaits an async `off()`.

        '''
        aw: Awaitable|None = self._close()
        if aw is not None:
            await aw


@acm
async def _maybe_open_nursery(
    nursery: trio.Nursery|None = None,
) -> AsyncGenerator[trio.Nursery, None]:
    if nursery is not None:
        yield nursery
    else:
        async with trio.open_nursery() as nursery:
            yield nursery


@acm
async def open_birpc(
    functions: FunctionTable|None = None,
    *,
    nursery: trio.Nursery|None = None,
    loglevel: str|None = None,
    **kwargs,

) -> AsyncGenerator[BiRPC, None]:
    '''
    Open a `BiRPC` engine bound to a (new or provided) nursery for
    the lifetime of the block.

    Any async `on()` registration is awaited before the engine is
    delivered and the engine is always closed on exit.

    '''
    if loglevel:
        get_console_log(loglevel)

    async with _maybe_open_nursery(nursery) as tn:
        rpc = BiRPC(
            functions,
            nursery=tn,
            **kwargs,
        )
        try:
            await rpc._wait_on_ready()
            yield rpc
        finally:
            with trio.CancelScope(shield=True):
                await rpc.aclose()
