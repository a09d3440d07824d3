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
Inbound msg dispatch: run requested local functions and relay their
outcome, or settle our own pending calls from responses.

'''
from __future__ import annotations
import inspect
from typing import (
    Any,
    Callable,
    TYPE_CHECKING,
)

from ._exceptions import (
    NotFoundError,
    SerializationError,
)
from ._resolve import get_fn_by_path
from .log import get_logger
from .msg import (
    Request,
    Response,
    load_msg,
)

if TYPE_CHECKING:
    from ._engine import BiRPC

log = get_logger(__name__)


async def _invoke(
    fn: Callable,
    args: list[Any],
) -> Any:
    '''
    Call a local sync or async function.

    '''
    result: Any = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class Dispatcher:
    '''
    The single inbound handler registered with the transport's
    `on()`.

    Each delivered payload is handled independently; this type does
    no queuing or ordering of its own and keeps no state other than
    a ref to its engine.

    '''
    def __init__(
        self,
        rpc: BiRPC,
    ) -> None:
        self._rpc = rpc

    def __repr__(self) -> str:
        return f'<{type(self).__name__}(rpc={self._rpc!r})>'

    def _load(
        self,
        data: Any,
    ) -> Request|Response|None:
        rpc: BiRPC = self._rpc
        try:
            return load_msg(rpc.deserialize(data))

        except Exception as src_err:
            err = SerializationError(
                f'Failed to load inbound msg: {src_err}'
            )
            err.__cause__ = src_err
            if rpc._on_general_error(err) is not True:
                log.error(f'Failed to load inbound msg\n{data!r}')
                raise err

            log.runtime(f'Inbound load failure was suppressed\n{err!r}')
            return None

    async def on_message(
        self,
        data: Any,
        *extra: Any,
    ) -> None:
        '''
        Handle one inbound transport payload.

        '''
        log.transport(f'<= received\n{data!r}')
        msg: Request|Response|None = self._load(data)
        if msg is None:
            return

        if isinstance(msg, Request):
            await self._handle_request(msg, *extra)
        else:
            self._rpc.pending.settle(
                msg.i,
                result=msg.r,
                error=msg.e,
            )

    def resolve(
        self,
        method: str,
    ) -> Callable|None:
        '''
        Lookup the local function for `method`, re-reading the
        (mutable) function table on every call and applying any
        user `resolver` override last.

        '''
        rpc: BiRPC = self._rpc
        fn: Callable|None = get_fn_by_path(
            method,
            rpc.functions,
        )
        if rpc.resolver is not None:
            fn = rpc.resolver(method, fn)

        return fn

    async def _handle_request(
        self,
        msg: Request,
        *extra: Any,
    ) -> None:
        rpc: BiRPC = self._rpc
        method: str = msg.m
        args: list[Any] = msg.a
        result: Any = None
        error: BaseException|None = None

        fn: Callable|None = self.resolve(method)
        if fn is None:
            error = NotFoundError(method)
            log.warning(f'No local function for "{method}"')
        else:
            log.runtime(
                f'Running local function for "{method}"\n'
                f'id: {msg.i!r}\n'
                f'args: {args!r}\n'
            )
            try:
                result = await _invoke(fn, args)
            except Exception as err:
                error = err

        # one-way event, never reply
        if not msg.i:
            if error is not None:
                if rpc._on_function_error(error, method, args) is not True:
                    log.exception(
                        f'One-way call to "{method}" failed\n',
                        exc_info=error,
                    )
            return

        if (
            error is not None
            and
            rpc._on_function_error(error, method, args) is True
        ):
            log.runtime(
                f'Error response for "{method}" suppressed by hook\n'
                f'{error!r}'
            )
            return

        if error is None:
            try:
                await rpc._apost(
                    Response(i=msg.i, r=result),
                    *extra,
                    method=method,
                )
                return
            except Exception as post_err:
                # the hook always hears about it but the failure is
                # relayed as an error response either way
                if rpc._on_general_error(post_err, method, args) is not True:
                    log.warning(
                        f'Failed to send result for "{method}", '
                        f'replying with error instead\n'
                        f'{post_err!r}'
                    )
                error = post_err

        try:
            await rpc._apost(
                Response(i=msg.i, e=error),
                *extra,
                method=method,
            )
        except Exception as post_err:
            if rpc._on_general_error(post_err, method, args) is not True:
                log.error(
                    f'Failed to send error response for "{method}"\n'
                    f'{post_err!r}'
                )
                raise
