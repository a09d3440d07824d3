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
Our classy exception set.

'''
from __future__ import annotations
import builtins
from collections.abc import Mapping
import importlib
import textwrap
import traceback
from typing import (
    Any,
    Type,
)

import trio

from ._state import _err_prefix
from .log import get_logger

log = get_logger(__name__)

_this_mod = importlib.import_module(__name__)


class RPCError(Exception):
    '''
    Base for every error raised by the `birpc` engine.

    Each instance records the dotted method path it concerns (when
    one is known) as `.method`.

    '''
    def __init__(
        self,
        message: str,
        method: str|None = None,
    ) -> None:
        super().__init__(message)
        self.method: str|None = method


class InternalError(RuntimeError):
    '''
    Entirely unexpected internal machinery error indicating
    a completely invalid engine state.

    '''


class ClosedError(RPCError):
    "The engine was closed before (or while) the call was made"

    def __init__(self, method: str) -> None:
        super().__init__(
            f'{_err_prefix} rpc is closed, cannot call "{method}"',
            method=method,
        )


class NotFoundError(RPCError):
    "No local function resolves for the requested method path"

    def __init__(self, method: str) -> None:
        super().__init__(
            f'{_err_prefix} function "{method}" not found',
            method=method,
        )


class RPCTimeoutError(
    RPCError,
    TimeoutError,
):
    "No matching response arrived within the call's deadline"

    def __init__(self, method: str) -> None:
        super().__init__(
            f'{_err_prefix} timeout on calling "{method}"',
            method=method,
        )


class SerializationError(RPCError):
    "The `serialize()` or `deserialize()` step raised"


class TransportError(RPCError):
    "The transport's `post()` raised"


_body_fields: list[str] = [
    'boxed_type',
    'method',
]


class FunctionError(RPCError):
    '''
    A box(ing) type for a remote function failure which did not
    arrive as a native (in-memory) exception instance, normally
    because it was packed by `pack_error()` to cross a real codec.

    '''
    reprol_fields: list[str] = [
        'method',
    ]

    def __init__(
        self,
        message: str,
        method: str|None = None,
        boxed_type: Type[BaseException]|None = None,
        tb_str: str = '',
        **msgdata,

    ) -> None:
        super().__init__(
            message,
            method=method,
        )
        self.boxed_type: Type[BaseException]|None = boxed_type
        self._tb_str: str = tb_str
        self.msgdata: dict[str, Any] = msgdata

    @property
    def type(self) -> Type[BaseException]|None:
        return self.boxed_type

    @property
    def tb_str(
        self,
        indent: str = ' '*3,
    ) -> str:
        if self._tb_str:
            return textwrap.indent(
                self._tb_str,
                prefix=indent,
            )

        return ''

    def reprol(self) -> str:
        '''
        Represent this error for "one line" display.

        '''
        _repr: str = f'{type(self).__name__}('
        for key in self.reprol_fields:
            val: Any|None = getattr(self, key, None)
            if val:
                _repr += f'{key}={val!r} '

        return _repr.rstrip() + ')'

    def __repr__(self) -> str:
        fields: str = ''
        for key in _body_fields:
            val: Any|None = getattr(self, key, None)
            if val:
                fields += f'{key}={val}\n'

        fields: str = textwrap.indent(
            fields,
            prefix=' |_',
        )
        return (
            f'<{type(self).__name__}(\n'
            f'{fields}'
            f'  |\n'
            f'   ------ - ------\n\n'
            f'{self.tb_str}\n'
            f'   ------ - ------\n'
            f' _|\n'
            ')>'
        )


def pack_error(
    exc: BaseException,
) -> dict[str, str]:
    '''
    Box a locally caught exception's meta-data into a plain `dict`
    which any codec can encode; expected to be unboxed on the
    receiver side by `unpack_error()` below.

    '''
    tb_str: str = ''.join(
        traceback.format_exception(exc)
    )
    return {
        'boxed_type': type(exc).__name__,
        'message': str(exc),
        'tb_str': tb_str,
    }


def _lookup_type(type_name: str) -> Type[BaseException]:
    for ns in [
        builtins,
        _this_mod,
        trio,
    ]:
        suberror_type = getattr(ns, type_name, None)
        if (
            isinstance(suberror_type, type)
            and
            issubclass(suberror_type, BaseException)
        ):
            return suberror_type

    return Exception


def unpack_error(
    error: Any,
    method: str,

) -> BaseException:
    '''
    Turn the `e` field of a response into a local exception.

    Native exception instances (as delivered by an identity
    codec) are returned unchanged, a packed mapping (see
    `pack_error()`) or any other value is boxed in
    a `FunctionError`.

    NOTE: this routine DOES not RAISE the embedded remote error,
    which is the responsibility of the caller.

    '''
    if isinstance(error, BaseException):
        return error

    if (
        isinstance(error, Mapping)
        and
        'boxed_type' in error
    ):
        type_name: str = error['boxed_type']
        message: str = error.get('message') or (
            f'{_err_prefix} remote function "{method}" raised {type_name}'
        )
        return FunctionError(
            message,
            method=method,
            boxed_type=_lookup_type(type_name),
            tb_str=error.get('tb_str', ''),
        )

    return FunctionError(
        f'{_err_prefix} remote function "{method}" failed: {error!r}',
        method=method,
        error=error,
    )
