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
The (tiny) wire envelope spec: exactly two msg shapes discriminated
by the integer tag field `t`,

  Request  { t: 0, i?: str, m: str, a: list }
  Response { t: 1, i: str, r?: Any, e?: Any }

Both are `msgspec.Struct` "tagged unions" so any `msgspec` backend
(or a foreign codec producing plain `dict`s) can load them.

'''
from __future__ import annotations
from collections.abc import Mapping
from typing import (
    Any,
    TypeAlias,
    Union,
)

import msgspec
from msgspec import Struct

from birpc.log import get_logger


log = get_logger('birpc.msg')

REQUEST: int = 0
RESPONSE: int = 1


class Request(
    Struct,

    # https://jcristharif.com/msgspec/structs.html#tagged-unions
    tag=REQUEST,
    tag_field='t',

    # https://jcristharif.com/msgspec/structs.html#omitting-default-values
    omit_defaults=True,
    kw_only=True,
):
    '''
    Ask the peer to run the function at method path `.m` with the
    positional arguments `.a`.

    When the correlation id `.i` is unset this is a "fire-and-forget"
    event; no `Response` will ever reference it.

    '''
    m: str
    a: list[Any]
    i: str|None = None


class Response(
    Struct,
    tag=RESPONSE,
    tag_field='t',
    omit_defaults=True,
    kw_only=True,
):
    '''
    The outcome of a `Request` which carried a correlation id.

    At most one of `.r` (result) or `.e` (error) is meaningful; both
    unset means "resolved with `None`".

    '''
    i: str
    r: Any = None
    e: Any = None


MsgType: TypeAlias = Union[
    Request,
    Response,
]

__msg_types__: list[type[Struct]] = [
    Request,
    Response,
]


def load_msg(
    data: Any,
) -> Request|Response:
    '''
    Normalize an already deserialized payload to one of our msg
    structs; plain `dict`s (as produced by a foreign codec) are
    type-checked and converted.

    Raises `msgspec.ValidationError` for anything else.

    '''
    if isinstance(data, (Request, Response)):
        return data

    if isinstance(data, Mapping):
        return msgspec.convert(
            dict(data),
            type=MsgType,
        )

    raise msgspec.ValidationError(
        f'Expected a `Request`|`Response` msg, got {type(data)!r}'
    )
