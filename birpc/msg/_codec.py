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
Wire msg interchange codecs.

The engine itself treats (de)serialization as opaque: by default
envelopes are handed to `post()` as-is (the identity codec) which is
ideal for in-process transports. For any transport that ships bytes
use a `MsgCodec` from `mk_codec()` and pass its bound
`.serialize`/`.deserialize` methods to the engine.

Supported backend libs:
- `msgspec.msgpack` (default)
- `msgspec.json`

'''
from __future__ import annotations
from typing import (
    Any,
    Callable,
    Literal,
)

import msgspec
from msgspec import (
    json,
    msgpack,
    structs,
)

from birpc._exceptions import pack_error
from birpc.msg.types import (
    MsgType,
    Request,
    Response,
)
from birpc.log import get_logger

log = get_logger(__name__)


def identity(data: Any) -> Any:
    '''
    The default (no-op) serializer/deserializer.

    '''
    return data


class MsgCodec:
    '''
    A (de)serializer pair for our wire envelope, a thin wrapper
    around a `msgspec` `Encoder`/`Decoder` typed to `MsgType`.

    Any exception instance set on `Response.e` is boxed with
    `pack_error()` before encoding since a native exception can't
    cross a real codec.

    '''
    def __init__(
        self,
        protocol: Literal['msgpack', 'json'] = 'msgpack',
        enc_hook: Callable[[Any], Any]|None = None,
        dec_hook: Callable[[type, Any], Any]|None = None,
    ) -> None:
        lib = {
            'msgpack': msgpack,
            'json': json,
        }[protocol]

        self.protocol: str = protocol
        self._enc = lib.Encoder(enc_hook=enc_hook)
        self._dec = lib.Decoder(
            type=MsgType,
            dec_hook=dec_hook,
        )

    def __repr__(self) -> str:
        return (
            f'<{type(self).__name__}('
            f'protocol={self.protocol!r}, '
            f'enc_hook={self._enc.enc_hook}, '
            f'dec_hook={self._dec.dec_hook})>'
        )

    def serialize(
        self,
        msg: Request|Response,
    ) -> bytes:
        if (
            isinstance(msg, Response)
            and
            isinstance(msg.e, BaseException)
        ):
            msg = structs.replace(
                msg,
                e=pack_error(msg.e),
            )

        return self._enc.encode(msg)

    def deserialize(
        self,
        raw: bytes|bytearray|memoryview|str,
    ) -> Request|Response:
        return self._dec.decode(raw)


def mk_codec(
    protocol: Literal['msgpack', 'json'] = 'msgpack',

    # NOTE, required for ad-hoc type extensions to the underlying
    # serialization proto,
    # https://jcristharif.com/msgspec/extending.html#mapping-to-from-native-types
    enc_hook: Callable[[Any], Any]|None = None,
    dec_hook: Callable[[type, Any], Any]|None = None,

) -> MsgCodec:
    '''
    Convenience factory for a `MsgCodec`.

    '''
    codec = MsgCodec(
        protocol=protocol,
        enc_hook=enc_hook,
        dec_hook=dec_hook,
    )
    log.runtime(f'Created wire codec\n{codec!r}')
    return codec


# re-export for callers catching codec failures
EncodeError = msgspec.EncodeError
DecodeError = msgspec.DecodeError
