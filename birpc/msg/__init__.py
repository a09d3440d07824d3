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
Wire msg types and codecs.

'''
from typing import (
    TypeAlias,
)
from .types import (
    REQUEST as REQUEST,
    RESPONSE as RESPONSE,
    Request as Request,
    Response as Response,
    MsgType as MsgType,
    load_msg as load_msg,

    # full msg class set from above as list
    __msg_types__ as __msg_types__,
)
from ._codec import (
    identity as identity,
    mk_codec as mk_codec,
    MsgCodec as MsgCodec,
)

__msg_spec__: TypeAlias = MsgType
