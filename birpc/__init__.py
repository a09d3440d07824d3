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

"""
birpc: symmetric, bidirectional ``trio``-native rpc over any duplex
message channel.

"""
from ._engine import (
    BiRPC as BiRPC,
    open_birpc as open_birpc,
)
from ._portal import RPCFn as RPCFn
from ._pending import (
    PendingCall as PendingCall,
    PendingTable as PendingTable,
)
from ._resolve import get_fn_by_path as get_fn_by_path
from ._ids import (
    nanoid as nanoid,
    counter_ids as counter_ids,
)
from ._exceptions import (
    RPCError as RPCError,
    ClosedError as ClosedError,
    NotFoundError as NotFoundError,
    RPCTimeoutError as RPCTimeoutError,
    FunctionError as FunctionError,
    SerializationError as SerializationError,
    TransportError as TransportError,
    InternalError as InternalError,
    pack_error as pack_error,
    unpack_error as unpack_error,
)
from . import msg as msg
from . import log as log
