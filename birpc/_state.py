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
Per-process defaults.

'''

# max time (in seconds) an `RPCFn.invoke()` waits for its response;
# a negative value (or `None`) disables the deadline.
_default_timeout: float = 60.0

_default_loglevel: str = 'ERROR'

# prefix applied to every `birpc` error msg
_err_prefix: str = '[birpc]'
