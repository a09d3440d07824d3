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
Method-path to local function resolution.

A "function table" is any (possibly nested) `Mapping` of `str` keys
to either another table or a callable. Modules and
`types.SimpleNamespace` instances are also accepted as tables, their
public attributes (or `__all__` when defined) acting as keys.

Both registration styles resolve transparently,

  {'bob.hi': hi}         # flat, dotted key
  {'bob': {'hi': hi}}    # nested

NOTE: at each level the *first* key (in the table's iteration
order) which the remaining path starts with is taken; there is no
longest-prefix preference. With overlapping keys like `'a'` and
`'ab'` registered in that order the path `'ab.c'` descends into
`'a'` and (most likely) fails to resolve.

'''
from __future__ import annotations
from collections.abc import Mapping
from types import (
    ModuleType,
    SimpleNamespace,
)
from typing import (
    Any,
    Callable,
    Iterable,
)

from .log import get_logger

log = get_logger(__name__)

FunctionTable = Mapping[str, Any]|ModuleType|SimpleNamespace

# method path delimiter
DELIM: str = '.'


def iter_keys(table: Any) -> Iterable[str]:
    '''
    Return the keys of a function table level in iteration order.

    '''
    if isinstance(table, Mapping):
        return list(table.keys())

    if isinstance(table, ModuleType):
        if (names := getattr(table, '__all__', None)) is not None:
            return list(names)

    if isinstance(
        table,
        (ModuleType, SimpleNamespace),
    ):
        return [
            key for key in vars(table)
            if not key.startswith('_')
        ]

    # leaf (callable) or unknown, nothing to descend into
    return ()


def _get(
    table: Any,
    key: str,
) -> Any:
    if isinstance(table, Mapping):
        return table[key]

    return getattr(table, key)


def get_fn_by_path(
    path: str,
    functions: FunctionTable,

) -> Callable|None:
    '''
    Resolve the dotted method `path` against the `functions` table,
    returning the callable or `None` when nothing matches.

    '''
    fn: Callable|None = None
    table: Any = functions

    while fn is None:
        key: str|None = next(
            (
                key for key in iter_keys(table)
                if path.startswith(key)
            ),
            None,
        )
        if key is None:
            return None

        table = _get(table, key)
        if (
            key == path
            and
            callable(table)
        ):
            fn = table

        # consume the matched key plus one delimiter
        path = path[len(key) + len(DELIM):]

    return fn
