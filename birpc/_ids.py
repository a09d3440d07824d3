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
Call (correlation) id generation.

The default `nanoid()` draws 21 symbols from a 64 char alphabet
(6 bits each, so 126 bits total) using the non-cryptographic
`random` module. Among `n` simultaneously pending ids the chance
of *any* collision is bounded by the birthday approximation,

    p(n) ~= n**2 / 2**127

i.e. ~1e-26 for a million outstanding calls; small but NOT zero,
which is why `PendingTable.register()` refuses a duplicate key
instead of overwriting.

Use `counter_ids()` as an `id_factory=` for an engine when
collision freedom must be guaranteed.

'''
from __future__ import annotations
import itertools
import random
from typing import Callable


URL_ALPHABET: str = (
    'useandom-26T198340PX75pxJACKVERYMINDBUSHWOLF_GQZbfghjklqvwyzrict'
)

# module local source so user code reseeding (or patching) the
# global `random` state doesn't affect id generation.
_random = random.Random()


def nanoid(
    size: int = 21,
    alphabet: str = URL_ALPHABET,
) -> str:
    return ''.join(
        alphabet[int(_random.random() * len(alphabet))]
        for _ in range(size)
    )


def counter_ids(
    salt: str|None = None,
) -> Callable[[], str]:
    '''
    Return an id factory yielding `<salt>-<n>` for a monotonically
    increasing `n`; ids never repeat for the life of the factory.

    '''
    if salt is None:
        salt = nanoid(size=8)

    count = itertools.count()

    def next_id() -> str:
        return f'{salt}-{next(count)}'

    return next_id
