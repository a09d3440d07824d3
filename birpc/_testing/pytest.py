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
`pytest` utils helpers and plugins for testing `birpc` and apps
built on it.

'''
from functools import (
    partial,
    wraps,
)
import inspect

import trio


def rpc_test(fn):
    '''
    Decorator for async test fns to decorator-wrap them as "native"
    looking sync funcs runnable by `pytest` and auto invoked with
    `trio.run()` (much like the `pytest-trio` plugin's approach).

    Basic deco use:
    ---------------

      @rpc_test
      async def test_whatever():
          await ...

    If the wrapped test fn requests the `loglevel` fixture it is
    injected as normal.

    '''
    @wraps(fn)
    def wrapper(
        *args,
        loglevel=None,
        **kwargs
    ):
        if 'loglevel' in inspect.signature(fn).parameters:
            # allows test suites to define a 'loglevel' fixture
            # that activates the internal logging
            kwargs['loglevel'] = loglevel

        return trio.run(
            partial(fn, *args, **kwargs)
        )

    return wrapper

