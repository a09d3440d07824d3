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
Log like a switchboard operator!

"""
from collections.abc import Mapping
import sys
import logging
from logging import (
    LoggerAdapter,
    Logger,
    StreamHandler,
)
import colorlog  # type: ignore

import trio

from . import _state


_proj_name: str = 'birpc'

# Formatting thanks to ``colorlog``.
# (NOTE: we use the '{' format style)
LOG_FORMAT = (
    "{log_color}{asctime}{reset}"
    " {bold_white}{thin_white}({reset}"
    "{thin_white}{process}, {task}){reset}{bold_white}{thin_white})"
    " {reset}{log_color}[{reset}{bold_log_color}{levelname}{reset}{log_color}]"
    " {log_color}{name}"
    " {thin_white}{filename}{log_color}:{reset}{thin_white}{lineno}{log_color}"
    " {reset}{bold_white}{thin_white}{message}"
)

DATE_FORMAT = '%b %d %H:%M:%S'

# FYI, ERROR is 40
CUSTOM_LEVELS: dict[str, int] = {
    'TRANSPORT': 5,
    'RUNTIME': 15,
    'CANCEL': 22,
}
STD_PALETTE = {
    'CRITICAL': 'red',
    'ERROR': 'red',
    'WARNING': 'yellow',
    'INFO': 'green',
    'CANCEL': 'yellow',
    'RUNTIME': 'white',
    'DEBUG': 'white',
    'TRANSPORT': 'cyan',
}

BOLD_PALETTE = {
    'bold': {
        level: f"bold_{color}" for level, color in STD_PALETTE.items()}
}


class StackLevelAdapter(LoggerAdapter):
    '''
    A (software) stack oriented logger "adapter" which adds our
    custom levels as methods.

    '''
    def transport(
        self,
        msg: str,

    ) -> None:
        '''
        Wire level msg IO; every envelope handed to or received from
        the caller supplied `post()`/`on()` primitives.

        '''
        return self.log(5, msg)

    def runtime(
        self,
        msg: str,
    ) -> None:
        return self.log(15, msg)

    def cancel(
        self,
        msg: str,
    ) -> None:
        '''
        Call teardown sequencing: timeouts and engine closure.

        '''
        return self.log(22, msg)

    def log(
        self,
        level,
        msg,
        *args,
        **kwargs,
    ):
        '''
        Delegate a log call to the underlying logger, after adding
        contextual information from this adapter instance.

        NOTE: all custom level methods (above) delegate to this!

        '''
        if self.isEnabledFor(level):
            stacklevel: int = 3
            if level in CUSTOM_LEVELS.values():
                stacklevel: int = 4

            self._log(
                level=level,
                msg=msg,
                args=args,
                stacklevel=stacklevel,
                **kwargs,
            )

    # LOL, the stdlib doesn't allow passing through ``stacklevel``..
    def _log(
        self,
        level,
        msg,
        args,
        exc_info=None,
        extra=None,
        stack_info=False,

        # XXX: bit we added to show fileinfo from actual caller.
        # - this level
        # - then ``.log()``
        # - then finally the caller's level..
        stacklevel=4,
    ):
        '''
        Low-level log implementation, proxied to allow nested logger adapters.

        '''
        return self.logger._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra=self.extra,
            stack_info=stack_info,
            stacklevel=stacklevel,
        )


def pformat_task_uid() -> str:
    '''
    Render the current `trio.Task` as `<name>[<tail of id()>]`.

    '''
    task: trio.lowlevel.Task = trio.lowlevel.current_task()
    return f'{task.name}[{str(id(task))[-6:]}]'


class TaskContextInfo(Mapping):
    '''
    Dynamic lookup of the `task` header field at each log emit.

    '''
    def __len__(self):
        return 1

    def __iter__(self):
        return iter(('task',))

    def __getitem__(self, key: str) -> str:
        if key != 'task':
            raise KeyError(key)
        try:
            return pformat_task_uid()
        except RuntimeError:
            # not inside a `trio.run()`
            return 'no task context'


def get_logger(
    name: str|None = None,
    _root_name: str = _proj_name,
    logger: Logger|None = None,

) -> StackLevelAdapter:
    '''
    Return the `birpc`-library root logger or a sub-logger for
    `name` if provided.

    '''
    log: Logger
    log = rlog = logger or logging.getLogger(_root_name)

    if (
        name
        and
        name != _root_name
    ):
        # NOTE: when passed `name=__name__` never repeat the root
        # pkg-name in the child key and never show the leaf module
        # since the {filename} field already does.
        rname, _, sub_name = name.partition('.')
        subpkg_path, _, leaf_mod = sub_name.rpartition('.')
        if rname == _root_name:
            sub_name = subpkg_path

        if not sub_name:
            log = rlog
        else:
            log = rlog.getChild(sub_name)

        log.level = rlog.level

    # add our task aware adapter which will dynamically look up
    # the task name at each log emit
    logger = StackLevelAdapter(
        log,
        TaskContextInfo(),
    )

    # additional levels
    for name, val in CUSTOM_LEVELS.items():
        logging.addLevelName(val, name)

        # ensure customs levels exist as methods
        assert getattr(logger, name.lower()), f'Logger does not define {name}'

    return logger


def get_console_log(
    level: str|int|None = None,
    logger: Logger|StackLevelAdapter|None = None,
    **kwargs,

) -> LoggerAdapter:
    '''
    Get a `birpc`-style logging instance: a `Logger` wrapped in
    a `StackLevelAdapter` which injects the current task field and
    enables a `StreamHandler` that writes on stderr using `colorlog`
    formatting; with no `level` the `_state._default_loglevel` is
    used.

    '''
    if (
        logger
        and
        isinstance(logger, StackLevelAdapter)
    ):
        log = logger
    else:
        log: StackLevelAdapter = get_logger(
            logger=logger,
            **kwargs
        )

    logger: Logger = log.logger
    level = level or get_loglevel()

    log.setLevel(
        level.upper()
        if not isinstance(level, int)
        else level
    )

    if not any(
        handler.stream == sys.stderr  # type: ignore
        for handler in logger.handlers if getattr(
            handler,
            'stream',
            None,
        )
    ):
        handler = StreamHandler()
        formatter = colorlog.ColoredFormatter(
            fmt=LOG_FORMAT,
            datefmt=DATE_FORMAT,
            log_colors=STD_PALETTE,
            secondary_log_colors=BOLD_PALETTE,
            style='{',
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return log


def get_loglevel() -> str:
    return _state._default_loglevel


# global module logger for birpc itself
log: StackLevelAdapter = get_logger('birpc')
