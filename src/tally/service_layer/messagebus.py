"""Message bus routing commands to their handlers."""

import logging
from collections.abc import Callable
from typing import Any

from tally.interfaces.unit_of_work import AbstractUnitOfWork

from .commands import Command

logger = logging.getLogger(__name__)

# pylint: disable=too-few-public-methods


class NoHandlerForCommand(LookupError):
    """Exception raised when no handler is found for a command."""

    def __init__(self, cmd: Command) -> None:
        super().__init__(f"No handler found for command {type(cmd).__name__}")


class MessageBus:
    """A simple, synchronous message bus for commands.

    Routes each command to its handler, logs the dispatch and any failure, and
    hands the handler's result back to the caller (the outcome of a submitted
    transaction, for instance).

    Args:
        uow: The ledger's unit of work. Handlers receive it (or services built on
            it) through injection; it is exposed here for convenience.
        command_handlers: A mapping of command types to handlers accepting a single
            command argument. Dependencies are injected beforehand via closures.
    """

    def __init__(
        self,
        uow: AbstractUnitOfWork,
        command_handlers: dict[type[Command], Callable[..., Any]],
    ) -> None:
        self.uow = uow
        self._command_handlers = command_handlers

    def handle(self, cmd: Command) -> Any:
        """Dispatch `cmd` to its handler and return the handler's result.

        Raises:
            NoHandlerForCommand: If no handler is found for the command type.
            Exception: If the handler raises an exception.
        """

        if not (handler := self._command_handlers.get(type(cmd))):
            logger.error("No handler found for command %s", type(cmd).__name__)
            raise NoHandlerForCommand(cmd)

        handler_name = self._get_handler_name(handler)
        logger.debug("Handling command %s with handler %s", type(cmd).__name__, handler_name)
        try:
            return handler(cmd)
        except Exception:
            logger.exception(
                "Exception handling command %s with handler %s",
                type(cmd).__name__,
                handler_name,
            )
            raise

    @staticmethod
    def _get_handler_name(fn: Callable[..., Any]) -> str:
        if hasattr(fn, "__name__"):
            return fn.__name__
        if hasattr(fn, "func") and hasattr(fn.func, "__name__"):
            return fn.func.__name__
        return repr(fn)
