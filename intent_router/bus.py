"""Single-slot command bus between producers and the executor."""

import threading
from dataclasses import dataclass
from typing import Callable

from loguru import logger

from intent_router.commands import Command


@dataclass(frozen=True)
class CommandBusState:
    current_command: Command | None = None
    is_processing: bool = False

    @property
    def phase(self) -> str:
        if self.current_command is None:
            return "idle"
        return "processing" if self.is_processing else "occupied"


Listener = Callable[[CommandBusState], None]


class CommandBus:
    """Holds at most one pending command.

    Idle → Occupied (push) → Processing (executor claim) → Idle (clear).
    A push is accepted only while Idle; producers cannot clobber a command
    that is waiting or in flight.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = CommandBusState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> CommandBusState:
        with self._lock:
            return self._state

    @property
    def is_processing(self) -> bool:
        return self.state.is_processing

    def peek_current(self) -> Command | None:
        return self.state.current_command

    def push(self, command: Command) -> bool:
        if not isinstance(command, Command):
            logger.warning(f"CommandBus: rejected {type(command).__name__}, not a command")
            return False
        with self._lock:
            if self._state.current_command is not None:
                busy = self._state.current_command.kind
                accepted = False
            else:
                self._state = CommandBusState(current_command=command)
                state = self._state
                accepted = True
        if not accepted:
            logger.debug(f"CommandBus: rejected {command.kind} (slot holds {busy})")
            return False
        logger.debug(f"CommandBus: accepted {command.kind}")
        self._notify(state)
        return True

    def begin_processing(self, command: Command) -> bool:
        """Claim the slot's command for execution. Succeeds once per push."""
        with self._lock:
            s = self._state
            if s.current_command is not command or s.is_processing:
                return False
            self._state = CommandBusState(current_command=command, is_processing=True)
            state = self._state
        self._notify(state)
        return True

    def set_processing(self, processing: bool) -> None:
        with self._lock:
            if processing and self._state.current_command is None:
                illegal = True
            else:
                illegal = False
                self._state = CommandBusState(self._state.current_command, processing)
                state = self._state
        if illegal:
            logger.warning("CommandBus: ignoring set_processing(True) on an empty slot")
            return
        self._notify(state)

    def clear(self) -> None:
        with self._lock:
            self._state = CommandBusState()
            state = self._state
        self._notify(state)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener with the new state after every transition."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, state: CommandBusState) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(state)
            except Exception as e:
                logger.warning(f"CommandBus listener failed: {e}")
