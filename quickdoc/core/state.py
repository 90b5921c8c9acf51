"""Connection readiness state machine."""

from enum import Enum
from typing import Callable, List, Optional

from ..config.logging import LoggerMixin


class ConnectionState(str, Enum):
    """Readiness states of a backend connection."""

    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


StateListener = Callable[[ConnectionState, ConnectionState, Optional[BaseException]], None]

# Allowed transitions; ERROR and DISCONNECTED are reachable from anywhere.
_TRANSITIONS = {
    ConnectionState.DISCONNECTED: {ConnectionState.CONNECTING},
    ConnectionState.CONNECTING: {ConnectionState.CONNECTED},
    ConnectionState.CONNECTED: set(),
    ConnectionState.ERROR: {ConnectionState.CONNECTING},
}


class ConnectionStateMachine(LoggerMixin):
    """Tracks the readiness of one backend connection.

    Each backend owns its own machine, so stores over independent
    connections never observe each other's transitions. Listeners are
    called synchronously with ``(previous, current, error)``.
    """

    def __init__(self, name: str = "backend") -> None:
        self.name = name
        self._state = ConnectionState.DISCONNECTED
        self._listeners: List[StateListener] = []
        self.last_error: Optional[BaseException] = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a transition listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def transition(
        self,
        new_state: ConnectionState,
        error: Optional[BaseException] = None,
    ) -> None:
        """Move to ``new_state`` and notify listeners."""
        previous = self._state
        if previous is new_state:
            return

        allowed = _TRANSITIONS[previous] | {ConnectionState.ERROR, ConnectionState.DISCONNECTED}
        if new_state not in allowed:
            raise ValueError(
                f"Invalid connection state transition: {previous.value} -> {new_state.value}"
            )

        self._state = new_state
        if new_state is ConnectionState.ERROR:
            self.last_error = error

        self.logger.debug(
            "Connection state changed",
            connection=self.name,
            previous=previous.value,
            current=new_state.value,
            error=str(error) if error else None,
        )

        for listener in list(self._listeners):
            listener(previous, new_state, error)
