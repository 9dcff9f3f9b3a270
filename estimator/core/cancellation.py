# estimator/core/cancellation.py
import threading
import time

from estimator.core.errors import OperationCancelled


class CancelScope:
    """
    Alcance de cancelación que entrega el caller: se dispara con cancel()
    o al vencer el plazo (timeout en segundos, reloj monotónico).
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.expired

    def check(self, operation: str) -> None:
        if self._event.is_set():
            raise OperationCancelled(operation, "cancelled")
        if self.expired:
            raise OperationCancelled(operation, "deadline exceeded")


def check_cancelled(cancel: CancelScope | None, operation: str) -> None:
    if cancel is not None:
        cancel.check(operation)
