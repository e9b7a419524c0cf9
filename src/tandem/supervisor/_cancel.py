"""Process-wide cancellation flag and the interrupt broadcaster that sets it.

The flag is the only mutable state shared between pumps. It is touched only
from the event loop thread, so a plain boolean plus an ``anyio.Event`` for
waking waiters is race-free.
"""

import signal
from collections.abc import Callable, Sequence
from typing import final

import anyio
import anyio.abc

DEFAULT_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


@final
class CancellationFlag:
    """Monotonic false-to-true flag observed by every pump.

    Safe to construct outside of an event loop; the underlying event is
    created on first use.
    """

    __slots__ = ("_event", "_is_set")

    def __init__(self) -> None:
        self._is_set = False
        self._event: anyio.Event | None = None

    def is_set(self) -> bool:
        """Return True once cancellation has been requested."""
        return self._is_set

    def set(self) -> bool:
        """Request cancellation.

        Returns:
            True if this call flipped the flag, False if it was already set.
        """
        if self._is_set:
            return False
        self._is_set = True
        if self._event is not None:
            self._event.set()
        return True

    async def wait(self) -> None:
        """Block until cancellation is requested."""
        if self._is_set:
            return
        if self._event is None:
            self._event = anyio.Event()
        await self._event.wait()


@final
class CancellationBroadcaster:
    """Turns interactive interrupts into a single cancellation request.

    The first signal received sets the flag and invokes ``on_cancel`` once;
    later signals are ignored so repeated Ctrl-C does not cause kill storms.
    This is the only writer of the flag during a run.
    """

    __slots__ = ("_flag", "_on_cancel", "_signals")

    def __init__(
        self,
        flag: CancellationFlag,
        *,
        on_cancel: Callable[[signal.Signals], None] | None = None,
        signals: Sequence[signal.Signals] = DEFAULT_SIGNALS,
    ) -> None:
        """Initialize the broadcaster.

        Args:
            flag: The flag to set on interrupt.
            on_cancel: Called once, with the signal, when the flag flips.
            signals: Signals treated as a cancellation request.
        """
        self._flag = flag
        self._on_cancel = on_cancel
        self._signals = tuple(signals)

    @property
    def flag(self) -> CancellationFlag:
        """Return the flag this broadcaster writes."""
        return self._flag

    def handle(self, signum: signal.Signals) -> bool:
        """Process one received signal.

        Returns:
            True if the signal triggered cancellation, False if ignored.
        """
        if not self._flag.set():
            return False
        if self._on_cancel is not None:
            self._on_cancel(signum)
        return True

    async def watch(
        self,
        *,
        task_status: anyio.abc.TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        """Receive signals until cancelled by the caller.

        Reports readiness through ``task_status`` once the handlers are
        installed, so ``TaskGroup.start`` returns only after that point.
        """
        with anyio.open_signal_receiver(*self._signals) as received:
            task_status.started()
            async for signum in received:
                _ = self.handle(signal.Signals(signum))
