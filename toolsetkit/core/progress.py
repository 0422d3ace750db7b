"""
Progress accounting for install sessions.

A ProgressTicket owns a slice of the overall progress budget. The top-level
caller creates one ticket for the whole session and hands sub-tickets down
to each orchestrator step; a step that handles N items divides its share
equally among them, with the remainder of the integer division going to the
final item.

The cumulative value pushed to the sink never decreases and never exceeds
the root budget. The sink may live on another thread (a GUI or progress
bar worker), so emission is guarded by a lock.

Example:
    >>> ticket = ProgressTicket(100, on_progress=print)
    >>> for share in ticket.split(3):
    ...     share.finish()
    33
    66
    100
"""

import logging
import threading
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class _ProgressState:
    """Counter shared by a root ticket and all of its sub-tickets."""

    def __init__(
        self,
        on_progress: Optional[Callable[[int], None]],
        on_message: Optional[Callable[[str], None]],
    ):
        self.emitted = 0
        self.on_progress = on_progress
        self.on_message = on_message
        self.lock = threading.Lock()


class ProgressTicket:
    """
    A share of the progress budget.

    Args:
        total_budget: Units this ticket may emit
        on_progress: Sink for cumulative progress values
        on_message: Sink for text messages
    """

    def __init__(
        self,
        total_budget: int,
        on_progress: Optional[Callable[[int], None]] = None,
        on_message: Optional[Callable[[str], None]] = None,
        _state: Optional[_ProgressState] = None,
    ):
        if total_budget < 0:
            raise ValueError("progress budget cannot be negative")
        self.total_budget = total_budget
        self.used = 0
        self._state = _state or _ProgressState(on_progress, on_message)

    @property
    def emitted_so_far(self) -> int:
        """Cumulative value emitted by the whole ticket tree."""
        return self._state.emitted

    @property
    def remaining(self) -> int:
        return self.total_budget - self.used

    def sub_ticket(self, budget: int) -> "ProgressTicket":
        """Carve a child ticket of ``budget`` units out of this ticket."""
        budget = min(budget, self.remaining)
        self.used += budget
        return ProgressTicket(budget, _state=self._state)

    def split(self, count: int) -> List["ProgressTicket"]:
        """
        Divide the remaining budget among ``count`` items.

        Each item gets ``floor(remaining / count)``; the final item also gets
        the remainder. With ``count == 0`` the whole remaining budget is
        emitted immediately and an empty list is returned.
        """
        if count <= 0:
            self.finish()
            return []

        share, extra = divmod(self.remaining, count)
        tickets = [self.sub_ticket(share) for _ in range(count - 1)]
        tickets.append(self.sub_ticket(share + extra))
        return tickets

    def advance(self, amount: int) -> None:
        """Emit ``amount`` units, clamped to what is left on this ticket."""
        amount = max(0, min(amount, self.remaining))
        self.used += amount
        if amount:
            self._emit(amount)

    def finish(self) -> None:
        """Emit whatever is left on this ticket."""
        self.advance(self.remaining)

    def message(self, text: str) -> None:
        """Print ``text`` and push it to the message sink verbatim."""
        print(text)
        if self._state.on_message is not None:
            self._state.on_message(text)

    def _emit(self, amount: int) -> None:
        state = self._state
        with state.lock:
            state.emitted += amount
            value = state.emitted
            if state.on_progress is not None:
                state.on_progress(value)
        logger.debug(f"progress: {value}")
