# Copyright (C) 2025 Richard Owen
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""Polling match clock mapping elapsed time onto structured match phases.

The clock does not own a timer. Callers read a wall-clock source roughly ten
times a second and feed it to :meth:`PhaseClock.tick`; the clock advances the
elapsed time, resolves the current phase, and stops itself when the match or
the configured timer runs out. Listeners are notified whenever the phase or
the running flag changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from heronscout.engine.config import RECORDER_CONFIG, PhaseConfig
from heronscout.models.events import Phase


class ClockMode(str, Enum):
    """Whether the match follows the fixed phase schedule."""

    FREE_RUN = "free"
    STRUCTURED = "match"


@dataclass(frozen=True)
class ClockSnapshot:
    """Read-only view of the clock handed to listeners.

    Parameters
    ----------
    mode : ClockMode
        Free-run or structured.
    phase : Phase
        Current phase (``IDLE`` throughout free-run mode).
    elapsed_ms : int
        Milliseconds since the match started.
    is_running : bool
        Whether the clock is still advancing.
    """

    mode: ClockMode
    phase: Phase
    elapsed_ms: int
    is_running: bool


ClockListener = Callable[[ClockSnapshot], None]


def phase_for_elapsed(elapsed_ms: int, phases: Optional[PhaseConfig] = None) -> Phase:
    """Resolve the structured phase for an elapsed match time.

    Parameters
    ----------
    elapsed_ms : int
        Milliseconds since the match started.
    phases : PhaseConfig | None, optional
        Phase durations; defaults to the global configuration.

    Returns
    -------
    Phase
        ``AUTO``, ``BUFFER``, ``TELEOP`` or ``FINISHED``.
    """
    phases = phases or RECORDER_CONFIG.phases
    elapsed_seconds = max(0, int(elapsed_ms)) // 1000
    if elapsed_seconds < phases.auto_end:
        return Phase.AUTO
    if elapsed_seconds < phases.buffer_end:
        return Phase.BUFFER
    if elapsed_seconds < phases.match_total_duration:
        return Phase.TELEOP
    return Phase.FINISHED


class PhaseClock:
    """State machine for a single match timer.

    Parameters
    ----------
    phases : PhaseConfig | None, optional
        Phase durations; defaults to the global configuration.
    """

    def __init__(self, phases: Optional[PhaseConfig] = None) -> None:
        """Create an idle free-run clock.

        Parameters
        ----------
        phases : PhaseConfig | None, optional
            Phase durations; defaults to the global configuration.
        """
        self.phases = phases or RECORDER_CONFIG.phases
        self.mode = ClockMode.FREE_RUN
        self.phase = Phase.IDLE
        self.elapsed_ms = 0
        self.timer_duration_s: Optional[int] = None
        self.start_time_ms: Optional[int] = None
        self.is_running = False
        self._listeners: List[ClockListener] = []

    @property
    def is_structured(self) -> bool:
        """Return ``True`` when the clock follows the phase schedule."""
        return self.mode == ClockMode.STRUCTURED

    def add_listener(self, listener: ClockListener) -> None:
        """Subscribe to phase and running-state changes.

        Parameters
        ----------
        listener : Callable[[ClockSnapshot], None]
            Called with a snapshot after each change.
        """
        self._listeners.append(listener)

    def remove_listener(self, listener: ClockListener) -> None:
        """Unsubscribe a previously added listener; unknown listeners are ignored.

        Parameters
        ----------
        listener : Callable[[ClockSnapshot], None]
            Listener passed to :meth:`add_listener`.
        """
        if listener in self._listeners:
            self._listeners.remove(listener)

    def start(self, now_ms: int, mode: ClockMode = ClockMode.FREE_RUN, timer_duration_s: Optional[int] = None) -> None:
        """Arm the clock and begin recording at ``now_ms``.

        Parameters
        ----------
        now_ms : int
            Wall-clock time in epoch milliseconds treated as the match start.
        mode : ClockMode, optional
            Free-run or structured.
        timer_duration_s : int | None, optional
            Auto-stop threshold. Structured matches default to the full match length.
        """
        self.mode = ClockMode(mode)
        if timer_duration_s is None and self.is_structured:
            timer_duration_s = self.phases.match_total_duration
        self.timer_duration_s = int(timer_duration_s) if timer_duration_s else None
        self.start_time_ms = int(now_ms)
        self.elapsed_ms = 0
        self.phase = Phase.AUTO if self.is_structured else Phase.IDLE
        self.is_running = True
        self._notify()

    def tick(self, now_ms: int) -> ClockSnapshot:
        """Advance the clock to ``now_ms``.

        Elapsed time never moves backwards. When the timer threshold is
        reached the clock stops and the elapsed time clamps to exactly the
        configured duration.

        Parameters
        ----------
        now_ms : int
            Current wall-clock time in epoch milliseconds.

        Returns
        -------
        ClockSnapshot
            State after the tick.
        """
        if not self.is_running or self.start_time_ms is None:
            return self.snapshot()

        previous = (self.phase, self.is_running)
        self.elapsed_ms = max(self.elapsed_ms, int(now_ms) - self.start_time_ms)

        if self.timer_duration_s and self.elapsed_ms >= self.timer_duration_s * 1000:
            self.elapsed_ms = self.timer_duration_s * 1000
            self.is_running = False
            if self.is_structured:
                self.phase = Phase.FINISHED
        elif self.is_structured:
            self.phase = phase_for_elapsed(self.elapsed_ms, self.phases)
            if self.phase == Phase.FINISHED:
                self.is_running = False

        if (self.phase, self.is_running) != previous:
            self._notify()
        return self.snapshot()

    def stop(self) -> None:
        """Halt the clock immediately. A stopped match cannot be resumed."""
        if self.start_time_ms is None:
            return
        changed = self.is_running or (self.is_structured and self.phase != Phase.FINISHED)
        self.is_running = False
        if self.is_structured:
            self.phase = Phase.FINISHED
        if changed:
            self._notify()

    def restore(self, start_time_ms: Optional[int], elapsed_ms: int, timer_duration_s: Optional[int] = None) -> None:
        """Load a stopped free-run state, as when reopening an imported match.

        Parameters
        ----------
        start_time_ms : int | None
            Wall-clock start of the imported match in epoch milliseconds.
        elapsed_ms : int
            Elapsed time to display, usually the last event's timestamp.
        timer_duration_s : int | None, optional
            Duration recorded with the imported match.
        """
        self.mode = ClockMode.FREE_RUN
        self.phase = Phase.IDLE
        self.start_time_ms = start_time_ms
        self.elapsed_ms = max(0, int(elapsed_ms))
        self.timer_duration_s = timer_duration_s
        self.is_running = False
        self._notify()

    def current_event_phase(self) -> Optional[Phase]:
        """Return the phase to tag new events with.

        Returns
        -------
        Phase | None
            The current phase in structured mode, ``None`` in free-run mode.
        """
        return self.phase if self.is_structured else None

    def snapshot(self) -> ClockSnapshot:
        """Capture the current state.

        Returns
        -------
        ClockSnapshot
            Immutable copy of mode, phase, elapsed time, and running flag.
        """
        return ClockSnapshot(self.mode, self.phase, self.elapsed_ms, self.is_running)

    def _notify(self) -> None:
        """Send the current snapshot to every listener."""
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
