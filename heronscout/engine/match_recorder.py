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
"""Live recording session tying the phase clock to a match's event log."""

from __future__ import annotations

import time
from threading import RLock
from typing import Any, Callable, Dict, Optional

from heronscout.analysis.scoring import (
    ScoringBreakdown,
    calculate_total_points,
    normalize_motif,
    normalize_pattern,
)
from heronscout.codec.json_format import loads_match, match_to_json
from heronscout.codec.text_format import decode_match_text, encode_match_text, encode_phase_match_text
from heronscout.engine.config import RECORDER_CONFIG
from heronscout.engine.phase_clock import ClockMode, ClockSnapshot, PhaseClock
from heronscout.errors import ValidationError
from heronscout.models.events import CycleEvent, GateEvent, MatchEvent, Phase
from heronscout.models.match import Match, MatchMetadata, ParkStatus, ScoringInputs
from heronscout.utils.debug import RecorderDebugger


def wall_clock_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds.

    Returns
    -------
    int
        Milliseconds since the Unix epoch.
    """
    return int(time.time() * 1000)


class MatchRecorder:
    """Single-writer recording session for one match at a time.

    The recorder owns the live :class:`Match` and the :class:`PhaseClock`.
    UI code calls :meth:`start_match`, :meth:`add_cycle`, :meth:`add_gate`,
    :meth:`undo_last` and :meth:`stop_match`, and reads :meth:`snapshot`
    for display and export. Time is read from ``time_source`` so tests can
    drive the clock deterministically.

    Parameters
    ----------
    time_source : Callable[[], int] | None, optional
        Returns the current time in epoch milliseconds.
    debugger : RecorderDebugger | None, optional
        Session log receiving clock changes and recorded events.
    """

    def __init__(
        self,
        time_source: Optional[Callable[[], int]] = None,
        debugger: Optional[RecorderDebugger] = None,
    ) -> None:
        """Create an idle recorder with an empty match.

        Parameters
        ----------
        time_source : Callable[[], int] | None, optional
            Returns the current time in epoch milliseconds; defaults to the wall clock.
        debugger : RecorderDebugger | None, optional
            Session log receiving clock changes and recorded events.
        """
        self.time_source = time_source or wall_clock_ms
        self.debugger = debugger
        self.clock = PhaseClock()
        self.match = Match()
        self._lock = RLock()
        self.clock.add_listener(self._on_clock_change)

    @property
    def is_recording(self) -> bool:
        """Return ``True`` while the clock is running."""
        return self.clock.is_running

    @property
    def mode(self) -> ClockMode:
        """Return the mode of the current match."""
        return self.clock.mode

    @property
    def phase(self) -> Phase:
        """Return the current clock phase."""
        return self.clock.phase

    @property
    def elapsed_ms(self) -> int:
        """Return the elapsed match time as of the last tick."""
        return self.clock.elapsed_ms

    def start_match(
        self,
        duration_s: Optional[int] = None,
        mode: ClockMode = ClockMode.FREE_RUN,
        motif: Optional[str] = None,
        team_number: Optional[str] = None,
    ) -> None:
        """Begin recording a fresh match.

        Events, notes, and scoring inputs are cleared. The team number is
        kept from the previous match unless a new one is given.

        Parameters
        ----------
        duration_s : int | None, optional
            Auto-stop timer in seconds; structured matches default to 158.
        mode : ClockMode, optional
            Free-run or structured.
        motif : str | None, optional
            Motif for the match, normalised before storage.
        team_number : str | None, optional
            Team being scouted.
        """
        with self._lock:
            now = self.time_source()
            team = team_number if team_number is not None else self.match.metadata.team_number
            self.match = Match(
                metadata=MatchMetadata(team_number=team, start_time_ms=now),
                scoring=ScoringInputs(motif=normalize_motif(motif)),
            )
            self.clock.start(now, mode, duration_s)
            self._log_event("start", f"{ClockMode(mode).value} match started (timer: {duration_s or 'none'})")

    def tick(self) -> ClockSnapshot:
        """Advance the clock from the time source.

        Returns
        -------
        ClockSnapshot
            Clock state after the tick.
        """
        with self._lock:
            return self.clock.tick(self.time_source())

    def run(self, sleep: Callable[[float], Any] = time.sleep) -> None:
        """Poll the clock at the configured interval until the match stops.

        Parameters
        ----------
        sleep : Callable[[float], Any], optional
            Blocking sleep used between ticks.
        """
        interval = RECORDER_CONFIG.clock.tick_interval
        while self.is_recording:
            self.tick()
            if not self.is_recording:
                break
            # Small sleep to keep the loop at roughly 10Hz
            sleep(interval)

    def add_cycle(self, attempted: int, scored: int) -> Optional[CycleEvent]:
        """Record a cycle at the current match time.

        Parameters
        ----------
        attempted : int
            Artifacts launched, between 1 and 3.
        scored : int
            Artifacts scored, between 0 and ``attempted``.

        Returns
        -------
        CycleEvent | None
            The recorded event, or ``None`` when no match is recording.

        Raises
        ------
        ValidationError
            If the counts break the cycle invariants, whether or not a match is recording.
        """
        with self._lock:
            if self.is_recording:
                self.tick()
            try:
                if not self.is_recording:
                    CycleEvent(self.clock.elapsed_ms, attempted, scored)
                    return None
                event = self.match.append_cycle(
                    attempted, scored, self.clock.elapsed_ms, self.clock.current_event_phase()
                )
            except ValidationError as exc:
                if self.debugger:
                    self.debugger.log_error("invalid_cycle", str(exc))
                raise
            self._log_event("cycle", f"{event.scored}/{event.attempted} scored")
            return event

    def add_gate(self) -> Optional[GateEvent]:
        """Record a gate opening at the current match time.

        Returns
        -------
        GateEvent | None
            The recorded event, or ``None`` when no match is recording.
        """
        with self._lock:
            if self.is_recording:
                self.tick()
            if not self.is_recording:
                return None
            event = self.match.append_gate(self.clock.elapsed_ms, self.clock.current_event_phase())
            self._log_event("gate", "gate opened")
            return event

    def undo_last(self) -> Optional[MatchEvent]:
        """Remove the most recent event, if any.

        Returns
        -------
        MatchEvent | None
            The removed event, or ``None`` when the log was empty.
        """
        with self._lock:
            event = self.match.undo_last()
            if event is not None:
                self._log_event("undo", f"removed {event.kind} at {event.timestamp_ms}ms")
            return event

    def stop_match(self) -> None:
        """Stop recording immediately; already recorded events are kept."""
        with self._lock:
            was_recording = self.is_recording
            self.clock.stop()
            if was_recording:
                self._log_event("stop", "match stopped manually")

    def reset(self) -> None:
        """Discard the current match and return to an idle free-run clock."""
        with self._lock:
            self.clock.stop()
            self.clock.restore(None, 0, None)
            self.match = Match()

    def load_match(self, match: Match) -> bool:
        """Replace the live match with an imported one.

        Parameters
        ----------
        match : Match
            Decoded or JSON-loaded match; it is copied, not shared.

        Returns
        -------
        bool
            ``False`` (leaving the recorder untouched) when the match has no events.
        """
        if not match.events:
            return False
        with self._lock:
            self.clock.stop()
            loaded = match.copy()
            if loaded.metadata.start_time_ms is None:
                loaded.metadata.start_time_ms = self.time_source()
            self.match = loaded
            self.clock.restore(
                loaded.metadata.start_time_ms, loaded.last_timestamp_ms, loaded.metadata.duration_seconds
            )
            self._log_event("load", f"imported {len(loaded.events)} events")
        return True

    def load_text(self, text: str) -> bool:
        """Decode pasted match text and load it.

        Parameters
        ----------
        text : str
            Match text in any supported version.

        Returns
        -------
        bool
            Whether any events were recovered and loaded.

        Raises
        ------
        MalformedInput
            If the text contains no ``;;`` separator.
        """
        return self.load_match(decode_match_text(text).match)

    def load_json(self, text: str) -> bool:
        """Parse an exported JSON match and load it.

        Parameters
        ----------
        text : str
            JSON document.

        Returns
        -------
        bool
            Whether a match with events was loaded; unparseable files yield ``False``.
        """
        match = loads_match(text)
        if match is None:
            if self.debugger:
                self.debugger.log_error("json_import", "match file is not valid JSON")
            return False
        return self.load_match(match)

    def set_team_number(self, team_number: Optional[str]) -> None:
        """Set the scouted team.

        Parameters
        ----------
        team_number : str | None
            Team number; blank clears it.
        """
        with self._lock:
            self.match.metadata.team_number = (team_number or "").strip() or None

    def set_notes(self, notes: Optional[str]) -> None:
        """Replace the match notes.

        Parameters
        ----------
        notes : str | None
            Free-form text.
        """
        with self._lock:
            self.match.metadata.notes = notes or ""

    def set_motif(self, motif: Optional[str]) -> None:
        """Set the motif, keeping it only when three ``P``/``G`` symbols remain.

        Parameters
        ----------
        motif : str | None
            Raw motif text.
        """
        with self._lock:
            self.match.scoring.motif = normalize_motif(motif)

    def set_auto_pattern(self, pattern: Optional[str]) -> None:
        """Set the end-of-autonomous ramp pattern.

        Parameters
        ----------
        pattern : str | None
            Raw text; normalised to uppercase ``P``/``G`` only.
        """
        with self._lock:
            self.match.scoring.auto_pattern = normalize_pattern(pattern)

    def set_teleop_pattern(self, pattern: Optional[str]) -> None:
        """Set the end-of-teleop ramp pattern.

        Parameters
        ----------
        pattern : str | None
            Raw text; normalised to uppercase ``P``/``G`` only.
        """
        with self._lock:
            self.match.scoring.teleop_pattern = normalize_pattern(pattern)

    def set_auto_leave(self, left: bool) -> None:
        """Record whether the robot left the launch zone in autonomous.

        Parameters
        ----------
        left : bool
            ``True`` when the robot left.
        """
        with self._lock:
            self.match.scoring.auto_leave = bool(left)

    def set_teleop_park(self, park: object) -> None:
        """Record the end-of-match park result.

        Parameters
        ----------
        park : object
            A :class:`ParkStatus` or its string value.
        """
        with self._lock:
            self.match.scoring.teleop_park = ParkStatus.parse(park)

    def snapshot(self) -> Match:
        """Return an independent copy of the live match for display or export.

        The duration is filled from the timer, or the elapsed whole seconds,
        when the match does not already carry one.

        Returns
        -------
        Match
            Copy safe to read while recording continues.
        """
        with self._lock:
            snapshot = self.match.copy()
            if snapshot.metadata.duration_seconds is None:
                duration = self.clock.timer_duration_s or self.clock.elapsed_ms // 1000
                snapshot.metadata.duration_seconds = duration or None
            return snapshot

    def match_text(self) -> str:
        """Encode the current match as shareable text.

        Returns
        -------
        str
            ``hmadv2`` match text.
        """
        return encode_match_text(self.snapshot())

    def phase_match_text(self, phase: Phase) -> Optional[str]:
        """Encode one phase of the current match.

        Parameters
        ----------
        phase : Phase
            ``AUTO`` or ``TELEOP``.

        Returns
        -------
        str | None
            Match text, or ``None`` when the phase has no events.
        """
        return encode_phase_match_text(self.snapshot(), phase, self.clock.mode)

    def match_json(self) -> Dict[str, Any]:
        """Serialise the current match to its JSON object form.

        Returns
        -------
        Dict[str, Any]
            JSON-ready mapping.
        """
        return match_to_json(self.snapshot())

    def score(self) -> ScoringBreakdown:
        """Compute points for the current match.

        Returns
        -------
        ScoringBreakdown
            Artifact, motif, leave, park, and total points.
        """
        return calculate_total_points(self.snapshot())

    def _on_clock_change(self, snapshot: ClockSnapshot) -> None:
        """Forward clock changes to the session log.

        Parameters
        ----------
        snapshot : ClockSnapshot
            Clock state after the change.
        """
        if self.debugger:
            self.debugger.log_clock(
                snapshot.elapsed_ms, snapshot.mode.value, snapshot.phase.value, snapshot.is_running
            )

    def _log_event(self, event_type: str, description: str) -> None:
        """Write a recorder event to the session log when one is attached.

        Parameters
        ----------
        event_type : str
            Short label such as ``"cycle"``.
        description : str
            Human-readable summary.
        """
        if self.debugger:
            self.debugger.log_match_event(self.clock.elapsed_ms, event_type, description)
