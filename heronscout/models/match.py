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
"""Match, metadata, and scoring-input domain models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional

from heronscout.engine.config import RECORDER_CONFIG
from heronscout.models.events import CycleEvent, GateEvent, MatchEvent, Phase


class FormatVersion(str, Enum):
    """Version of the shareable text format a match was read from."""

    V1 = "hmadv1"
    V2 = "hmadv2"


class ParkStatus(str, Enum):
    """How far the robot parked at the end of teleop."""

    NONE = "none"
    PARTIAL = "partial"
    FULL = "full"

    @classmethod
    def parse(cls, value: object) -> "ParkStatus":
        """Map loose input (``None``, strings of any case) onto a park status.

        Parameters
        ----------
        value : object
            Raw value from a form field or JSON payload.

        Returns
        -------
        ParkStatus
            The matching member, or ``NONE`` for anything unrecognised.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "none").strip().lower())
        except ValueError:
            return cls.NONE


@dataclass
class ScoringInputs:
    """Driver-entered fields that feed the points calculator.

    Patterns are expected to be normalised at the input boundary (see
    :func:`heronscout.analysis.scoring.normalize_pattern`).

    Parameters
    ----------
    motif : str | None
        Three-symbol motif over ``P``/``G`` revealed for the match.
    auto_pattern : str
        Ramp pattern at the end of autonomous, up to nine symbols.
    teleop_pattern : str
        Ramp pattern at the end of teleop, up to nine symbols.
    auto_leave : bool
        Whether the robot left the launch zone in autonomous.
    teleop_park : ParkStatus
        Parking result at the end of the match.
    """

    motif: Optional[str] = None
    auto_pattern: str = ""
    teleop_pattern: str = ""
    auto_leave: bool = False
    teleop_park: ParkStatus = ParkStatus.NONE


@dataclass
class MatchMetadata:
    """Descriptive fields carried alongside the event log.

    Parameters
    ----------
    team_number : str | None
        Scouted team's number, if known.
    notes : str | None
        Free-form scouting notes; any UTF-8 text. ``None`` is stored as ``""``.
    start_time_ms : int | None
        Wall-clock match start in epoch milliseconds.
    duration_seconds : int | None
        Configured timer or recorded length of the match.
    format_version : FormatVersion
        Text format version the match was decoded from (``V2`` for new matches).
    """

    team_number: Optional[str] = None
    notes: Optional[str] = ""
    start_time_ms: Optional[int] = None
    duration_seconds: Optional[int] = None
    format_version: FormatVersion = FormatVersion.V2

    def __post_init__(self) -> None:
        """Store missing notes as an empty string."""
        if self.notes is None:
            self.notes = ""


@dataclass
class Match:
    """Metadata plus the ordered event log of a single recorded match.

    Insertion order is recording order. Events are immutable; the log only
    grows at the tail or is truncated from it.

    Parameters
    ----------
    metadata : MatchMetadata
        Team, notes, and timing fields.
    events : List[MatchEvent]
        Recorded cycles and gate openings in recording order.
    scoring : ScoringInputs
        Motif, ramp patterns, leave, and park fields.
    """

    metadata: MatchMetadata = field(default_factory=MatchMetadata)
    events: List[MatchEvent] = field(default_factory=list)
    scoring: ScoringInputs = field(default_factory=ScoringInputs)

    def append_cycle(
        self, attempted: int, scored: int, timestamp_ms: int, phase: Optional[Phase] = None
    ) -> CycleEvent:
        """Record a cycle at the end of the log.

        Parameters
        ----------
        attempted : int
            Artifacts launched, between 1 and 3.
        scored : int
            Artifacts scored, between 0 and ``attempted``.
        timestamp_ms : int
            Milliseconds since the match started.
        phase : Phase | None, optional
            Structured phase to tag the cycle with.

        Returns
        -------
        CycleEvent
            The appended event.

        Raises
        ------
        ValidationError
            If the counts or timestamp break the cycle invariants.
        """
        event = CycleEvent(timestamp_ms=timestamp_ms, attempted=attempted, scored=scored, phase=phase)
        self.events.append(event)
        return event

    def append_gate(self, timestamp_ms: int, phase: Optional[Phase] = None) -> GateEvent:
        """Record a gate opening at the end of the log.

        Parameters
        ----------
        timestamp_ms : int
            Milliseconds since the match started; negative values clamp to zero
            and values past the timestamp limit clamp to the limit.
        phase : Phase | None, optional
            Structured phase to tag the gate with.

        Returns
        -------
        GateEvent
            The appended event.
        """
        limit = RECORDER_CONFIG.codec.max_timestamp_ms
        event = GateEvent(timestamp_ms=min(max(0, int(timestamp_ms)), limit), phase=phase)
        self.events.append(event)
        return event

    def undo_last(self) -> Optional[MatchEvent]:
        """Drop the most recent event, if any.

        Returns
        -------
        MatchEvent | None
            The removed event, or ``None`` when the log was already empty.
        """
        if not self.events:
            return None
        return self.events.pop()

    def cycles(self) -> List[CycleEvent]:
        """Return only the cycle events, in recording order.

        Returns
        -------
        List[CycleEvent]
            Cycle events of this match.
        """
        return [e for e in self.events if isinstance(e, CycleEvent)]

    def gates(self) -> List[GateEvent]:
        """Return only the gate events, in recording order.

        Returns
        -------
        List[GateEvent]
            Gate events of this match.
        """
        return [e for e in self.events if isinstance(e, GateEvent)]

    def events_in_phase(self, phase: Optional[Phase]) -> List[MatchEvent]:
        """Return the events tagged with ``phase`` (``None`` selects untagged events).

        Parameters
        ----------
        phase : Phase | None
            Phase to filter on.

        Returns
        -------
        List[MatchEvent]
            Matching events in recording order.
        """
        return [e for e in self.events if e.phase == phase]

    @property
    def last_timestamp_ms(self) -> int:
        """Return the timestamp of the final event, or zero for an empty log."""
        return self.events[-1].timestamp_ms if self.events else 0

    def copy(self) -> "Match":
        """Return an independent snapshot of this match.

        Returns
        -------
        Match
            A new match sharing no mutable state with this one.
        """
        return Match(
            metadata=replace(self.metadata),
            events=list(self.events),
            scoring=replace(self.scoring),
        )
