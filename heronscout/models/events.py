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
"""Event domain models recorded during a match."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Union

from heronscout.engine.config import RECORDER_CONFIG
from heronscout.errors import ValidationError


class Phase(str, Enum):
    """Named segment of a structured match."""

    IDLE = "idle"
    AUTO = "auto"
    BUFFER = "buffer"
    TELEOP = "teleop"
    FINISHED = "finished"


def _check_timestamp(timestamp_ms: int) -> None:
    """Reject negative, oversized, or non-integer event timestamps.

    Parameters
    ----------
    timestamp_ms : int
        Milliseconds since the match started.
    """
    if isinstance(timestamp_ms, bool) or not isinstance(timestamp_ms, int):
        raise ValidationError(f"timestamp must be an integer number of milliseconds, got {timestamp_ms!r}")
    if timestamp_ms < 0:
        raise ValidationError(f"timestamp must be >= 0, got {timestamp_ms}")
    limit = RECORDER_CONFIG.codec.max_timestamp_ms
    if timestamp_ms > limit:
        raise ValidationError(f"timestamp must be <= {limit}, got {timestamp_ms}")


@dataclass(frozen=True)
class CycleEvent:
    """One attempt-and-score action.

    Parameters
    ----------
    timestamp_ms : int
        Milliseconds elapsed since the match started.
    attempted : int
        Artifacts launched in the cycle, between 1 and 3.
    scored : int
        Artifacts that went in, between 0 and ``attempted``.
    phase : Phase | None, optional
        Structured phase the cycle happened in; ``None`` in free-run mode.
    """

    kind: ClassVar[str] = "cycle"

    timestamp_ms: int
    attempted: int
    scored: int
    phase: Optional[Phase] = None

    def __post_init__(self) -> None:
        """Enforce ``0 <= scored <= attempted <= 3`` with at least one attempt."""
        _check_timestamp(self.timestamp_ms)
        max_attempted = RECORDER_CONFIG.codec.max_attempted
        for name in ("attempted", "scored"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"{name} must be an integer, got {value!r}")
        if not 1 <= self.attempted <= max_attempted:
            raise ValidationError(f"attempted must be between 1 and {max_attempted}, got {self.attempted}")
        if not 0 <= self.scored <= self.attempted:
            raise ValidationError(f"scored must be between 0 and {self.attempted}, got {self.scored}")

    @property
    def missed(self) -> int:
        """Return how many attempted artifacts did not score."""
        return self.attempted - self.scored


@dataclass(frozen=True)
class GateEvent:
    """Moment the field gate was opened; also resets the cycle-time baseline.

    Parameters
    ----------
    timestamp_ms : int
        Milliseconds elapsed since the match started.
    phase : Phase | None, optional
        Structured phase the gate opened in; ``None`` in free-run mode.
    """

    kind: ClassVar[str] = "gate"

    timestamp_ms: int
    phase: Optional[Phase] = None

    def __post_init__(self) -> None:
        """Reject negative timestamps."""
        _check_timestamp(self.timestamp_ms)


MatchEvent = Union[CycleEvent, GateEvent]


@dataclass(frozen=True)
class LegacyInfo:
    """Sentinel produced when decoding text that carries no version tag.

    It is never part of a match's event log; consumers filter it out.

    Parameters
    ----------
    team_number : str
        Team number read from the second prefix field, or ``""``.
    version : str, optional
        Format label, always ``"text_v1"`` for unversioned prefixes.
    timestamp_ms : int, optional
        Always zero.
    """

    kind: ClassVar[str] = "info"

    team_number: str
    version: str = RECORDER_CONFIG.codec.text_v1_version
    timestamp_ms: int = 0
