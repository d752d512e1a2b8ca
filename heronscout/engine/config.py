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
"""Central configuration for match timing, codec, and scoring constants."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(slots=True)
class PhaseConfig:
    """Durations of the structured match phases.

    Parameters
    ----------
    auto_duration : int, default=30
        Length of the autonomous period in seconds.
    buffer_duration : int, default=8
        Transition gap between autonomous and driver control in seconds.
    teleop_duration : int, default=120
        Length of the driver-controlled period in seconds.
    """

    auto_duration: int = 30
    buffer_duration: int = 8
    teleop_duration: int = 120

    @property
    def auto_end(self) -> int:
        """Return the second at which the buffer phase begins."""
        return self.auto_duration

    @property
    def buffer_end(self) -> int:
        """Return the second at which teleop begins."""
        return self.auto_duration + self.buffer_duration

    @property
    def match_total_duration(self) -> int:
        """Return the full structured match length in seconds."""
        return self.auto_duration + self.buffer_duration + self.teleop_duration


@dataclass(slots=True)
class ClockConfig:
    """Polling cadence for the recorder loop.

    Parameters
    ----------
    tick_interval : float, default=0.1
        Seconds slept between clock ticks while recording.
    """

    tick_interval: float = 0.1  # 10Hz


@dataclass(slots=True)
class CodecConfig:
    """Tokens and sentinels of the shareable match text format.

    Parameters
    ----------
    current_version : str, default="hmadv2"
        Version tag every encoder emits (start time in epoch milliseconds).
    legacy_version : str, default="hmadv1"
        Older tag whose start time field is in epoch seconds.
    text_v1_version : str, default="text_v1"
        Label attached to the sentinel produced for unversioned prefixes.
    prefix_separator : str, default=";;"
        Two-character marker splitting the prefix from the event body.
    segment_separator : str, default=";"
        Delimiter between body segments.
    field_separator : str, default="/"
        Delimiter between prefix fields.
    empty_notes : str, default=" "
        Placeholder encoded in place of absent notes.
    max_attempted : int, default=3
        Highest number of artifacts a single cycle may attempt.
    max_timestamp_ms : int, default=4294967295
        Largest event timestamp accepted, the unsigned 32-bit limit.
    """

    current_version: str = "hmadv2"
    legacy_version: str = "hmadv1"
    text_v1_version: str = "text_v1"
    prefix_separator: str = ";;"
    segment_separator: str = ";"
    field_separator: str = "/"
    empty_notes: str = " "
    max_attempted: int = 3
    max_timestamp_ms: int = 2**32 - 1


@dataclass(slots=True)
class ScoringConfig:
    """Point values for the DECODE season scoring rules.

    Parameters
    ----------
    artifact_points : int, default=3
        Points per artifact scored.
    motif_match_points : int, default=2
        Points per pattern slot matching the motif target.
    leave_points : int, default=3
        Points for leaving the launch zone during autonomous.
    park_partial_points : int, default=5
        Points for a partial park at the end of the match.
    park_full_points : int, default=10
        Points for a full park at the end of the match.
    motif_length : int, default=3
        Number of symbols in a motif.
    motif_repeats : int, default=3
        Times the motif repeats to form the target pattern.
    pattern_alphabet : Tuple[str, ...], default=("P", "G")
        Symbols allowed in motifs and patterns (purple and green).
    full_match_tolerance : int, default=10
        Seconds a recorded duration may differ from a full match and still count as one.
    """

    artifact_points: int = 3
    motif_match_points: int = 2
    leave_points: int = 3
    park_partial_points: int = 5
    park_full_points: int = 10
    motif_length: int = 3
    motif_repeats: int = 3
    pattern_alphabet: Tuple[str, ...] = ("P", "G")
    full_match_tolerance: int = 10

    @property
    def pattern_length(self) -> int:
        """Return the number of slots in the target pattern."""
        return self.motif_length * self.motif_repeats


@dataclass(slots=True)
class RecorderConfig:
    """Aggregate configuration for every scouting subsystem.

    Parameters
    ----------
    phases : PhaseConfig
        Structured match phase durations.
    clock : ClockConfig
        Polling cadence for the recorder loop.
    codec : CodecConfig
        Shareable text format tokens.
    scoring : ScoringConfig
        Season point values.
    """

    phases: PhaseConfig = field(default_factory=PhaseConfig)
    clock: ClockConfig = field(default_factory=ClockConfig)
    codec: CodecConfig = field(default_factory=CodecConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)


RECORDER_CONFIG = RecorderConfig()
