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
"""Points calculator for the DECODE season.

Artifacts score three points each. The ramp patterns entered at the end of
autonomous and teleop are compared slot by slot against the motif repeated
three times, two points per matching slot. Leaving the launch zone and
parking add fixed bonuses.

Pattern text is cleaned with :func:`normalize_pattern` where it enters the
system (recorder setters, JSON import). The calculators below expect clean
input and reject anything outside the ``P``/``G`` alphabet.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from heronscout.engine.config import RECORDER_CONFIG
from heronscout.errors import ValidationError
from heronscout.models.match import Match, ParkStatus, ScoringInputs

_NOT_PATTERN_RE = re.compile(r"[^PG]")


@dataclass(frozen=True)
class MotifPoints:
    """Motif points split by period.

    Parameters
    ----------
    auto : int
        Points from the autonomous ramp pattern.
    teleop : int
        Points from the teleop ramp pattern.
    total : int
        Sum of both periods.
    """

    auto: int = 0
    teleop: int = 0
    total: int = 0


@dataclass(frozen=True)
class ScoringBreakdown:
    """Derived points for one match.

    Parameters
    ----------
    artifact : int
        Points from scored artifacts.
    motif : MotifPoints
        Points from ramp patterns.
    leave : int
        Autonomous leave bonus.
    park : int
        End-of-match park bonus.
    total : int
        Sum of every component.
    """

    artifact: int
    motif: MotifPoints
    leave: int
    park: int
    total: int


def normalize_pattern(pattern: Optional[str]) -> str:
    """Clean raw pattern input: uppercase and drop anything but ``P``/``G``.

    Parameters
    ----------
    pattern : str | None
        Text typed by the scout, e.g. ``"gpp gppg"``.

    Returns
    -------
    str
        Clean pattern, truncated to the target length.
    """
    if not pattern:
        return ""
    cleaned = _NOT_PATTERN_RE.sub("", str(pattern).upper())
    return cleaned[: RECORDER_CONFIG.scoring.pattern_length]


def normalize_motif(motif: Optional[str]) -> Optional[str]:
    """Clean a motif, returning ``None`` unless exactly three symbols remain.

    Parameters
    ----------
    motif : str | None
        Raw motif text.

    Returns
    -------
    str | None
        Clean motif such as ``"GPP"``, or ``None``.
    """
    if not motif:
        return None
    cleaned = _NOT_PATTERN_RE.sub("", str(motif).upper())
    return cleaned if len(cleaned) == RECORDER_CONFIG.scoring.motif_length else None


def is_valid_pattern(pattern: Optional[str]) -> bool:
    """Return whether a pattern contains only ``P``/``G`` (any case).

    Parameters
    ----------
    pattern : str | None
        Pattern text; empty and ``None`` are valid.

    Returns
    -------
    bool
        ``True`` when every character is ``P`` or ``G``.
    """
    if not pattern:
        return True
    return _NOT_PATTERN_RE.search(pattern.upper()) is None


def _require_clean(value: str, label: str) -> None:
    """Raise when ``value`` has characters outside the pattern alphabet.

    Parameters
    ----------
    value : str
        Pattern or motif text.
    label : str
        Name used in the error message.
    """
    bad = sorted(set(_NOT_PATTERN_RE.findall(value)))
    if bad:
        raise ValidationError(f"{label} may only contain P and G, found {''.join(bad)!r}")


def target_pattern(motif: Optional[str]) -> str:
    """Repeat a motif to form the nine-slot target.

    Parameters
    ----------
    motif : str | None
        Three-symbol motif.

    Returns
    -------
    str
        Target such as ``"GPPGPPGPP"``, or ``""`` when the motif is absent or not three symbols.
    """
    scoring = RECORDER_CONFIG.scoring
    if not motif or len(motif) != scoring.motif_length:
        return ""
    return motif * scoring.motif_repeats


def motif_matches(pattern: Optional[str], motif: Optional[str]) -> int:
    """Count slots where ``pattern`` agrees with the motif target.

    Parameters
    ----------
    pattern : str | None
        Clean ramp pattern, up to nine symbols.
    motif : str | None
        Clean three-symbol motif.

    Returns
    -------
    int
        Matching positions over ``min(len(pattern), 9)`` slots.

    Raises
    ------
    ValidationError
        If either argument contains characters other than ``P`` and ``G``.
    """
    if not pattern or not motif:
        return 0
    _require_clean(pattern, "pattern")
    _require_clean(motif, "motif")
    target = target_pattern(motif)
    return sum(1 for actual, expected in zip(pattern, target) if actual == expected)


def calculate_artifact_points(match: Match) -> int:
    """Return three points per artifact scored across every cycle.

    Parameters
    ----------
    match : Match
        Recorded match.

    Returns
    -------
    int
        Artifact points.
    """
    return sum(cycle.scored for cycle in match.cycles()) * RECORDER_CONFIG.scoring.artifact_points


def calculate_motif_points(inputs: ScoringInputs) -> MotifPoints:
    """Score the autonomous and teleop ramp patterns against the motif.

    Parameters
    ----------
    inputs : ScoringInputs
        Motif and patterns; all points are zero without a motif.

    Returns
    -------
    MotifPoints
        Per-period and total motif points.
    """
    if not inputs.motif:
        return MotifPoints()
    per_match = RECORDER_CONFIG.scoring.motif_match_points
    auto = motif_matches(inputs.auto_pattern, inputs.motif) * per_match
    teleop = motif_matches(inputs.teleop_pattern, inputs.motif) * per_match
    return MotifPoints(auto=auto, teleop=teleop, total=auto + teleop)


def calculate_leave_points(inputs: ScoringInputs) -> int:
    """Return the leave bonus.

    Parameters
    ----------
    inputs : ScoringInputs
        Scoring fields of the match.

    Returns
    -------
    int
        Three when the robot left in autonomous, otherwise zero.
    """
    return RECORDER_CONFIG.scoring.leave_points if inputs.auto_leave else 0


def calculate_park_points(inputs: ScoringInputs) -> int:
    """Return the park bonus.

    Parameters
    ----------
    inputs : ScoringInputs
        Scoring fields of the match.

    Returns
    -------
    int
        Five for a partial park, ten for a full park, otherwise zero.
    """
    scoring = RECORDER_CONFIG.scoring
    park = ParkStatus.parse(inputs.teleop_park)
    if park == ParkStatus.PARTIAL:
        return scoring.park_partial_points
    if park == ParkStatus.FULL:
        return scoring.park_full_points
    return 0


def calculate_total_points(match: Match, inputs: Optional[ScoringInputs] = None) -> ScoringBreakdown:
    """Compute the full points breakdown for a match.

    Parameters
    ----------
    match : Match
        Recorded match supplying the cycle events.
    inputs : ScoringInputs | None, optional
        Scoring fields to use instead of ``match.scoring``.

    Returns
    -------
    ScoringBreakdown
        Artifact, motif, leave, park, and total points.
    """
    inputs = inputs if inputs is not None else match.scoring
    artifact = calculate_artifact_points(match)
    motif = calculate_motif_points(inputs)
    leave = calculate_leave_points(inputs)
    park = calculate_park_points(inputs)
    return ScoringBreakdown(
        artifact=artifact,
        motif=motif,
        leave=leave,
        park=park,
        total=artifact + motif.total + leave + park,
    )
