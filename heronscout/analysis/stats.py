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
"""Cycle-time, accuracy, and distribution statistics over recorded matches."""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Union

from heronscout.analysis.scoring import calculate_total_points
from heronscout.engine.config import RECORDER_CONFIG
from heronscout.models.events import CycleEvent
from heronscout.models.match import Match


@dataclass(frozen=True)
class BasicStats:
    """Summary of a series of numbers.

    Parameters
    ----------
    avg : float
        Arithmetic mean.
    std : float
        Population standard deviation.
    min : float
        Smallest value.
    max : float
        Largest value.
    """

    avg: float = 0.0
    std: float = 0.0
    min: float = 0.0
    max: float = 0.0


@dataclass(frozen=True)
class BoxPlotSummary:
    """Five-number summary used to draw box plots.

    Parameters
    ----------
    minimum : float
        Smallest value.
    q1 : float
        First quartile.
    median : float
        Median.
    q3 : float
        Third quartile.
    maximum : float
        Largest value.
    """

    minimum: float = 0.0
    q1: float = 0.0
    median: float = 0.0
    q3: float = 0.0
    maximum: float = 0.0


@dataclass(frozen=True)
class TeamSummary:
    """Aggregate performance of one team across a set of matches.

    Parameters
    ----------
    team : str
        Team number.
    scores : List[Optional[int]]
        Artifacts scored per match in chronological order; ``None`` where
        the match belongs to another team.
    median : float
        Median artifacts scored per match.
    avg : float
        Mean artifacts scored per match.
    total_scored : int
        Artifacts scored across all of the team's matches.
    total_balls : int
        Artifacts attempted across all of the team's matches.
    accuracy : float
        Overall accuracy percentage.
    avg_points : float
        Mean points over full-length matches only.
    full_match_count : int
        Number of full-length matches contributing to ``avg_points``.
    """

    team: str
    scores: List[Optional[int]]
    median: float
    avg: float
    total_scored: int
    total_balls: int
    accuracy: float
    avg_points: float
    full_match_count: int


def _cycle_times_for_match(match: Match) -> List[float]:
    """Return cycle times in seconds for a single match.

    Parameters
    ----------
    match : Match
        Match whose events are walked in recording order.

    Returns
    -------
    List[float]
        Positive gaps before each cycle, measured from the previous event of any kind.
    """
    times: List[float] = []
    last_event_ms = 0
    for event in match.events:
        if isinstance(event, CycleEvent):
            delta = event.timestamp_ms - last_event_ms
            if delta > 0:
                times.append(delta / 1000)
        last_event_ms = event.timestamp_ms
    return times


def cycle_times(matches: Union[Match, Iterable[Match]]) -> List[float]:
    """Compute cycle times without ever spanning two matches.

    The baseline starts at zero for each match and advances on every event,
    so a gate opening also resets it. Zero and negative gaps are dropped.

    Parameters
    ----------
    matches : Match | Iterable[Match]
        One match or several.

    Returns
    -------
    List[float]
        Cycle times in seconds.
    """
    if isinstance(matches, Match):
        return _cycle_times_for_match(matches)
    times: List[float] = []
    for match in matches:
        times.extend(_cycle_times_for_match(match))
    return times


def basic_stats(values: Sequence[float]) -> BasicStats:
    """Compute mean, population standard deviation, minimum, and maximum.

    Parameters
    ----------
    values : Sequence[float]
        Numbers to summarise.

    Returns
    -------
    BasicStats
        All zero for an empty input.
    """
    if not values:
        return BasicStats()
    count = len(values)
    avg = sum(values) / count
    variance = sum((value - avg) ** 2 for value in values) / count
    return BasicStats(avg=avg, std=math.sqrt(variance), min=min(values), max=max(values))


def accuracy(scored: int, attempted: int) -> float:
    """Return ``scored / attempted`` as a percentage.

    Parameters
    ----------
    scored : int
        Artifacts scored.
    attempted : int
        Artifacts attempted.

    Returns
    -------
    float
        Percentage, or zero when nothing was attempted.
    """
    if attempted <= 0:
        return 0.0
    return scored / attempted * 100


def accuracy_per_cycle(match: Match) -> List[float]:
    """Return each cycle's accuracy percentage in recording order.

    Parameters
    ----------
    match : Match
        Recorded match.

    Returns
    -------
    List[float]
        One percentage per cycle.
    """
    return [accuracy(cycle.scored, cycle.attempted) for cycle in match.cycles()]


def scored_out_of_total(match: Match) -> Dict[str, int]:
    """Return artifacts scored and attempted across the match.

    Parameters
    ----------
    match : Match
        Recorded match.

    Returns
    -------
    Dict[str, int]
        ``{"scored": ..., "total": ...}``.
    """
    cycles = match.cycles()
    return {
        "scored": sum(cycle.scored for cycle in cycles),
        "total": sum(cycle.attempted for cycle in cycles),
    }


def quantile(sorted_values: Sequence[float], q: float) -> float:
    """Linearly interpolated quantile of already-sorted values.

    Parameters
    ----------
    sorted_values : Sequence[float]
        Values in ascending order.
    q : float
        Quantile between 0 and 1.

    Returns
    -------
    float
        Interpolated value, or zero for an empty input.
    """
    if not sorted_values:
        return 0.0
    idx = (len(sorted_values) - 1) * q
    lo = math.floor(idx)
    hi = math.ceil(idx)
    if lo == hi:
        return float(sorted_values[lo])
    frac = idx - lo
    return sorted_values[lo] * (1 - frac) + sorted_values[hi] * frac


def box_plot_summary(values: Iterable[float]) -> BoxPlotSummary:
    """Compute the five-number summary of ``values``.

    Parameters
    ----------
    values : Iterable[float]
        Unsorted numbers.

    Returns
    -------
    BoxPlotSummary
        All zero for an empty input.
    """
    ordered = sorted(values)
    if not ordered:
        return BoxPlotSummary()
    return BoxPlotSummary(
        minimum=float(ordered[0]),
        q1=quantile(ordered, 0.25),
        median=quantile(ordered, 0.5),
        q3=quantile(ordered, 0.75),
        maximum=float(ordered[-1]),
    )


def _round(value: float, digits: int = 3) -> float:
    """Round for export, mapping non-finite values to zero.

    Parameters
    ----------
    value : float
        Number to round.
    digits : int, optional
        Decimal places to keep.

    Returns
    -------
    float
        Rounded value.
    """
    if not math.isfinite(value):
        return 0.0
    return round(value, digits)


def match_summary(match: Match) -> Dict[str, Union[int, float, str, None]]:
    """Flatten one match into a row of per-match statistics for export.

    Parameters
    ----------
    match : Match
        Recorded match.

    Returns
    -------
    Dict[str, int | float | str | None]
        Totals, overall accuracy, and cycle-time, balls-per-cycle, and
        accuracy-per-cycle statistics rounded to three decimals.
    """
    cycles = match.cycles()
    totals = scored_out_of_total(match)
    rows: Dict[str, Union[int, float, str, None]] = {
        "team_number": match.metadata.team_number or "",
        "start_time_ms": match.metadata.start_time_ms,
        "duration_s": match.metadata.duration_seconds,
        "notes": match.metadata.notes or "",
        "total_cycles": len(cycles),
        "total_scored": totals["scored"],
        "total_balls": totals["total"],
        "overall_accuracy_percent": _round(accuracy(totals["scored"], totals["total"])),
    }
    series = {
        "cycle_time": (cycle_times(match), "_s"),
        "balls_scored_per_cycle": ([float(cycle.scored) for cycle in cycles], ""),
        "accuracy_per_cycle": (accuracy_per_cycle(match), "_percent"),
    }
    for name, (values, unit) in series.items():
        stats = basic_stats(values)
        for field_name in ("avg", "std", "min", "max"):
            rows[f"{name}_{field_name}{unit}"] = _round(getattr(stats, field_name))
    return rows


def _median(values: Sequence[float]) -> float:
    """Return the median of ``values`` (zero when empty).

    Parameters
    ----------
    values : Sequence[float]
        Numbers in any order.

    Returns
    -------
    float
        Median value.
    """
    ordered = sorted(values)
    if not ordered:
        return 0.0
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return float(ordered[mid])
    return (ordered[mid - 1] + ordered[mid]) / 2


def is_full_match(match: Match) -> bool:
    """Return whether a match's duration is close to a full structured match.

    Parameters
    ----------
    match : Match
        Recorded match.

    Returns
    -------
    bool
        ``True`` when the duration is within the configured tolerance of 158 s.
    """
    duration = match.metadata.duration_seconds
    if not duration:
        return False
    full = RECORDER_CONFIG.phases.match_total_duration
    return abs(duration - full) <= RECORDER_CONFIG.scoring.full_match_tolerance


def team_summaries(matches: Sequence[Match]) -> List[TeamSummary]:
    """Aggregate matches per team, strongest median first.

    Matches are ordered by start time (falling back to the first event's
    timestamp). Average points only count full-length matches.

    Parameters
    ----------
    matches : Sequence[Match]
        Matches from one tournament.

    Returns
    -------
    List[TeamSummary]
        One summary per team number seen, sorted by median descending.
    """

    def match_time(match: Match) -> int:
        if match.metadata.start_time_ms:
            return match.metadata.start_time_ms
        return match.events[0].timestamp_ms if match.events else 0

    ordered = sorted(matches, key=match_time)
    by_team: Dict[str, List[Match]] = defaultdict(list)
    for match in ordered:
        team = (match.metadata.team_number or "").strip()
        if team:
            by_team[team].append(match)

    summaries: List[TeamSummary] = []
    for team, team_matches in by_team.items():
        scores: List[Optional[int]] = []
        for match in ordered:
            if (match.metadata.team_number or "").strip() == team:
                scores.append(scored_out_of_total(match)["scored"])
            else:
                scores.append(None)
        numeric = [score for score in scores if score is not None]
        total_scored = sum(numeric)
        total_balls = sum(scored_out_of_total(match)["total"] for match in team_matches)
        points = [calculate_total_points(match).total for match in team_matches if is_full_match(match)]
        summaries.append(
            TeamSummary(
                team=team,
                scores=scores,
                median=_median(numeric),
                avg=total_scored / len(numeric) if numeric else 0.0,
                total_scored=total_scored,
                total_balls=total_balls,
                accuracy=accuracy(total_scored, total_balls),
                avg_points=sum(points) / len(points) if points else 0.0,
                full_match_count=len(points),
            )
        )
    summaries.sort(key=lambda summary: summary.median, reverse=True)
    return summaries
