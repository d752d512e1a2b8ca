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
"""Tests for cycle-time and accuracy statistics."""

import math

import pytest

from heronscout.analysis.stats import (
    BasicStats,
    BoxPlotSummary,
    accuracy,
    accuracy_per_cycle,
    basic_stats,
    box_plot_summary,
    cycle_times,
    is_full_match,
    match_summary,
    quantile,
    scored_out_of_total,
    team_summaries,
)
from heronscout.models.match import Match, MatchMetadata, ScoringInputs


def _match(team: str, start_ms: int, cycles, duration_s: int = 158) -> Match:
    match = Match(metadata=MatchMetadata(team_number=team, start_time_ms=start_ms, duration_seconds=duration_s))
    for timestamp, attempted, scored in cycles:
        match.append_cycle(attempted, scored, timestamp)
    return match


class TestCycleTimes:
    """Gaps between events that end in a cycle."""

    def test_gate_resets_baseline(self) -> None:
        """A gate opening restarts the cycle timer."""
        match = Match()
        match.append_gate(1_000)
        match.append_cycle(1, 1, 3_000)
        assert cycle_times(match) == [2.0]

    def test_first_cycle_measured_from_zero(self) -> None:
        """The baseline starts at the beginning of each match."""
        match = Match()
        match.append_cycle(1, 1, 4_500)
        match.append_cycle(2, 1, 9_000)
        assert cycle_times(match) == [4.5, 4.5]

    def test_never_spans_matches(self) -> None:
        """Each match starts its own baseline."""
        first = _match("1", 0, [(10_000, 1, 1)])
        second = _match("1", 0, [(3_000, 1, 1)])
        assert cycle_times([first, second]) == [10.0, 3.0]

    def test_non_positive_gaps_dropped(self) -> None:
        """Duplicate or out-of-order timestamps never yield a cycle time."""
        match = Match()
        match.append_cycle(1, 1, 5_000)
        match.append_cycle(1, 1, 5_000)
        match.append_cycle(1, 1, 4_000)
        match.append_cycle(1, 1, 6_000)
        assert cycle_times(match) == [5.0, 2.0]


class TestBasicStats:
    """Summary statistics."""

    def test_empty_is_all_zero(self) -> None:
        """Empty input never raises or produces NaN."""
        stats = basic_stats([])
        assert stats == BasicStats(avg=0, std=0, min=0, max=0)
        assert not any(math.isnan(value) for value in (stats.avg, stats.std, stats.min, stats.max))

    def test_population_std(self) -> None:
        """Standard deviation divides by the count, not count minus one."""
        stats = basic_stats([2, 4, 4, 4, 5, 5, 7, 9])
        assert stats.avg == 5
        assert stats.std == pytest.approx(2.0)
        assert stats.min == 2
        assert stats.max == 9

    def test_accuracy(self) -> None:
        """Accuracy is a percentage and zero for nothing attempted."""
        assert accuracy(1, 2) == 50.0
        assert accuracy(0, 0) == 0.0

    def test_accuracy_per_cycle_and_totals(self) -> None:
        """Per-cycle accuracy and match totals follow the cycles."""
        match = _match("1", 0, [(1_000, 2, 1), (2_000, 3, 3)])
        match.append_gate(2_500)
        assert accuracy_per_cycle(match) == [50.0, 100.0]
        assert scored_out_of_total(match) == {"scored": 4, "total": 5}


class TestDistributions:
    """Quantiles and box plot summaries."""

    def test_quantile_interpolates(self) -> None:
        """Quantiles interpolate linearly between neighbours."""
        values = [1.0, 2.0, 3.0, 4.0]
        assert quantile(values, 0.5) == pytest.approx(2.5)
        assert quantile(values, 0.25) == pytest.approx(1.75)
        assert quantile(values, 1.0) == 4.0
        assert quantile([], 0.5) == 0.0

    def test_box_plot_summary(self) -> None:
        """Values are sorted before summarising."""
        summary = box_plot_summary([5, 1, 3])
        assert summary == BoxPlotSummary(minimum=1.0, q1=2.0, median=3.0, q3=4.0, maximum=5.0)
        assert box_plot_summary([]) == BoxPlotSummary()


class TestMatchAndTeamSummaries:
    """Per-match rows and per-team aggregates."""

    def test_match_summary_row(self) -> None:
        """A match flattens into rounded statistics."""
        match = _match("118", 1_000, [(3_000, 3, 2), (6_000, 1, 1)])
        row = match_summary(match)
        assert row["team_number"] == "118"
        assert row["total_cycles"] == 2
        assert row["total_scored"] == 3
        assert row["total_balls"] == 4
        assert row["overall_accuracy_percent"] == 75.0
        assert row["cycle_time_avg_s"] == 3.0
        assert row["balls_scored_per_cycle_max"] == 2.0
        assert row["accuracy_per_cycle_min_percent"] == 66.667

    def test_full_match_tolerance(self) -> None:
        """Durations within ten seconds of 158 count as full matches."""
        assert is_full_match(_match("1", 0, [], duration_s=150))
        assert not is_full_match(_match("1", 0, [], duration_s=120))
        assert not is_full_match(Match())

    def test_team_summaries(self) -> None:
        """Teams aggregate in start order and sort by median."""
        matches = [
            _match("200", 3_000, [(1_000, 3, 3)]),
            _match("100", 1_000, [(1_000, 3, 1)]),
            _match("100", 2_000, [(1_000, 3, 2)], duration_s=60),
            _match("", 4_000, [(1_000, 3, 3)]),
        ]
        matches[0].scoring = ScoringInputs(auto_leave=True)

        summaries = team_summaries(matches)

        assert [s.team for s in summaries] == ["200", "100"]
        strong, weak = summaries
        assert strong.scores == [None, None, 3, None]
        assert strong.avg_points == 12.0
        assert weak.scores == [1, 2, None, None]
        assert weak.median == 1.5
        assert weak.total_balls == 6
        assert weak.accuracy == 50.0
        assert weak.full_match_count == 1
        assert weak.avg_points == 3.0
