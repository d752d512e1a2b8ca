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
"""Tests for the DECODE points calculator."""

import pytest

from heronscout.analysis.scoring import (
    MotifPoints,
    calculate_artifact_points,
    calculate_leave_points,
    calculate_motif_points,
    calculate_park_points,
    calculate_total_points,
    is_valid_pattern,
    motif_matches,
    normalize_motif,
    normalize_pattern,
    target_pattern,
)
from heronscout.errors import ValidationError
from heronscout.models.match import Match, ParkStatus, ScoringInputs


class TestPatterns:
    """Pattern cleaning and motif comparison."""

    def test_target_pattern(self) -> None:
        """The motif repeats three times to fill nine slots."""
        assert target_pattern("GPP") == "GPPGPPGPP"
        assert target_pattern(None) == ""
        assert target_pattern("GP") == ""

    def test_normalize_pattern(self) -> None:
        """Input is uppercased, stripped to P/G, and truncated to nine."""
        assert normalize_pattern("GPP GPPG") == "GPPGPPG"
        assert normalize_pattern("g-p-p x") == "GPP"
        assert normalize_pattern("PGPGPGPGPGPG") == "PGPGPGPGP"
        assert normalize_pattern(None) == ""

    def test_normalize_motif(self) -> None:
        """Only three-symbol motifs survive cleaning."""
        assert normalize_motif(" pgp ") == "PGP"
        assert normalize_motif("PG") is None
        assert normalize_motif("") is None

    def test_is_valid_pattern(self) -> None:
        """Validity ignores case but not foreign characters."""
        assert is_valid_pattern("gpPG")
        assert is_valid_pattern("")
        assert not is_valid_pattern("GPX")

    def test_motif_matches_counts_positions(self) -> None:
        """Seven of seven slots agree with the target."""
        assert motif_matches(normalize_pattern("GPP GPPG"), "GPP") == 7
        assert motif_matches("PPPPPPPPP", "GPP") == 6

    def test_empty_pattern_matches_nothing(self) -> None:
        """No pattern or no motif means no matches."""
        assert motif_matches("", "GPP") == 0
        assert motif_matches("GPP", None) == 0

    def test_unclean_pattern_rejected(self) -> None:
        """Raw input must be normalised before it reaches the calculator."""
        with pytest.raises(ValidationError):
            motif_matches("GPP GPPG", "GPP")
        with pytest.raises(ValidationError):
            motif_matches("GPP", "gpp")


class TestPoints:
    """Component and total points."""

    def test_motif_points(self) -> None:
        """Pattern ``GPPGPPG`` against motif ``GPP`` is worth 14 points."""
        inputs = ScoringInputs(motif="GPP", auto_pattern="GPPGPPG", teleop_pattern="")
        assert calculate_motif_points(inputs) == MotifPoints(auto=14, teleop=0, total=14)

    def test_motif_points_need_motif(self) -> None:
        """Without a motif the patterns score nothing."""
        inputs = ScoringInputs(motif=None, auto_pattern="GPPGPPGPP", teleop_pattern="GPPGPPGPP")
        assert calculate_motif_points(inputs) == MotifPoints()

    def test_artifact_points(self) -> None:
        """Every scored artifact is worth three points."""
        match = Match()
        match.append_cycle(3, 2, 1_000)
        match.append_gate(2_000)
        match.append_cycle(1, 1, 3_000)
        assert calculate_artifact_points(match) == 9

    def test_leave_and_park(self) -> None:
        """Leave is three points and parking five or ten."""
        assert calculate_leave_points(ScoringInputs(auto_leave=True)) == 3
        assert calculate_leave_points(ScoringInputs()) == 0
        assert calculate_park_points(ScoringInputs(teleop_park=ParkStatus.PARTIAL)) == 5
        assert calculate_park_points(ScoringInputs(teleop_park=ParkStatus.FULL)) == 10
        assert calculate_park_points(ScoringInputs()) == 0

    def test_total_points(self) -> None:
        """The total adds every component."""
        match = Match(
            scoring=ScoringInputs(
                motif="PGP",
                auto_pattern="PGP",
                teleop_pattern="PGPPGPPGP",
                auto_leave=True,
                teleop_park=ParkStatus.FULL,
            )
        )
        match.append_cycle(3, 3, 10_000)
        breakdown = calculate_total_points(match)
        assert breakdown.artifact == 9
        assert breakdown.motif == MotifPoints(auto=6, teleop=18, total=24)
        assert breakdown.leave == 3
        assert breakdown.park == 10
        assert breakdown.total == 46

    def test_inputs_override(self) -> None:
        """Explicit scoring inputs replace the match's own."""
        match = Match(scoring=ScoringInputs(auto_leave=True))
        assert calculate_total_points(match, ScoringInputs()).total == 0
