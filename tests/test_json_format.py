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
"""Tests for the JSON match mapping."""

import json
import logging

import pytest

from heronscout.codec.json_format import (
    dumps_match,
    event_from_json,
    event_to_json,
    loads_match,
    match_from_json,
    match_to_json,
)
from heronscout.models.events import CycleEvent, GateEvent, Phase
from heronscout.models.match import Match, MatchMetadata, ParkStatus, ScoringInputs


def _sample_match() -> Match:
    match = Match(
        metadata=MatchMetadata(team_number="118", notes="strong auto", start_time_ms=1_700_000_000_000, duration_seconds=158),
        scoring=ScoringInputs(
            motif="GPP",
            auto_pattern="GPPG",
            teleop_pattern="GPPGPPGPP",
            auto_leave=True,
            teleop_park=ParkStatus.PARTIAL,
        ),
    )
    match.append_cycle(3, 2, 4_000, Phase.AUTO)
    match.append_gate(45_000, Phase.TELEOP)
    return match


class TestSerialisation:
    """Match to JSON."""

    def test_event_shapes(self) -> None:
        """Cycles carry counts, tagged events carry their phase."""
        assert event_to_json(CycleEvent(timestamp_ms=1_000, attempted=2, scored=1)) == {
            "type": "cycle",
            "timestamp": 1_000,
            "total": 2,
            "scored": 1,
        }
        assert event_to_json(GateEvent(timestamp_ms=2_000, phase=Phase.BUFFER)) == {
            "type": "gate",
            "timestamp": 2_000,
            "phase": "buffer",
        }

    def test_match_fields(self) -> None:
        """Top-level keys use the camelCase export names."""
        data = match_to_json(_sample_match())
        assert data["startTime"] == 1_700_000_000_000
        assert data["duration"] == 158
        assert data["teamNumber"] == "118"
        assert data["notes"] == "strong auto"
        assert data["motif"] == "GPP"
        assert data["autoLeave"] is True
        assert data["teleopPark"] == "partial"
        assert len(data["events"]) == 2

    def test_dumps_is_indented_json(self) -> None:
        """The document form is valid, indented JSON."""
        text = dumps_match(_sample_match())
        assert text.startswith("{\n  ")
        assert json.loads(text)["teamNumber"] == "118"


class TestDeserialisation:
    """JSON to match."""

    def test_round_trip(self) -> None:
        """Serialising and reading back yields an equal match."""
        match = _sample_match()
        assert match_from_json(match_to_json(match)) == match
        assert loads_match(dumps_match(match)) == match

    def test_missing_keys_use_defaults(self) -> None:
        """An empty object becomes an empty match."""
        match = match_from_json({})
        assert match.events == []
        assert match.metadata.team_number is None
        assert match.metadata.notes == ""
        assert match.metadata.start_time_ms is None
        assert match.scoring == ScoringInputs()

    def test_numeric_team_number(self) -> None:
        """Team numbers stored as numbers are read as text."""
        assert match_from_json({"teamNumber": 118}).metadata.team_number == "118"

    def test_bad_events_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        """Invalid, unknown, and sentinel entries are dropped."""
        data = {
            "events": [
                {"type": "info", "version": "text_v1", "teamNumber": "1", "timestamp": 0},
                {"type": "cycle", "timestamp": 100, "total": 1, "scored": 2},
                {"type": "teleport", "timestamp": 200},
                {"type": "gate", "timestamp": "soon"},
                "not an event",
                {"type": "gate", "timestamp": 300},
            ]
        }
        with caplog.at_level(logging.WARNING, logger="heronscout.codec.json_format"):
            match = match_from_json(data)
        assert match.events == [GateEvent(timestamp_ms=300)]
        assert "Skipping invalid cycle event" in caplog.text

    def test_event_from_json_rejects_missing_counts(self) -> None:
        """A cycle without counts cannot be rebuilt."""
        assert event_from_json({"type": "cycle", "timestamp": 10}) is None

    def test_scoring_fields_normalised(self) -> None:
        """Patterns and motif are cleaned when read."""
        match = match_from_json(
            {"motif": "gpp", "autoPattern": "g p x p", "teleopPattern": "PPPPPPPPPPPP", "teleopPark": "FULL"}
        )
        assert match.scoring.motif == "GPP"
        assert match.scoring.auto_pattern == "GPP"
        assert match.scoring.teleop_pattern == "PPPPPPPPP"
        assert match.scoring.teleop_park is ParkStatus.FULL

    def test_short_motif_dropped(self) -> None:
        """A motif that is not three symbols long is discarded."""
        assert match_from_json({"motif": "GP"}).scoring.motif is None

    @pytest.mark.parametrize("text", ["not json", "[1, 2]", ""])
    def test_loads_rejects_non_objects(self, text: str) -> None:
        """Unparseable files and non-object documents yield ``None``."""
        assert loads_match(text) is None
