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
"""Tests for the shareable match text codec."""

import logging

import pytest

from heronscout.codec.text_format import (
    decode_match_text,
    decode_notes,
    encode_match_text,
    encode_notes,
    encode_phase_match_text,
    format_event_time,
    format_time,
    parse_time,
)
from heronscout.engine.phase_clock import ClockMode
from heronscout.errors import MalformedInput, ValidationError
from heronscout.models.events import CycleEvent, GateEvent, Phase
from heronscout.models.match import FormatVersion, Match, MatchMetadata


def _structured_match() -> Match:
    match = Match(metadata=MatchMetadata(team_number="118", start_time_ms=1_700_000_000_000, duration_seconds=158))
    match.append_cycle(2, 2, 5_000, Phase.AUTO)
    match.append_gate(32_000, Phase.BUFFER)
    match.append_cycle(3, 1, 50_500, Phase.TELEOP)
    return match


class TestTimeFormatting:
    """Rendering and parsing of ``M:SS`` match times."""

    @pytest.mark.parametrize(
        "ms, expected",
        [(0, "0:00"), (1_999, "0:01"), (65_000, "1:05"), (3_600_000, "60:00"), (-500, "0:00")],
    )
    def test_format_time(self, ms: int, expected: str) -> None:
        """Times floor to whole seconds with two-digit seconds."""
        assert format_time(ms) == expected

    def test_event_time_keeps_milliseconds(self) -> None:
        """Sub-second remainders are written, whole seconds are not padded."""
        assert format_event_time(12_250) == "0:12.250"
        assert format_event_time(12_000) == "0:12"
        assert format_event_time(60_007) == "1:00.007"

    @pytest.mark.parametrize(
        "token, expected",
        [("0:07", 7_000), ("0:07.5", 7_500), ("0:07.25", 7_250), ("1:01.005", 61_005), ("gate", None)],
    )
    def test_parse_time(self, token: str, expected: int) -> None:
        """Fractions of one to three digits scale to milliseconds."""
        assert parse_time(token) == expected


class TestEncoding:
    """Text produced by the encoder."""

    def test_encode_full_match(self) -> None:
        """Prefix fields and event segments follow the current format."""
        match = Match(metadata=MatchMetadata(team_number="118", start_time_ms=1_700_000_000_000, duration_seconds=158))
        match.append_cycle(3, 2, 12_000)
        match.append_gate(40_250)
        assert encode_match_text(match) == (
            "hmadv2/118/IA==/1700000000000/158;; 0:00; 2/3 at 0:12; gate at 0:40.250;"
        )

    def test_absent_fields_encode_as_zero(self) -> None:
        """Missing team, start, and duration are written as zero."""
        assert encode_match_text(Match()) == "hmadv2/0/IA==/0/0;; 0:00;"

    def test_team_with_separator_rejected(self) -> None:
        """Team numbers that would corrupt the prefix are refused."""
        match = Match(metadata=MatchMetadata(team_number="11/8"))
        with pytest.raises(ValidationError):
            encode_match_text(match)

    def test_notes_placeholder(self) -> None:
        """Empty notes encode as a single space and decode back to nothing."""
        assert encode_notes("") == "IA=="
        assert encode_notes(None) == "IA=="
        assert decode_notes("IA==") is None
        assert decode_notes(encode_notes("hi")) == "hi"


class TestRoundTrip:
    """Decoding text produced by the encoder."""

    def test_round_trip_preserves_match(self) -> None:
        """Team, notes, timing, and events survive the round trip."""
        match = Match(
            metadata=MatchMetadata(
                team_number="23456",
                notes="Quick cycles; défense ✓ / needs work",
                start_time_ms=1_712_345_678_901,
                duration_seconds=137,
            )
        )
        match.append_cycle(1, 1, 1_500)
        match.append_gate(9_000)
        match.append_cycle(3, 0, 61_001)
        match.append_cycle(2, 2, 61_001)

        decoded = decode_match_text(encode_match_text(match))

        assert decoded.legacy is None
        assert decoded.skipped_segments == 0
        assert decoded.match.metadata == match.metadata
        assert decoded.match.events == match.events

    def test_round_trip_of_empty_metadata(self) -> None:
        """Zero placeholders decode back to absent values."""
        match = Match()
        match.append_gate(3_000)
        metadata = decode_match_text(encode_match_text(match)).match.metadata
        assert metadata.team_number is None
        assert metadata.notes == ""
        assert metadata.start_time_ms is None
        assert metadata.duration_seconds is None

    def test_phase_tags_are_not_carried(self) -> None:
        """Decoded events carry no phase."""
        decoded = decode_match_text(encode_match_text(_structured_match()))
        assert [event.phase for event in decoded.match.events] == [None, None, None]
        assert decoded.match.events[2] == CycleEvent(timestamp_ms=50_500, attempted=3, scored=1)


class TestDecoding:
    """Forgiving decoding of pasted or older text."""

    def test_missing_separator_is_malformed(self) -> None:
        """Text without ``;;`` is the only hard failure."""
        with pytest.raises(MalformedInput):
            decode_match_text("hmadv2/118/IA==/0/0; 1/1 at 0:02;")

    def test_legacy_v1_with_bad_notes(self) -> None:
        """Version 1 start times are seconds and bad fields degrade quietly."""
        decoded = decode_match_text("hmadv1/118/abc;; 0:00; gate at 0:05;")
        metadata = decoded.match.metadata
        assert metadata.start_time_ms == 118_000
        assert metadata.notes == ""
        assert metadata.format_version is FormatVersion.V1
        assert decoded.match.events == [GateEvent(timestamp_ms=5_000)]

    def test_legacy_v1_full_prefix(self) -> None:
        """A complete version 1 prefix reads team, notes, start, and duration."""
        decoded = decode_match_text("hmadv1/118/aGk=/1700000000/150;; 0:00; 1/2 at 0:03;")
        metadata = decoded.match.metadata
        assert metadata.team_number == "118"
        assert metadata.notes == "hi"
        assert metadata.start_time_ms == 1_700_000_000_000
        assert metadata.duration_seconds == 150
        assert decoded.match.events == [CycleEvent(timestamp_ms=3_000, attempted=2, scored=1)]

    def test_invalid_notes_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Undecodable notes are reported through logging, not raised."""
        with caplog.at_level(logging.WARNING, logger="heronscout.codec.text_format"):
            decoded = decode_match_text("hmadv2/118/%%%/0/0;; 0:00; 1/1 at 0:01;")
        assert decoded.match.metadata.notes == ""
        assert len(decoded.match.events) == 1
        assert "notes" in caplog.text

    def test_garbled_segments_skipped(self) -> None:
        """Unreadable and invalid segments are dropped, the rest recovered."""
        text = "hmadv2/0/IA==/0/0;; 0:00; junk; 3/2 at 0:04; 1/1 at 0:06; ; GATE AT 0:09.5;"
        decoded = decode_match_text(text)
        assert decoded.match.events == [
            CycleEvent(timestamp_ms=6_000, attempted=1, scored=1),
            GateEvent(timestamp_ms=9_500),
        ]
        assert decoded.skipped_segments == 2

    def test_bare_zero_times_ignored(self) -> None:
        """Bare zero times mark the log start; other bare times count as skipped."""
        decoded = decode_match_text("hmadv2/0/IA==/0/0;; 0:00; 0:00.000; 0:05;")
        assert decoded.match.events == []
        assert decoded.skipped_segments == 1
        assert not decoded.has_events

    def test_out_of_range_times_skipped(self) -> None:
        """Event times past the timestamp limit are dropped, not recorded."""
        decoded = decode_match_text("x;; 1/2 at 99999999999999999999:00; gate at 99999999999:00; 1/1 at 0:03;")
        assert decoded.match.events == [CycleEvent(timestamp_ms=3_000, attempted=1, scored=1)]
        assert decoded.skipped_segments == 2

    def test_unversioned_prefix_returns_sentinel(self) -> None:
        """Plain legacy text yields the info sentinel outside the event log."""
        decoded = decode_match_text("scout/5555/whatever;; 0:00; 1/1 at 0:02;")
        assert decoded.legacy is not None
        assert decoded.legacy.team_number == "5555"
        assert decoded.legacy.version == "text_v1"
        assert decoded.match.metadata.team_number == "5555"
        assert decoded.match.events == [CycleEvent(timestamp_ms=2_000, attempted=1, scored=1)]


class TestPhaseExport:
    """Exporting a single phase of a match."""

    def test_structured_auto_export(self) -> None:
        """Autonomous export keeps auto events and uses the auto plus buffer duration."""
        text = encode_phase_match_text(_structured_match(), Phase.AUTO)
        assert text == "hmadv2/118/IA==/1700000000000/38;; 0:00; 2/2 at 0:05;"

    def test_structured_teleop_export(self) -> None:
        """Teleop export keeps teleop events and uses the teleop duration."""
        text = encode_phase_match_text(_structured_match(), Phase.TELEOP)
        assert text == "hmadv2/118/IA==/1700000000000/120;; 0:00; 1/3 at 0:50.500;"

    def test_phase_without_events(self) -> None:
        """Phases with nothing recorded export nothing."""
        assert encode_phase_match_text(_structured_match(), Phase.FINISHED) is None

    def test_free_run_export(self) -> None:
        """Free-run export writes every untagged event with the match duration."""
        match = Match(metadata=MatchMetadata(duration_seconds=90))
        match.append_cycle(1, 1, 4_000)
        match.append_gate(7_000)
        text = encode_phase_match_text(match, Phase.AUTO, ClockMode.FREE_RUN)
        assert text == "hmadv2/0/IA==/0/90;; 0:00; 1/1 at 0:04; gate at 0:07;"
