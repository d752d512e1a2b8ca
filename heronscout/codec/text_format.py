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
"""Compact, line-oriented text encoding for sharing recorded matches.

A match encodes as a single pasteable line::

    hmadv2/<team>/<base64 notes>/<start ms>/<duration s>;; 0:00; 2/3 at 0:12; gate at 0:40.250;

The prefix and the event body are separated by ``;;`` and body segments by
``;``. Decoding is forgiving: anything after the separator that does not look
like an event is skipped, and unreadable prefix fields degrade to ``None``.
Only text with no separator at all is rejected.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from heronscout.engine.config import RECORDER_CONFIG
from heronscout.engine.phase_clock import ClockMode
from heronscout.errors import MalformedInput, ValidationError
from heronscout.models.events import CycleEvent, GateEvent, LegacyInfo, MatchEvent, Phase
from heronscout.models.match import FormatVersion, Match, MatchMetadata

logger = logging.getLogger(__name__)

_TIME = r"(\d+):(\d+)(?:\.(\d{1,3}))?"
_BARE_TIME_RE = re.compile(rf"^{_TIME}$")
_GATE_RE = re.compile(rf"\bgate\s+at\s+{_TIME}", re.IGNORECASE)
_CYCLE_RE = re.compile(rf"(\d+)\s*/\s*(\d+)\s+at\s+{_TIME}", re.IGNORECASE)
_DIGITS_RE = re.compile(r"^\d+$")


@dataclass
class DecodedMatch:
    """Result of decoding a match text blob.

    Parameters
    ----------
    match : Match
        Freshly built match holding every recovered event.
    legacy : LegacyInfo | None
        Sentinel set when the prefix carried no known version tag.
    skipped_segments : int
        Number of body segments that could not be read as events.
    """

    match: Match
    legacy: Optional[LegacyInfo] = None
    skipped_segments: int = 0

    @property
    def has_events(self) -> bool:
        """Return ``True`` when at least one real event was recovered."""
        return bool(self.match.events)


def format_time(ms: int) -> str:
    """Format a match time as ``minutes:SS``.

    Parameters
    ----------
    ms : int
        Milliseconds since the match started; negative values clamp to zero.

    Returns
    -------
    str
        Whole seconds, minutes unpadded and never rolled into hours.
    """
    total_seconds = max(0, int(ms)) // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"


def format_event_time(ms: int) -> str:
    """Format an event timestamp, keeping sub-second precision when present.

    Parameters
    ----------
    ms : int
        Milliseconds since the match started.

    Returns
    -------
    str
        ``M:SS`` for whole seconds, otherwise ``M:SS.mmm``.
    """
    ms = max(0, int(ms))
    remainder = ms % 1000
    if remainder == 0:
        return format_time(ms)
    return f"{format_time(ms)}.{remainder:03d}"


def parse_time(token: str) -> Optional[int]:
    """Parse a bare ``M:SS[.mmm]`` token.

    Parameters
    ----------
    token : str
        Time text such as ``"1:05"`` or ``"0:07.25"``.

    Returns
    -------
    int | None
        Milliseconds, or ``None`` when the token is not a time.
    """
    match = _BARE_TIME_RE.match(token.strip())
    if not match:
        return None
    return _time_from_groups(*match.groups())


def _time_from_groups(minutes: str, seconds: str, fraction: Optional[str]) -> int:
    """Combine regex groups into milliseconds.

    Parameters
    ----------
    minutes : str
        Whole minutes.
    seconds : str
        Whole seconds (not limited to 59, for hand-typed input).
    fraction : str | None
        One to three fractional-second digits.

    Returns
    -------
    int
        Milliseconds, with the fraction rounded to the nearest millisecond.
    """
    ms = (int(minutes) * 60 + int(seconds)) * 1000
    if fraction:
        ms += round(int(fraction) * 10 ** (3 - len(fraction)))
    return ms


def encode_notes(notes: Optional[str]) -> str:
    """Base64-encode notes, substituting a single space for empty notes.

    Parameters
    ----------
    notes : str | None
        Free-form notes.

    Returns
    -------
    str
        Standard base64 of the UTF-8 bytes; never empty.
    """
    text = notes if notes else RECORDER_CONFIG.codec.empty_notes
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_notes(token: str, legacy: bool = False) -> Optional[str]:
    """Decode a base64 notes field, degrading to ``None`` on bad input.

    Parameters
    ----------
    token : str
        The encoded notes field.
    legacy : bool, optional
        Accept Latin-1 payloads, as written by the first format version.

    Returns
    -------
    str | None
        Decoded notes, or ``None`` for the empty placeholder or unreadable data.
    """
    token = token.strip()
    if not token:
        return None
    try:
        raw = base64.b64decode(token, validate=True)
    except (binascii.Error, ValueError) as exc:
        logger.warning("Failed to decode notes from text format: %s", exc)
        return None
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        if not legacy:
            logger.warning("Notes are not valid UTF-8: %s", exc)
            return None
        text = raw.decode("latin-1")
    if text == RECORDER_CONFIG.codec.empty_notes or text == "":
        return None
    return text


def _encode_event(event: MatchEvent) -> str:
    """Render one event as a body segment.

    Parameters
    ----------
    event : MatchEvent
        Cycle or gate event.

    Returns
    -------
    str
        ``gate at M:SS`` or ``S/T at M:SS``.
    """
    if isinstance(event, CycleEvent):
        return f"{event.scored}/{event.attempted} at {format_event_time(event.timestamp_ms)}"
    if isinstance(event, GateEvent):
        return f"gate at {format_event_time(event.timestamp_ms)}"
    raise TypeError(f"Unsupported event type: {type(event).__name__}")


def _encode(
    metadata: MatchMetadata, events: Sequence[MatchEvent], duration_seconds: Optional[int]
) -> str:
    """Assemble prefix and body for the given metadata and events.

    Parameters
    ----------
    metadata : MatchMetadata
        Team, notes, and start time to write.
    events : Sequence[MatchEvent]
        Events to write, in order.
    duration_seconds : int | None
        Duration field value.

    Returns
    -------
    str
        Encoded match text in the current format version.
    """
    codec = RECORDER_CONFIG.codec
    team = (metadata.team_number or "").strip() or "0"
    if codec.field_separator in team or codec.segment_separator in team:
        raise ValidationError(f"team number may not contain separators: {team!r}")

    fields = [
        codec.current_version,
        team,
        encode_notes(metadata.notes),
        str(int(metadata.start_time_ms or 0)),
        str(int(duration_seconds or 0)),
    ]
    parts = [codec.field_separator.join(fields) + codec.prefix_separator + " " + format_time(0) + ";"]
    parts.extend(f" {_encode_event(event)};" for event in events)
    return "".join(parts)


def encode_match_text(match: Match) -> str:
    """Encode a whole match as shareable text.

    Parameters
    ----------
    match : Match
        Match to encode.

    Returns
    -------
    str
        Text in the ``hmadv2`` format.

    Raises
    ------
    ValidationError
        If the team number contains a field or segment separator.
    """
    return _encode(match.metadata, match.events, match.metadata.duration_seconds)


def encode_phase_match_text(
    match: Match, phase: Phase, mode: ClockMode = ClockMode.STRUCTURED
) -> Optional[str]:
    """Encode only the events recorded during one phase.

    In structured mode only events tagged with ``phase`` are written and the
    duration field is the phase length (autonomous includes the buffer). In
    free-run mode untagged events are written with the match duration.

    Parameters
    ----------
    match : Match
        Match to export.
    phase : Phase
        ``AUTO`` or ``TELEOP`` in structured mode.
    mode : ClockMode, optional
        Mode the match was recorded in.

    Returns
    -------
    str | None
        Encoded text, or ``None`` when no events qualify.
    """
    structured = ClockMode(mode) == ClockMode.STRUCTURED
    if structured:
        events = [e for e in match.events if e.phase is not None and e.phase == phase]
    else:
        events = [e for e in match.events if e.phase is None or e.phase == phase]
    if not events:
        return None

    phases = RECORDER_CONFIG.phases
    if not structured:
        duration: Optional[int] = match.metadata.duration_seconds
    elif phase == Phase.AUTO:
        duration = phases.auto_duration + phases.buffer_duration
    elif phase == Phase.TELEOP:
        duration = phases.teleop_duration
    else:
        duration = 0
    return _encode(match.metadata, events, duration)


def _parse_int(token: Optional[str]) -> Optional[int]:
    """Read a non-negative integer field; zero and junk become ``None``.

    Parameters
    ----------
    token : str | None
        Raw field text.

    Returns
    -------
    int | None
        The value, or ``None`` when missing, zero, or not numeric.
    """
    if token is None:
        return None
    token = token.strip()
    if not _DIGITS_RE.match(token):
        return None
    value = int(token)
    return value or None


def _clean_team(token: Optional[str]) -> Optional[str]:
    """Normalise a decoded team field; ``"0"`` and blanks mean no team.

    Parameters
    ----------
    token : str | None
        Raw field text.

    Returns
    -------
    str | None
        Team number or ``None``.
    """
    if token is None:
        return None
    token = token.strip()
    return None if token in ("", "0") else token


def _split_v1_fields(fields: List[str]) -> Tuple[Optional[str], Optional[str], Optional[str], Optional[str]]:
    """Assign first-version prefix fields, which omitted absent team and notes.

    Start time and duration are always the last two fields. With three
    fields the leading one is a team number when it is all digits and notes
    otherwise.

    Parameters
    ----------
    fields : List[str]
        Prefix fields after the version tag.

    Returns
    -------
    Tuple[str | None, str | None, str | None, str | None]
        Raw ``(team, notes, start, duration)`` fields.
    """
    if len(fields) >= 4:
        return fields[0], "/".join(fields[1:-2]), fields[-2], fields[-1]
    if len(fields) == 3:
        lead = fields[0].strip()
        if _DIGITS_RE.match(lead):
            return lead, None, fields[1], fields[2]
        return None, lead, fields[1], fields[2]
    if len(fields) == 2:
        return None, None, fields[0], fields[1]
    if len(fields) == 1:
        return None, None, fields[0], None
    return None, None, None, None


def _parse_prefix(prefix: str) -> Tuple[MatchMetadata, Optional[LegacyInfo]]:
    """Read match metadata from the text before ``;;``.

    Parameters
    ----------
    prefix : str
        Prefix text, for example ``"hmadv2/118/IA==/1700000000000/158"``.

    Returns
    -------
    Tuple[MatchMetadata, LegacyInfo | None]
        Decoded metadata and, for unversioned prefixes, the legacy sentinel.
    """
    codec = RECORDER_CONFIG.codec
    tokens = prefix.strip().split(codec.field_separator)
    version = tokens[0].strip().lower()
    fields = tokens[1:]

    if version == codec.current_version:
        team = fields[0] if fields else None
        if len(fields) >= 4:
            notes, start, duration = codec.field_separator.join(fields[1:-2]), fields[-2], fields[-1]
        else:
            notes = fields[1] if len(fields) > 1 else None
            start = fields[2] if len(fields) > 2 else None
            duration = None
        start_ms = _parse_int(start)
        metadata = MatchMetadata(
            team_number=_clean_team(team),
            notes=decode_notes(notes) if notes is not None else None,
            start_time_ms=start_ms,
            duration_seconds=_parse_int(duration),
            format_version=FormatVersion.V2,
        )
        return metadata, None

    if version == codec.legacy_version:
        team, notes, start, duration = _split_v1_fields(fields)
        start_s = _parse_int(start)
        metadata = MatchMetadata(
            team_number=_clean_team(team),
            notes=decode_notes(notes, legacy=True) if notes is not None else None,
            start_time_ms=start_s * 1000 if start_s is not None else None,
            duration_seconds=_parse_int(duration),
            format_version=FormatVersion.V1,
        )
        return metadata, None

    team_number = fields[0].strip() if fields else ""
    metadata = MatchMetadata(team_number=team_number or None, format_version=FormatVersion.V1)
    return metadata, LegacyInfo(team_number=team_number)


def _parse_segment(segment: str) -> Optional[MatchEvent]:
    """Read one body segment as an event.

    Parameters
    ----------
    segment : str
        Trimmed text between two ``;`` delimiters.

    Returns
    -------
    MatchEvent | None
        The event, or ``None`` when the segment is not a valid event.
    """
    gate = _GATE_RE.search(segment)
    if gate:
        try:
            return GateEvent(timestamp_ms=_time_from_groups(*gate.groups()))
        except ValidationError as exc:
            logger.debug("Skipping gate segment %r: %s", segment, exc)
            return None

    cycle = _CYCLE_RE.search(segment)
    if cycle:
        scored, attempted, minutes, seconds, fraction = cycle.groups()
        try:
            return CycleEvent(
                timestamp_ms=_time_from_groups(minutes, seconds, fraction),
                attempted=int(attempted),
                scored=int(scored),
            )
        except ValidationError as exc:
            logger.debug("Skipping cycle segment %r: %s", segment, exc)
            return None
    return None


def decode_match_text(text: str) -> DecodedMatch:
    """Decode shareable match text into a fresh :class:`Match`.

    Parameters
    ----------
    text : str
        Pasted or linked match text in any supported version.

    Returns
    -------
    DecodedMatch
        The recovered match, an optional legacy sentinel, and a count of
        skipped segments.

    Raises
    ------
    MalformedInput
        If the text contains no ``;;`` separator.
    """
    codec = RECORDER_CONFIG.codec
    if not isinstance(text, str) or codec.prefix_separator not in text:
        raise MalformedInput("match text has no ';;' separator")

    prefix, body = text.split(codec.prefix_separator, 1)
    metadata, legacy = _parse_prefix(prefix)
    match = Match(metadata=metadata)
    skipped = 0

    for raw in body.split(codec.segment_separator):
        segment = raw.strip()
        if not segment:
            continue
        bare = parse_time(segment)
        if bare is not None:
            # Bare times only ever mark the log start.
            if bare != 0:
                skipped += 1
            continue
        event = _parse_segment(segment)
        if event is None:
            logger.debug("Skipping unrecognised segment %r", segment)
            skipped += 1
            continue
        match.events.append(event)

    return DecodedMatch(match=match, legacy=legacy, skipped_segments=skipped)
