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
"""Mapping between :class:`Match` and the JSON shape used for files and storage."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from heronscout.analysis.scoring import normalize_motif, normalize_pattern
from heronscout.errors import ValidationError
from heronscout.models.events import CycleEvent, GateEvent, MatchEvent, Phase
from heronscout.models.match import Match, MatchMetadata, ParkStatus, ScoringInputs

logger = logging.getLogger(__name__)


def event_to_json(event: MatchEvent) -> Dict[str, Any]:
    """Serialise one event.

    Parameters
    ----------
    event : MatchEvent
        Cycle or gate event.

    Returns
    -------
    Dict[str, Any]
        ``{"type", "timestamp"}`` plus ``total``/``scored`` for cycles and
        ``phase`` when tagged.
    """
    data: Dict[str, Any] = {"type": event.kind, "timestamp": event.timestamp_ms}
    if isinstance(event, CycleEvent):
        data["total"] = event.attempted
        data["scored"] = event.scored
    if event.phase is not None:
        data["phase"] = event.phase.value
    return data


def match_to_json(match: Match) -> Dict[str, Any]:
    """Serialise a match to its JSON object form.

    Parameters
    ----------
    match : Match
        Match to serialise.

    Returns
    -------
    Dict[str, Any]
        JSON-ready mapping with camelCase keys.
    """
    metadata = match.metadata
    scoring = match.scoring
    return {
        "startTime": metadata.start_time_ms,
        "duration": metadata.duration_seconds,
        "teamNumber": metadata.team_number or "",
        "notes": metadata.notes or "",
        "events": [event_to_json(event) for event in match.events],
        "motif": scoring.motif,
        "autoPattern": scoring.auto_pattern,
        "teleopPattern": scoring.teleop_pattern,
        "autoLeave": scoring.auto_leave,
        "teleopPark": scoring.teleop_park.value,
    }


def _optional_int(value: Any) -> Optional[int]:
    """Coerce a JSON number (or numeric string) to ``int``.

    Parameters
    ----------
    value : Any
        Raw JSON value.

    Returns
    -------
    int | None
        The integer, or ``None`` for null, booleans, and unparseable values.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_phase(value: Any) -> Optional[Phase]:
    """Read an optional phase tag.

    Parameters
    ----------
    value : Any
        Raw JSON value.

    Returns
    -------
    Phase | None
        The phase, or ``None`` when absent or unknown.
    """
    if not value:
        return None
    try:
        return Phase(str(value).lower())
    except ValueError:
        return None


def event_from_json(data: Mapping[str, Any]) -> Optional[MatchEvent]:
    """Deserialise one event, returning ``None`` for anything unusable.

    Parameters
    ----------
    data : Mapping[str, Any]
        Event object with ``type`` and ``timestamp`` keys.

    Returns
    -------
    MatchEvent | None
        The event, or ``None`` for unknown types and invalid values.
    """
    if not isinstance(data, Mapping):
        return None
    kind = data.get("type")
    timestamp = _optional_int(data.get("timestamp"))
    if timestamp is None:
        return None
    phase = _parse_phase(data.get("phase"))
    try:
        if kind == CycleEvent.kind:
            attempted = _optional_int(data.get("total"))
            scored = _optional_int(data.get("scored"))
            if attempted is None or scored is None:
                return None
            return CycleEvent(timestamp_ms=timestamp, attempted=attempted, scored=scored, phase=phase)
        if kind == GateEvent.kind:
            return GateEvent(timestamp_ms=timestamp, phase=phase)
    except ValidationError as exc:
        logger.warning("Skipping invalid %s event in match JSON: %s", kind, exc)
    return None


def match_from_json(data: Mapping[str, Any]) -> Match:
    """Build a fresh match from its JSON object form.

    Missing keys fall back to defaults; malformed events are skipped.
    Scoring patterns are normalised here, at the input boundary.

    Parameters
    ----------
    data : Mapping[str, Any]
        Object produced by :func:`match_to_json` or an older export.

    Returns
    -------
    Match
        Independent match instance.
    """
    team = str(data.get("teamNumber") or "").strip()
    metadata = MatchMetadata(
        team_number=team or None,
        notes=str(data.get("notes") or ""),
        start_time_ms=_optional_int(data.get("startTime")),
        duration_seconds=_optional_int(data.get("duration")),
    )

    events: List[MatchEvent] = []
    raw_events = data.get("events") or []
    if not isinstance(raw_events, list):
        logger.warning("Ignoring non-list 'events' field in match JSON")
        raw_events = []
    for raw in raw_events:
        if isinstance(raw, Mapping) and raw.get("type") == "info":
            continue
        event = event_from_json(raw)
        if event is None:
            logger.debug("Skipping unreadable event entry %r", raw)
            continue
        events.append(event)

    scoring = ScoringInputs(
        motif=normalize_motif(data.get("motif")),
        auto_pattern=normalize_pattern(data.get("autoPattern")),
        teleop_pattern=normalize_pattern(data.get("teleopPattern")),
        auto_leave=bool(data.get("autoLeave", False)),
        teleop_park=ParkStatus.parse(data.get("teleopPark")),
    )
    return Match(metadata=metadata, events=events, scoring=scoring)


def dumps_match(match: Match) -> str:
    """Serialise a match to an indented JSON document.

    Parameters
    ----------
    match : Match
        Match to serialise.

    Returns
    -------
    str
        JSON text with two-space indentation.
    """
    return json.dumps(match_to_json(match), indent=2, ensure_ascii=False)


def loads_match(text: str) -> Optional[Match]:
    """Parse a JSON document into a match, logging and ignoring bad files.

    Parameters
    ----------
    text : str
        JSON text, usually the contents of an exported match file.

    Returns
    -------
    Match | None
        The match, or ``None`` when the text is not a JSON object.
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        logger.warning("Error loading match file, not valid JSON: %s", exc)
        return None
    if not isinstance(data, dict):
        logger.warning("Error loading match file, expected an object but got %s", type(data).__name__)
        return None
    return match_from_json(data)
