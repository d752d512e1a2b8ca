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
"""Helpers for moving match text through share links and pasted input.

Links carry match text either inline, as base64 in the ``mt`` query
parameter, or indirectly, as a paste-service key in ``p``. Resolving paste
keys needs the network and is left to the caller; everything here is pure.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import parse_qs, quote, unquote, urlsplit

from heronscout.codec.json_format import match_from_json
from heronscout.codec.text_format import decode_match_text
from heronscout.engine.config import RECORDER_CONFIG
from heronscout.errors import MalformedInput
from heronscout.models.match import Match

logger = logging.getLogger(__name__)

_HOSTISH_MARKERS = ("localhost", "127.0.0.1", ".me", ".app", ".com", ".net", ".org", ".dev", ".io")
_TOKEN_SPLIT_RE = re.compile(r"[\s,]+")
_LINE_SPLIT_RE = re.compile(r"\r?\n")


@dataclass(frozen=True)
class ShareParams:
    """Share parameters found in pasted input.

    Parameters
    ----------
    paste_key : str | None
        Paste-service key (the ``p`` parameter or a bare token).
    match_text_param : str | None
        Inline base64 match text (the ``mt`` parameter).
    """

    paste_key: Optional[str] = None
    match_text_param: Optional[str] = None


@dataclass
class ImportResult:
    """Everything recovered from a block of pasted import input.

    Parameters
    ----------
    matches : List[Match]
        Matches decoded from raw text, ``mt`` links, and JSON tokens.
    paste_keys : List[str]
        Paste keys found in links, for the caller to fetch and decode.
    """

    matches: List[Match] = field(default_factory=list)
    paste_keys: List[str] = field(default_factory=list)


def encode_share_param(text: str) -> str:
    """Encode match text for the ``mt`` query parameter.

    Parameters
    ----------
    text : str
        Encoded match text.

    Returns
    -------
    str
        URL-quoted base64 of the UTF-8 text.
    """
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    return quote(encoded, safe="")


def decode_share_param(value: str) -> str:
    """Decode an ``mt`` query parameter back to match text.

    Parameters
    ----------
    value : str
        Parameter value, URL-quoted or already unquoted.

    Returns
    -------
    str
        Match text.

    Raises
    ------
    MalformedInput
        If the value is not base64 of UTF-8 text.
    """
    # parse_qs turns '+' into spaces; undo that before decoding.
    raw = unquote(value.strip()).replace(" ", "+")
    try:
        return base64.b64decode(raw, validate=True).decode("utf-8")
    except (binascii.Error, ValueError) as exc:
        raise MalformedInput(f"share parameter is not valid base64 text: {exc}") from exc


def _looks_like_host(token: str) -> bool:
    """Return whether ``token`` looks like a URL pasted without its scheme.

    Parameters
    ----------
    token : str
        Trimmed input.

    Returns
    -------
    bool
        ``True`` when the token mentions a known host marker.
    """
    return any(marker in token for marker in _HOSTISH_MARKERS)


def _query_params(raw: str) -> Optional[dict]:
    """Extract query parameters from URL-ish input.

    Parameters
    ----------
    raw : str
        Full URL, scheme-less host URL, ``?query``, or ``p=``/``mt=`` fragment.

    Returns
    -------
    dict | None
        Parsed query mapping, or ``None`` when the input is not URL-ish.
    """
    if raw.startswith(("http://", "https://")):
        query = urlsplit(raw).query
    elif _looks_like_host(raw):
        query = urlsplit(f"https://{raw}").query
    elif raw.startswith("?"):
        query = raw[1:]
    elif raw.startswith(("p=", "mt=")):
        query = raw
    else:
        return None
    return parse_qs(query, keep_blank_values=False)


def extract_share_params(raw: Optional[str]) -> ShareParams:
    """Find a paste key or inline match text in pasted input.

    Parameters
    ----------
    raw : str | None
        A share URL (with or without scheme), a query fragment, or a bare
        paste key.

    Returns
    -------
    ShareParams
        Found parameters; a bare token is treated as a paste key.
    """
    raw = (raw or "").strip()
    if not raw:
        return ShareParams()
    params = _query_params(raw)
    if params is not None:
        return ShareParams(
            paste_key=(params.get("p") or [None])[0],
            match_text_param=(params.get("mt") or [None])[0],
        )
    return ShareParams(paste_key=raw)


def split_lines(raw: Optional[str]) -> List[str]:
    """Split pasted text into trimmed, non-empty lines.

    Parameters
    ----------
    raw : str | None
        Multi-line input.

    Returns
    -------
    List[str]
        Lines without surrounding whitespace.
    """
    return [line.strip() for line in _LINE_SPLIT_RE.split(raw or "") if line.strip()]


def _json_matches(data: object) -> List[Match]:
    """Build matches from a decoded JSON value.

    Parameters
    ----------
    data : object
        A match object, a list of match objects, or a tournament object with
        a ``matches`` list.

    Returns
    -------
    List[Match]
        Matches for every entry that carries events.
    """
    if isinstance(data, dict) and isinstance(data.get("matches"), list):
        entries = data["matches"]
    elif isinstance(data, list):
        entries = data
    else:
        entries = [data]
    return [match_from_json(entry) for entry in entries if isinstance(entry, dict) and entry.get("events")]


def _decode_text_block(raw: str) -> List[Match]:
    """Decode pasted match text, one match per line when several are pasted.

    Parameters
    ----------
    raw : str
        Pasted text.

    Returns
    -------
    List[Match]
        Matches with at least one event.
    """
    separator = RECORDER_CONFIG.codec.prefix_separator
    text_lines = [line for line in split_lines(raw) if separator in line]
    blocks = text_lines if len(text_lines) > 1 else [raw]
    matches: List[Match] = []
    for block in blocks:
        try:
            decoded = decode_match_text(block)
        except MalformedInput:
            logger.debug("Import input is not raw match text")
            continue
        if decoded.has_events:
            matches.append(decoded.match)
    return matches


def parse_import_input(raw: Optional[str]) -> ImportResult:
    """Recover matches from a free-form block of pasted import input.

    The block is first tried as match text, decoding each line on its own
    when several lines carry match text. It is then tried as a JSON match,
    list of matches, or tournament. Otherwise each whitespace or comma
    separated token is inspected: links with ``mt`` are decoded inline,
    links with ``p`` contribute a paste key, and ``{...}`` tokens are read
    as JSON matches or tournaments. Unreadable tokens are skipped.

    Parameters
    ----------
    raw : str | None
        Pasted text.

    Returns
    -------
    ImportResult
        Decoded matches and unresolved paste keys.
    """
    result = ImportResult()
    if not raw:
        return result

    result.matches.extend(_decode_text_block(raw))

    stripped = raw.strip()
    if stripped.startswith(("{", "[")):
        try:
            data = json.loads(stripped)
        except ValueError:
            data = None
        if data is not None:
            result.matches.extend(_json_matches(data))
            return result

    for token in (t.strip() for t in _TOKEN_SPLIT_RE.split(raw)):
        if not token:
            continue
        if token.startswith(("http://", "https://")):
            params = extract_share_params(token)
            if params.paste_key:
                result.paste_keys.append(params.paste_key)
            elif params.match_text_param:
                try:
                    decoded = decode_match_text(decode_share_param(params.match_text_param))
                except MalformedInput as exc:
                    logger.warning("Failed to import match from mt param: %s", exc)
                    continue
                if decoded.has_events:
                    result.matches.append(decoded.match)
        elif token.startswith("{"):
            try:
                data = json.loads(token)
            except ValueError:
                continue
            result.matches.extend(_json_matches(data))
    return result
