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
"""Utilities for reading and writing exported match files.

The helpers here are thin wrappers around the JSON codec. They are used by
the command-line tools and test fixtures to round-trip matches through disk
the same way the web app's import/export buttons do. A file may contain a
single match object, a list of match objects, or a tournament object with a
``matches`` list.
"""
import json
from pathlib import Path
from typing import List, Union

from heronscout.codec.json_format import dumps_match, match_from_json
from heronscout.models.match import Match


def load_matches_from_json(path: Union[str, Path]) -> List[Match]:
    """Load every match stored in a JSON export.

    Parameters
    ----------
    path
        Filesystem path to a match, match list, or tournament JSON document.

    Returns
    -------
    List[Match]
        Matches in file order; entries that are not objects are skipped.

    Raises
    ------
    FileNotFoundError
        Raised when ``path`` does not exist.
    ValueError
        Raised when the file is not valid JSON.

    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Match JSON not found: {path}")

    with p.open("r", encoding="utf-8") as fh:
        data = json.load(fh)

    if isinstance(data, dict) and isinstance(data.get("matches"), list):
        entries = data["matches"]
    elif isinstance(data, list):
        entries = data
    else:
        entries = [data]
    return [match_from_json(entry) for entry in entries if isinstance(entry, dict)]


def save_match_to_json(match: Match, path: Union[str, Path]) -> Path:
    """Write a single match as an indented JSON document.

    Parameters
    ----------
    match
        Match to export.
    path
        Destination file; parent directories must exist.

    Returns
    -------
    Path
        The written path.

    """
    p = Path(path)
    p.write_text(dumps_match(match) + "\n", encoding="utf-8")
    return p
