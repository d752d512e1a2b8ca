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
"""Utilities that synthesise plausible matches for demos and quick tests."""
import random
from typing import List, Optional

from heronscout.engine.config import RECORDER_CONFIG
from heronscout.engine.phase_clock import phase_for_elapsed
from heronscout.models.match import Match, MatchMetadata, ParkStatus, ScoringInputs

MOTIFS = ("GPP", "PGP", "PPG")

# Relative odds of attempting one, two, or three artifacts in a cycle.
ATTEMPT_WEIGHTS = (1, 2, 5)


def generate_random_pattern(length: Optional[int] = None) -> str:
    """Generate a ramp pattern of random purple and green artifacts.

    Parameters
    ----------
    length : Optional[int]
        Number of slots filled; random up to the full pattern length when omitted.

    Returns
    -------
    str
        Pattern over ``P`` and ``G``.
    """
    max_length = RECORDER_CONFIG.scoring.pattern_length
    if length is None:
        length = random.randint(0, max_length)
    return "".join(random.choice(RECORDER_CONFIG.scoring.pattern_alphabet) for _ in range(min(length, max_length)))


def generate_match(
    team_number: Optional[str] = None,
    structured: bool = True,
    accuracy: float = 0.7,
    cycle_seconds: float = 9.0,
    gate_chance: float = 0.1,
    start_time_ms: Optional[int] = None,
) -> Match:
    """Generate a match with randomly timed cycles and gate openings.

    Parameters
    ----------
    team_number : Optional[str]
        Team to attribute the match to; a random four-digit number when omitted.
    structured : bool
        Tag events with phases and use the full 158 s duration.
    accuracy : float
        Probability that each attempted artifact scores.
    cycle_seconds : float
        Mean gap between events in seconds.
    gate_chance : float
        Probability that an event is a gate opening instead of a cycle.
    start_time_ms : Optional[int]
        Wall-clock start in epoch milliseconds.

    Returns
    -------
    Match
        Match whose events are in non-decreasing timestamp order.
    """
    if team_number is None:
        team_number = str(random.randint(1000, 29999))

    duration_s = RECORDER_CONFIG.phases.match_total_duration if structured else random.randint(60, 180)
    match = Match(
        metadata=MatchMetadata(team_number=team_number, start_time_ms=start_time_ms, duration_seconds=duration_s),
        scoring=ScoringInputs(
            motif=random.choice(MOTIFS),
            auto_pattern=generate_random_pattern(),
            teleop_pattern=generate_random_pattern(),
            auto_leave=random.random() < 0.8,
            teleop_park=random.choice(list(ParkStatus)),
        ),
    )

    elapsed_ms = 0
    while True:
        elapsed_ms += max(1, int(random.expovariate(1.0 / cycle_seconds) * 1000))
        if elapsed_ms >= duration_s * 1000:
            break
        phase = phase_for_elapsed(elapsed_ms) if structured else None
        if random.random() < gate_chance:
            match.append_gate(elapsed_ms, phase)
            continue
        attempted = random.choices((1, 2, 3), weights=ATTEMPT_WEIGHTS)[0]
        scored = sum(1 for _ in range(attempted) if random.random() < accuracy)
        match.append_cycle(attempted, scored, elapsed_ms, phase)

    return match


def generate_tournament(team_count: int = 4, matches_per_team: int = 3) -> List[Match]:
    """Generate several structured matches for a handful of teams.

    Parameters
    ----------
    team_count : int
        Number of distinct teams.
    matches_per_team : int
        Matches generated for each team.

    Returns
    -------
    List[Match]
        Matches with staggered start times.
    """
    teams = random.sample(range(1000, 29999), team_count)
    matches: List[Match] = []
    start = 1_700_000_000_000
    for _ in range(matches_per_team):
        for team in teams:
            start += 7 * 60 * 1000
            matches.append(
                generate_match(str(team), accuracy=random.uniform(0.4, 0.95), start_time_ms=start)
            )
    return matches
