#!/usr/bin/env python3
"""
Summarise a file of pasted match texts, one match per line.

Usage:
    python tools/analyze_match_text.py <matches_file>
"""

import sys
from pathlib import Path

from heronscout.analysis.stats import match_summary, team_summaries
from heronscout.codec.share import split_lines
from heronscout.codec.text_format import decode_match_text
from heronscout.errors import MalformedInput


def parse_matches_file(path):
    """Decode every line that carries match text; report the rest."""
    matches = []
    rejected = 0
    skipped_segments = 0

    for line in split_lines(path.read_text(encoding='utf-8')):
        try:
            decoded = decode_match_text(line)
        except MalformedInput:
            rejected += 1
            continue
        skipped_segments += decoded.skipped_segments
        if decoded.legacy is not None:
            print(f"  Legacy text for team {decoded.legacy.team_number or '?'} (no version tag)")
        if decoded.has_events:
            matches.append(decoded.match)

    return matches, rejected, skipped_segments


def print_match_rows(matches):
    """Print one line of headline numbers per match."""
    print("\n=== MATCHES ===")
    for index, match in enumerate(matches, start=1):
        row = match_summary(match)
        print(
            f"  #{index:<3} team {row['team_number'] or '?':>6} | "
            f"{row['total_scored']}/{row['total_balls']} scored "
            f"({row['overall_accuracy_percent']:.1f}%) | "
            f"cycle {row['cycle_time_avg_s']:.2f}s avg"
        )


def print_team_table(matches):
    """Print per-team aggregates, strongest median first."""
    print("\n=== TEAMS ===")
    for summary in team_summaries(matches):
        print(
            f"  {summary.team:>6}: median {summary.median:.1f}, avg {summary.avg:.1f}, "
            f"accuracy {summary.accuracy:.1f}%, "
            f"points {summary.avg_points:.1f} over {summary.full_match_count} full matches"
        )


def main():
    if len(sys.argv) < 2:
        print("Usage: python tools/analyze_match_text.py <matches_file>")
        print("\nExample:")
        print("  python tools/analyze_match_text.py scouting/qualifiers.txt")
        sys.exit(1)

    matches_path = Path(sys.argv[1])

    if not matches_path.exists():
        print(f"Error: Matches file not found: {matches_path}")
        sys.exit(1)

    print(f"Analyzing: {matches_path.name}")
    print("=" * 60)

    matches, rejected, skipped = parse_matches_file(matches_path)
    print(f"  Matches decoded: {len(matches)}")
    print(f"  Lines without match text: {rejected}")
    print(f"  Unreadable segments skipped: {skipped}")

    if matches:
        print_match_rows(matches)
        print_team_table(matches)

    print("\n" + "=" * 60)
    print("Analysis complete!")


if __name__ == '__main__':
    main()
