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
"""Entry point for a demo structured match recorded by a simulated scout."""
import random
import threading
import time

from heronscout.analysis.stats import basic_stats, cycle_times, scored_out_of_total
from heronscout.engine.match_recorder import MatchRecorder, wall_clock_ms
from heronscout.engine.phase_clock import ClockMode
from heronscout.models.events import Phase
from heronscout.utils.generator import MOTIFS, generate_random_pattern


class AcceleratedClock:
    """Time source that runs faster than the wall clock.

    Parameters
    ----------
    speed : float
        Multiplier applied to real elapsed time.
    """

    def __init__(self, speed: float = 1.0) -> None:
        """Anchor the accelerated clock at the current wall-clock time.

        Parameters
        ----------
        speed : float
            Multiplier applied to real elapsed time.
        """
        self.speed = speed
        self._origin = wall_clock_ms()

    def __call__(self) -> int:
        """Return the accelerated time in epoch milliseconds.

        Returns
        -------
        int
            Origin plus scaled real elapsed time.
        """
        now = wall_clock_ms()
        return self._origin + int((now - self._origin) * self.speed)


def print_match_status(recorder: MatchRecorder) -> None:
    """Print phase changes and new events until the match stops.

    Parameters
    ----------
    recorder : MatchRecorder
        Running recorder whose state should be reported.
    """
    last_event_count = 0
    last_phase = None

    while recorder.is_recording:
        snapshot = recorder.snapshot()

        if recorder.phase != last_phase:
            print(f"\n[{recorder.elapsed_ms / 1000:6.1f}s] Phase: {recorder.phase.value}")
            last_phase = recorder.phase

        for event in snapshot.events[last_event_count:]:
            if event.kind == "cycle":
                print(f"  {event.timestamp_ms / 1000:6.1f}s  cycle {event.scored}/{event.attempted}")
            else:
                print(f"  {event.timestamp_ms / 1000:6.1f}s  gate opened")
        last_event_count = len(snapshot.events)

        time.sleep(0.25)


def simulate_scout(recorder: MatchRecorder, speed: float) -> None:
    """Press cycle and gate buttons at random while the match records.

    Parameters
    ----------
    recorder : MatchRecorder
        Recorder receiving the simulated input.
    speed : float
        Clock multiplier, used to scale real waits to match time.
    """
    while recorder.is_recording:
        time.sleep(random.uniform(4.0, 12.0) / speed)
        if not recorder.is_recording or recorder.phase == Phase.BUFFER:
            continue
        if random.random() < 0.1:
            recorder.add_gate()
            continue
        attempted = random.randint(1, 3)
        recorder.add_cycle(attempted, random.randint(0, attempted))


def main() -> None:
    """Record a demo match at accelerated speed and print its exports."""
    speed = 20.0
    recorder = MatchRecorder(time_source=AcceleratedClock(speed))
    recorder.start_match(mode=ClockMode.STRUCTURED, motif=random.choice(MOTIFS), team_number="11506")

    clock_thread = threading.Thread(target=recorder.run, kwargs={"sleep": lambda s: time.sleep(s / speed)})
    status_thread = threading.Thread(target=print_match_status, args=(recorder,))
    scout_thread = threading.Thread(target=simulate_scout, args=(recorder, speed), daemon=True)
    clock_thread.start()
    status_thread.start()
    scout_thread.start()

    try:
        clock_thread.join()
    except KeyboardInterrupt:
        print("\nMatch recording interrupted.")
        recorder.stop_match()
        clock_thread.join()
    status_thread.join(timeout=3.0)

    recorder.set_auto_pattern(generate_random_pattern())
    recorder.set_teleop_pattern(generate_random_pattern())
    recorder.set_auto_leave(True)
    recorder.set_teleop_park(random.choice(["none", "partial", "full"]))

    match = recorder.snapshot()
    totals = scored_out_of_total(match)
    times = basic_stats(cycle_times(match))
    score = recorder.score()

    print("\nMatch Statistics:")
    print(f"Scored: {totals['scored']}/{totals['total']}")
    print(f"Cycle time: {times.avg:.2f}s avg, {times.std:.2f}s std")
    print(f"Points: {score.total} (artifact {score.artifact}, motif {score.motif.total}, "
          f"leave {score.leave}, park {score.park})")

    print("\nMatch text:")
    print(recorder.match_text())
    for phase in (Phase.AUTO, Phase.TELEOP):
        text = recorder.phase_match_text(phase)
        if text:
            print(f"\n{phase.value.title()} text:")
            print(text)


if __name__ == "__main__":
    main()
