"""Console reporting, notifications and assignment exports."""

import json
import shutil
import subprocess
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

import click
import pandas as pd
import yaml

from .checkpoint import TrackResult
from .members import Role, Track

DEFAULT_SOUND_FILE = Path("mixkit-gaming-lock-2848.wav")

# Players tried in order, the first one found on the PATH is used
SOUND_PLAYERS = ["afplay", "paplay", "aplay", "mpg123", "mpg321", "play", "cvlc", "omxplayer", "cmdmp3"]


class SoundNotifier:
    """Plays a sound whenever a better result is found.

    Failing to play is never an error: the sound is a courtesy to the operator.
    """

    def __init__(self, sound_file: Path = DEFAULT_SOUND_FILE, players: Optional[List[str]] = None):
        self.sound_file = Path(sound_file)
        self.players = SOUND_PLAYERS if players is None else players

    def find_player(self) -> Optional[str]:
        for player in self.players:
            if shutil.which(player):
                return player
        return None

    def notify(self) -> bool:
        """Start playing the sound in the background.

        Returns:
            True if a player was started
        """
        if not self.sound_file.exists():
            return False
        player = self.find_player()
        if player is None:
            return False
        try:
            subprocess.Popen(
                [player, str(self.sound_file)],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except (OSError, subprocess.SubprocessError):
            return False
        return True


class ConsoleReporter:
    """Prints search progress and results on the console."""

    def __init__(self, reference_year: int, notifier: Optional[SoundNotifier] = None):
        self.reference_year = reference_year
        self.notifier = notifier
        self.animators: Set[str] = set()

    def on_track_started(self, track: Track) -> None:
        self.animators = {group.animator for group in track.groups if group.animator}
        click.secho(
            f"Searching groups for track '{track.name}': {len(track.members)} members, "
            f"{len(track.groups)} groups",
            fg="blue",
        )

    def on_progress(self, progress) -> None:
        click.secho(
            f"[{progress.iterations}] {progress.elapsed_ms}ms elapsed => "
            f"{progress.attempts_per_second} attempts/sec, "
            f"{progress.matching_attempts_per_second} matching attempts/sec",
            fg="blue",
        )

    def on_result_found(self, result: TrackResult, iteration: int) -> None:
        click.secho(
            f"[{iteration}] Found new matching result with score of {result.score.score} !",
            fg="green",
        )
        self.print_result(result)
        if self.notifier is not None:
            self.notifier.notify()

    def print_result(self, result: TrackResult) -> None:
        groups = result.groups()

        click.secho("Group assignments:", bold=True)
        for group_score in result.score.groups_scores:
            group_members = groups.get(group_score.name, [])
            devs = sum(1 for member in group_members if member.role is Role.DEV)
            click.echo(
                f"[{group_score.name}] - avg_xp(dev)={group_score.group_average_xp}, "
                f"tot_xp(dev)={group_score.group_total_xp}, count(dev)={devs}, "
                f"count(tl)={len(group_members) - devs}"
            )
            click.echo(", ".join(self._describe(member) for member in group_members))
            click.echo("")

        click.echo(f"Global score: {result.score.score}")
        click.echo(f"Standard deviation on groups' avg_xp(dev) : {result.score.xp_std_dev}")
        click.echo(f"Duplicated paths malus : {result.score.duplicated_paths_malus}")
        if result.score.duplicated_paths:
            click.secho(
                "Detailed duplicated paths : "
                + json.dumps([path.to_dict() for path in result.score.duplicated_paths]),
                fg="yellow",
            )
        click.echo("")

        for group_score in result.score.groups_scores:
            click.echo(f"{group_score.name} same projects #: tot={group_score.same_projects_count}")
        click.echo("")

    def _describe(self, member) -> str:
        marker = "*" if member.identity in self.animators else ""
        return (
            f"{marker}{member.first_name} {member.last_name}{marker} "
            f"(XP={member.experience(self.reference_year)}, {member.main_project})"
        )


def assignment_rows(results: Iterable[TrackResult]) -> List[Dict[str, object]]:
    rows = []
    for result in results:
        for member in result.members:
            rows.append({
                "track": result.track,
                "group": result.assignment[member.identity],
                "member": member.identity,
                "firstName": member.first_name,
                "lastName": member.last_name,
                "type": member.role.value,
                "mainProject": member.main_project,
                "proStart": member.pro_start,
            })
    return rows


def export_assignments_csv(results: Iterable[TrackResult], output_path: Path) -> None:
    """Save assignments as one CSV row per member, ready for a spreadsheet import.

    Args:
        results: Track results to export
        output_path: Path where to save the CSV
    """
    rows = assignment_rows(results)
    columns = ["track", "group", "member", "firstName", "lastName", "type", "mainProject", "proStart"]
    pd.DataFrame(rows, columns=columns).to_csv(output_path, index=False)


def export_assignments_yaml(results: Iterable[TrackResult], output_path: Path) -> None:
    """Save assignments to YAML, grouped by track then group.

    Args:
        results: Track results to export
        output_path: Path where to save the YAML
    """
    yaml_data: Dict[str, Dict[str, List[str]]] = {}
    for result in results:
        groups = defaultdict(list)
        for member in result.members:
            groups[result.assignment[member.identity]].append(member.identity)
        yaml_data[result.track] = {group: sorted(names) for group, names in groups.items()}

    with open(output_path, 'w', encoding='utf-8') as f:
        yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=True, allow_unicode=True)
