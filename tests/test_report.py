"""Tests for the report module."""

import tempfile
from pathlib import Path

import pandas as pd
import yaml

from community_groups.checkpoint import TrackResult
from community_groups.members import Track
from community_groups.report import (
    ConsoleReporter,
    SoundNotifier,
    export_assignments_csv,
    export_assignments_yaml,
)
from community_groups.scorer import DetailedScore, DuplicatedPath, GroupScore

from tests.utils import dev, group, techlead


def make_result():
    members = [techlead("TL1", 2000, "alpha"), dev("AAA", 2014, "beta"), dev("BBB", 2020, "gamma")]
    score = DetailedScore(
        score=1.25,
        xp_std_dev=0.75,
        duplicated_paths=[DuplicatedPath(path="G1|G2", member="AAA", first_name="AAA", last_name="AAA-last")],
        duplicated_paths_malus=0.5,
        groups_scores=[
            GroupScore(name="G1", group_xps=[10], group_total_xp=10, group_average_xp=10.0,
                       projects=["alpha", "beta"], same_projects_count=0),
            GroupScore(name="G2", group_xps=[4], group_total_xp=4, group_average_xp=4.0,
                       projects=["gamma"], same_projects_count=0),
        ],
    )
    return TrackResult(
        track="front",
        score=score,
        members=members,
        assignment={"TL1": "G1", "AAA": "G1", "BBB": "G2"},
    )


class TestConsoleReporter:
    """Test cases for the ConsoleReporter class."""

    def test_result_found(self, capsys):
        """Test that a new best result is printed with its breakdown."""
        reporter = ConsoleReporter(reference_year=2024)
        reporter.on_track_started(Track(
            name="front",
            groups=[group("G1", 1, 1, animator="TL1"), group("G2", 1)],
            members=make_result().members,
        ))

        reporter.on_result_found(make_result(), 42)

        output = capsys.readouterr().out
        assert "[42] Found new matching result with score of 1.25 !" in output
        assert "[G1] - avg_xp(dev)=10.0, tot_xp(dev)=10, count(dev)=1, count(tl)=1" in output
        assert "*TL1 TL1-last* (XP=24, alpha), AAA AAA-last (XP=10, beta)" in output
        assert "Duplicated paths malus : 0.5" in output
        assert "G1|G2" in output

    def test_notifier_is_called(self):
        """Test that the notifier runs on every new best result."""
        calls = []

        class Notifier:
            def notify(self):
                calls.append(True)
                return True

        ConsoleReporter(reference_year=2024, notifier=Notifier()).on_result_found(make_result(), 1)

        assert calls == [True]


class TestSoundNotifier:
    """Test cases for the SoundNotifier class."""

    def test_missing_sound_file(self):
        """Test that a missing sound file is silently ignored."""
        assert not SoundNotifier(Path("/nonexistent/sound.wav")).notify()

    def test_no_player_available(self):
        """Test that the absence of a player is silently ignored."""
        with tempfile.NamedTemporaryFile(suffix='.wav', delete=False) as f:
            sound_path = Path(f.name)

        try:
            assert not SoundNotifier(sound_path, players=["no-such-player-xyz"]).notify()
        finally:
            sound_path.unlink()


class TestExports:
    """Test cases for assignment exports."""

    def test_export_csv(self):
        """Test that every member gets a CSV row with its group."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.csv', delete=False) as f:
            output_path = Path(f.name)

        try:
            export_assignments_csv([make_result()], output_path)

            df = pd.read_csv(output_path)
            assert list(df["member"]) == ["TL1", "AAA", "BBB"]
            assert list(df["group"]) == ["G1", "G1", "G2"]
            assert set(df["track"]) == {"front"}
        finally:
            output_path.unlink()

    def test_export_yaml(self):
        """Test that YAML exports group members by track then group."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            output_path = Path(f.name)

        try:
            export_assignments_yaml([make_result()], output_path)

            with open(output_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
            assert data == {"front": {"G1": ["AAA", "TL1"], "G2": ["BBB"]}}
        finally:
            output_path.unlink()
