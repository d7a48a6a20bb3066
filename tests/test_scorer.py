"""Tests for the scorer module."""

import pytest

from community_groups.indexer import MemberIndex
from community_groups.members import Track
from community_groups.scorer import DetailedScore, Scorer, path_of, stddev

from tests.utils import dev, group, techlead, two_group_track


def make_scorer(track, xp_weight=1.0, malus=0.25, window=3):
    return Scorer(
        MemberIndex(track),
        reference_year=2024,
        xp_weight=xp_weight,
        malus_per_same_path=malus,
        history_window=window,
    )


def xp_track():
    return Track(
        name="t",
        groups=[group("G1", 2, 1), group("G2", 2)],
        members=[
            dev("AAA", 2014),
            dev("BBB", 2020),
            dev("CCC", 2018),
            dev("DDD", 2022),
            techlead("TL1", 1990),
        ],
    )


class TestExperienceBalance:
    """Test cases for the experience part of the score."""

    def test_group_scores(self):
        """Test per-group experience, techleads left out."""
        score = make_scorer(xp_track()).score([[4, 0, 1], [2, 3]])

        first, second = score.groups_scores
        assert first.group_xps == [10, 4]
        assert first.group_total_xp == 14
        assert first.group_average_xp == 7.0
        assert second.group_average_xp == 4.0
        assert score.xp_std_dev == pytest.approx(1.5)
        assert score.score == pytest.approx(1.5)

    def test_xp_weight(self):
        """Test that the weight scales the standard deviation."""
        score = make_scorer(xp_track(), xp_weight=2.0).score([[4, 0, 1], [2, 3]])

        assert score.xp_std_dev == pytest.approx(3.0)

    def test_average_rounding(self):
        """Test that averages are rounded to two decimals."""
        track = Track(
            name="t",
            groups=[group("G1", 3)],
            members=[dev("AAA", 2023), dev("BBB", 2023), dev("CCC", 2022)],
        )
        score = make_scorer(track).score([[0, 1, 2]])

        assert score.groups_scores[0].group_average_xp == 1.33

    def test_group_without_devs(self):
        """Test that a group without devs has an average of zero."""
        track = Track(
            name="t",
            groups=[group("G1", 0, 1), group("G2", 2)],
            members=[techlead("TL1"), dev("AAA", 2020), dev("BBB", 2016)],
        )
        score = make_scorer(track).score([[0], [1, 2]])

        assert score.groups_scores[0].group_average_xp == 0.0
        assert score.xp_std_dev == pytest.approx(3.0)

    def test_stddev(self):
        """Test the population standard deviation."""
        assert stddev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)
        assert stddev([3.0]) == 0.0
        assert stddev([]) == 0.0


class TestDuplicatedPaths:
    """Test cases for the duplicated paths part of the score."""

    def test_path_of(self):
        """Test that the candidate group comes first, then the latest groups."""
        member = dev("AAA", history=["G2", "G1", "G9"])

        assert path_of(member, "G3", 3) == ["G3", "G2", "G1"]
        assert path_of(member, "G3", 1) == ["G3"]
        assert path_of(dev("BBB", history=["G2"]), "G3", 3) == ["G3", "G2", ""]

    def test_shared_path(self):
        """Test that two members sharing a path are both reported."""
        track = Track(
            name="t",
            groups=[group("G1", 4), group("G2", 1)],
            members=[
                dev("AAA", history=["G2", "G1", "G9"]),
                dev("BBB", history=["G2", "G1"]),
                dev("CCC", history=["G2", ""]),
                dev("DDD", history=["G2"]),
                dev("EEE", history=["G2", "G1"]),
            ],
        )
        score = make_scorer(track, malus=0.25).score([[0, 1, 2, 3], [4]])

        assert [(path.path, path.member) for path in score.duplicated_paths] == [
            ("G1|G2|G1", "AAA"),
            ("G1|G2|G1", "BBB"),
        ]
        assert score.duplicated_paths_malus == pytest.approx(0.5)
        assert score.score == pytest.approx(score.xp_std_dev + 0.5)

    def test_empty_slot_excludes_member(self):
        """Test that a member with an empty slot is never counted."""
        track = Track(
            name="t",
            groups=[group("G1", 2)],
            members=[dev("AAA", history=["G2", ""]), dev("BBB", history=["G2", ""])],
        )
        score = make_scorer(track).score([[0, 1]])

        assert score.duplicated_paths == []

    def test_three_members_sharing(self):
        """Test that k members sharing a path produce k entries."""
        track = Track(
            name="t",
            groups=[group("G1", 3)],
            members=[dev("AAA", history=["X"]), dev("BBB", history=["X"]), dev("CCC", history=["X"])],
        )
        score = make_scorer(track, malus=1.0, window=2).score([[0, 1, 2]])

        assert [path.member for path in score.duplicated_paths] == ["AAA", "BBB", "CCC"]
        assert score.duplicated_paths_malus == pytest.approx(3.0)


class TestScoreProperties:
    """Test cases for properties of the whole score."""

    def test_intra_group_permutation(self):
        """Test that reordering members inside groups doesn't change the score."""
        scorer = make_scorer(two_group_track())

        first = scorer.score([[6, 0, 2, 4], [7, 1, 3, 5]])
        second = scorer.score([[4, 2, 0, 6], [5, 3, 1, 7]])

        assert first.score == pytest.approx(second.score)

    def test_same_projects_count(self):
        """Test the diagnostic count of same-project members."""
        score = make_scorer(two_group_track()).score([[6, 0, 2, 4], [7, 1, 3, 5]])

        assert [group_score.same_projects_count for group_score in score.groups_scores] == [2, 2]
        assert score.groups_scores[1].projects == ["beta", "alpha", "beta", "project 3"]

    def test_dict_round_trip(self):
        """Test that a detailed score survives serialization."""
        track = Track(
            name="t",
            groups=[group("G1", 2)],
            members=[dev("AAA", history=["X", "Y"]), dev("BBB", history=["X", "Y"])],
        )
        score = make_scorer(track).score([[0, 1]])

        assert DetailedScore.from_dict(score.to_dict()) == score
