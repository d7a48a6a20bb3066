"""Tests for the indexer and shuffler modules."""

import pytest

from community_groups.indexer import FeatureKey, MemberIndex
from community_groups.members import Role, Track
from community_groups.shuffler import ConstrainedShuffler, assignment_from_mapping

from tests.utils import dev, group, two_group_track


class TestMemberIndex:
    """Test cases for the MemberIndex class."""

    def test_partitions_exclude_animators(self):
        """Test that pinned animators are left out of the shuffled partitions."""
        index = MemberIndex(two_group_track())

        assert index.dev_indexes == [0, 1, 2, 3, 4, 5]
        assert index.techlead_indexes == [7]
        assert index.pinned == [6, None]
        assert not index.single_group

    def test_feature_keys_are_identity_blind(self):
        """Test that members sharing year, project and role share a key."""
        track = Track(
            name="t",
            groups=[group("G1", 3)],
            members=[dev("AAA", 2015, "alpha"), dev("BBB", 2015, "alpha"), dev("CCC", 2015, "beta")],
        )
        index = MemberIndex(track)

        assert index.feature_keys[0] == index.feature_keys[1]
        assert index.feature_keys[0] != index.feature_keys[2]
        assert index.feature_keys[2] == FeatureKey(seniority=0, project=1, role=0)


class TestConstrainedShuffler:
    """Test cases for the ConstrainedShuffler class."""

    def test_headcounts_and_coverage(self):
        """Test that every shuffle covers each member once with exact headcounts."""
        track = two_group_track()
        index = MemberIndex(track)
        shuffler = ConstrainedShuffler(index, seed=42)

        for _ in range(200):
            assignment = shuffler.shuffle()
            placed = [member_idx for group_members in assignment for member_idx in group_members]
            assert sorted(placed) == list(range(len(track.members)))

            for grp, group_members in zip(track.groups, assignment):
                roles = [track.members[member_idx].role for member_idx in group_members]
                assert roles.count(Role.DEV) == grp.devs_count
                assert roles.count(Role.TECHLEAD) == grp.techleads_count

    def test_animator_stays_in_its_group(self):
        """Test that the pinned animator is always placed in its group."""
        index = MemberIndex(two_group_track())
        shuffler = ConstrainedShuffler(index, seed=1)

        for _ in range(100):
            assignment = shuffler.shuffle()
            assert 6 in assignment[0]
            assert 6 not in assignment[1]

    def test_dev_animator_takes_a_dev_slot(self):
        """Test that a dev animator counts against the dev headcount."""
        track = Track(
            name="t",
            groups=[group("G1", 2, animator="BBB"), group("G2", 2)],
            members=[dev("AAA"), dev("BBB"), dev("CCC"), dev("DDD")],
        )
        shuffler = ConstrainedShuffler(MemberIndex(track), seed=3)

        for _ in range(50):
            first, second = shuffler.shuffle()
            assert first[0] == 1
            assert len(first) == 2 and len(second) == 2

    def test_seed_makes_shuffles_reproducible(self):
        """Test that the same seed produces the same sequence of assignments."""
        index = MemberIndex(two_group_track())
        first = ConstrainedShuffler(index, seed=7)
        second = ConstrainedShuffler(index, seed=7)

        assert [first.shuffle() for _ in range(20)] == [second.shuffle() for _ in range(20)]

    def test_shuffles_vary(self):
        """Test that shuffles explore different assignments."""
        shuffler = ConstrainedShuffler(MemberIndex(two_group_track()), seed=5)

        distinct = {tuple(map(tuple, shuffler.shuffle())) for _ in range(100)}
        assert len(distinct) > 1


class TestAssignmentFromMapping:
    """Test cases for rebuilding assignments from stored mappings."""

    MAPPING = {
        "AAA": "G1", "CCC": "G1", "EEE": "G1", "TL1": "G1",
        "BBB": "G2", "DDD": "G2", "FFF": "G2", "TL2": "G2",
    }

    def test_rebuild(self):
        """Test that a valid mapping is turned into an assignment."""
        index = MemberIndex(two_group_track())

        assignment = assignment_from_mapping(index, self.MAPPING)

        assert assignment == [[6, 0, 2, 4], [7, 1, 3, 5]]

    def test_unknown_group(self):
        """Test that mappings to unknown groups are rejected."""
        index = MemberIndex(two_group_track())

        with pytest.raises(ValueError, match="unknown groups"):
            assignment_from_mapping(index, {**self.MAPPING, "AAA": "G9"})

    def test_misplaced_animator(self):
        """Test that the animator must be in its group."""
        index = MemberIndex(two_group_track())

        with pytest.raises(ValueError, match="animator"):
            assignment_from_mapping(index, {**self.MAPPING, "TL1": "G2", "TL2": "G1"})

    def test_broken_headcounts(self):
        """Test that headcounts must be respected."""
        index = MemberIndex(two_group_track())

        with pytest.raises(ValueError, match="expected 3 and 1"):
            assignment_from_mapping(index, {**self.MAPPING, "AAA": "G2"})
