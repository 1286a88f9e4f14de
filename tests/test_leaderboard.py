"""
Tests for leaderboard ranking.
"""
import unittest

from confpulse.exceptions import InvalidLimitError
from confpulse.models import Participant
from confpulse.rules.leaderboard import (
    is_in_top_fraction,
    rank_of,
    rank_participants,
    top_fraction_threshold,
)

from fakes import make_companion


def _participants(points):
    return [
        Participant(code=f"AF-{1000 + i}", email=f"p{i}@example.org", total_points=p)
        for i, p in enumerate(points)
    ]


class TestRankParticipants(unittest.TestCase):

    def test_stable_tie_break(self):
        """Points [50, 80, 80, 30] rank as [4, 1, 2, 3]"""
        people = _participants([50, 80, 80, 30])
        entries = rank_participants(people)
        ranks = [rank_of(entries, p.code) for p in people]
        self.assertEqual(ranks, [4, 1, 2, 3])

    def test_deterministic_for_same_input(self):
        people = _participants([10, 10, 10, 5, 10])
        self.assertEqual(rank_participants(people), rank_participants(people))
        self.assertEqual([e.code for e in rank_participants(people)][:4],
                         ["AF-1000", "AF-1001", "AF-1002", "AF-1004"])

    def test_absent_participant_has_rank_zero(self):
        self.assertEqual(rank_of(rank_participants(_participants([1])), "AF-9999"), 0)

    def test_top_fraction(self):
        self.assertEqual(top_fraction_threshold(10, 0.1), 1)
        self.assertEqual(top_fraction_threshold(11, 0.1), 2)
        self.assertEqual(top_fraction_threshold(0, 0.1), 0)
        self.assertFalse(is_in_top_fraction(0, 10, 0.1))
        self.assertFalse(is_in_top_fraction(1, 0, 0.1))
        self.assertTrue(is_in_top_fraction(2, 11, 0.1))


class TestGetLeaderboard(unittest.IsolatedAsyncioTestCase):

    async def test_limit_and_my_rank(self):
        companion, participants, _, _ = make_companion()
        for i, points in enumerate([50, 80, 80, 30]):
            p = await companion.register_participant(f"p{i}@example.org", code=f"AF-{3000 + i}")
            await participants.increment_points(p.id, points)

        board = await companion.get_leaderboard(limit=2, participant_code="AF-3000")
        self.assertEqual([(e.rank, e.code, e.points) for e in board.entries],
                         [(1, "AF-3001", 80), (2, "AF-3002", 80)])
        self.assertEqual(board.my_rank, 4)
        self.assertEqual(board.total_participants, 4)

    async def test_non_positive_limit_rejected(self):
        companion, _, _, _ = make_companion()
        await companion.register_participant("a@example.org", code="AF-3000")
        for limit in (0, -1):
            with self.assertRaises(InvalidLimitError):
                await companion.get_leaderboard(limit=limit)

    async def test_unknown_caller_has_no_rank(self):
        companion, _, _, _ = make_companion()
        board = await companion.get_leaderboard(participant_code="AF-0000")
        self.assertIsNone(board.my_rank)
        self.assertEqual(board.entries, [])


if __name__ == "__main__":
    unittest.main()
