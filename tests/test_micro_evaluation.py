"""
Tests for the micro-evaluation submission flow.
"""
import asyncio
import unittest

from confpulse.exceptions import InvalidCodeError, InvalidResponsesError
from confpulse.models import PointsReason

from fakes import make_activity, make_companion


class TestSubmitMicroEvaluation(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        activities = [
            make_activity("opening", ended_minutes_ago=5),
            make_activity("panel-a", ended_minutes_ago=20),
        ]
        for i in range(10):
            activities.append(make_activity(f"extra-{i}", day=2, ended_minutes_ago=90))
        (self.companion, self.participants,
         self.program, self.evaluations) = make_companion(activities=activities)
        self.participant = await self.companion.register_participant(
            "ada@example.org", code="AF-1001"
        )
        # A crowded leaderboard keeps the ambassador badge out of reach.
        for i in range(20):
            other = await self.companion.register_participant(f"p{i}@example.org", code=f"AF-2{i:03d}")
            await self.participants.increment_points(other.id, 1000)

    async def test_comment_and_early_bird_scores_30(self):
        result = await self.companion.submit_micro_evaluation(
            "AF-1001", self.participant.id, "opening",
            {"relevance": 4, "key_takeaway": "Fund local labs"},
        )
        self.assertTrue(result.success)
        self.assertEqual(result.points_earned, 30)
        self.assertTrue(result.is_early_bird)
        self.assertEqual(
            [b.model_dump() for b in result.bonus_details],
            [{"type": "comment", "points": 5}, {"type": "early_bird", "points": 15}],
        )
        self.assertEqual(self.participants.stored("AF-1001").total_points, 30)

    async def test_late_without_comment_scores_10(self):
        result = await self.companion.submit_micro_evaluation(
            "AF-1001", self.participant.id, "panel-a", {"quality": 3, "key_takeaway": ""}
        )
        self.assertEqual(result.points_earned, 10)
        self.assertEqual(result.bonus_details, [])
        self.assertFalse(result.is_early_bird)

    async def test_record_points_and_history_are_written(self):
        await self.companion.submit_micro_evaluation(
            "AF-1001", self.participant.id, "panel-a", {"quality": 3}
        )
        self.assertEqual(len(self.evaluations.micro_evaluations), 1)
        stored = self.evaluations.micro_evaluations[0]
        self.assertEqual(stored.points_earned, 10)
        self.assertFalse(stored.is_early_bird)
        self.assertEqual(len(self.evaluations.history), 1)
        entry = self.evaluations.history[0]
        self.assertEqual(entry.reason, PointsReason.MICRO_EVAL)
        self.assertEqual(entry.amount, 10)
        self.assertEqual(entry.activity_id, "panel-a")
        history = await self.companion.get_points_history("AF-1001")
        self.assertEqual([h.amount for h in history], [10])

    async def test_second_submission_is_already_answered(self):
        await self.companion.submit_micro_evaluation("AF-1001", self.participant.id, "panel-a", {})
        result = await self.companion.submit_micro_evaluation(
            "AF-1001", self.participant.id, "panel-a", {"quality": 4}
        )
        self.assertFalse(result.success)
        self.assertEqual(result.reason, "already_answered")
        self.assertEqual(self.participants.stored("AF-1001").total_points, 10)
        self.assertTrue(await self.companion.has_answered("AF-1001", "panel-a"))

    async def test_concurrent_double_submit_succeeds_once(self):
        """Two in-flight submissions for one pair: exactly one record, one award"""
        results = await asyncio.gather(*[
            self.companion.submit_micro_evaluation(
                "AF-1001", self.participant.id, "opening", {"key_takeaway": "x"}
            )
            for _ in range(2)
        ])
        self.assertEqual(sorted(r.success for r in results), [False, True])
        self.assertEqual(
            [r.reason for r in results if not r.success], ["already_answered"]
        )
        self.assertEqual(len(self.evaluations.micro_evaluations), 1)
        self.assertEqual(len(self.evaluations.history), 1)
        self.assertEqual(self.participants.stored("AF-1001").total_points, 30)

    async def test_unknown_activity(self):
        result = await self.companion.submit_micro_evaluation(
            "AF-1001", self.participant.id, "missing", {"quality": 3}
        )
        self.assertFalse(result.success)
        self.assertEqual(result.reason, "activity_not_found")
        self.assertEqual(self.evaluations.micro_evaluations, [])

    async def test_malformed_input_rejected_before_store(self):
        with self.assertRaises(InvalidCodeError):
            await self.companion.submit_micro_evaluation("1001", None, "opening", {})
        with self.assertRaises(InvalidResponsesError):
            await self.companion.submit_micro_evaluation("AF-1001", None, "opening", ["x"])

    async def test_resolves_participant_by_code_without_id(self):
        result = await self.companion.submit_micro_evaluation("AF-1001", None, "panel-a", {})
        self.assertTrue(result.success)
        self.assertEqual(self.participants.stored("AF-1001").total_points, 10)

    async def test_unregistered_code_is_rejected_without_writes(self):
        result = await self.companion.submit_micro_evaluation(
            "AF-4242", None, "opening", {"key_takeaway": "x"}
        )
        self.assertFalse(result.success)
        self.assertEqual(result.reason, "participant_not_found")
        self.assertEqual(result.points_earned, 0)
        self.assertEqual(self.evaluations.micro_evaluations, [])
        self.assertEqual(self.evaluations.history, [])
        self.assertIsNone(await self.participants.get_by_code("AF-4242"))

    async def test_fifth_submission_unlocks_network_builder(self):
        for activity_id in ["extra-0", "extra-1", "extra-2", "extra-3"]:
            result = await self.companion.submit_micro_evaluation(
                "AF-1001", self.participant.id, activity_id, {}
            )
            self.assertEqual(result.unlocked_badges, [])
        result = await self.companion.submit_micro_evaluation(
            "AF-1001", self.participant.id, "extra-4", {}
        )
        self.assertEqual([b.id for b in result.unlocked_badges], ["network_builder"])
        self.assertEqual(self.participants.stored("AF-1001").total_points, 5 * 10 + 10)


if __name__ == "__main__":
    unittest.main()
