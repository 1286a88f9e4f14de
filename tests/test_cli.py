"""
Tests for the organizer command line.
"""
import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

from confpulse.cli import build_parser, run
from confpulse.exceptions import InvalidLimitError

from fakes import make_companion


class TestParser(unittest.TestCase):

    def test_open_requires_known_type(self):
        args = build_parser().parse_args(["open", "day1"])
        self.assertEqual(args.evaluation_type, "day1")
        with self.assertRaises(SystemExit):
            build_parser().parse_args(["open", "day4"])

    def test_leaderboard_limit(self):
        args = build_parser().parse_args(["leaderboard", "-n", "3"])
        self.assertEqual(args.limit, 3)


class TestRun(unittest.IsolatedAsyncioTestCase):

    async def _run(self, companion, *argv):
        out = io.StringIO()
        with redirect_stdout(out):
            code = await run(build_parser().parse_args(list(argv)), companion)
        return code, out.getvalue()

    async def test_open_then_status(self):
        companion, _, _, evaluations = make_companion()
        code, _ = await self._run(companion, "open", "day1")
        self.assertEqual(code, 0)
        self.assertTrue(evaluations.status.day1.is_open)
        _, output = await self._run(companion, "status")
        self.assertIn("day1", output)

    async def test_register_and_leaderboard(self):
        companion, _, _, _ = make_companion()
        _, output = await self._run(companion, "register", "--email", "a@example.org", "--code", "AF-1234")
        self.assertEqual(output.strip(), "AF-1234")
        _, output = await self._run(companion, "leaderboard")
        self.assertIn("AF-1234", output)

    async def test_leaderboard_rejects_zero_limit(self):
        companion, _, _, _ = make_companion()
        with self.assertRaises(InvalidLimitError):
            await self._run(companion, "leaderboard", "-n", "0")

    async def test_load_program(self):
        companion, _, program, _ = make_companion()
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "program.json"
            path.write_text(json.dumps([
                {"id": "opening", "type": "plenary", "day": 1, "title": {"en": "Opening"}},
                {"id": "lunch", "type": "break", "day": 1},
            ]))
            code, output = await self._run(companion, "load-program", str(path))
        self.assertEqual(code, 0)
        self.assertIn("Loaded 2", output)
        self.assertEqual(await program.count(), 2)

    async def test_end_unknown_activity(self):
        companion, _, _, _ = make_companion()
        code, _ = await self._run(companion, "end-activity", "nope")
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
