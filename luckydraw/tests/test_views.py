import json
from unittest import mock

from django.test import Client, TestCase, override_settings

from hr_suite.session_store import state_key
from hr_suite.tests.fakes import RedisTestMixin
from roster.ingestion import parse_participants
from roster.store import Roster, save_roster

CODE = "DRAW01"


@override_settings(HRSUITE_TEXT_GENERATOR="hr_suite.tests.fakes.StubTextGenerator")
class LuckyDrawAPITests(RedisTestMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.client = Client()

    def seed(self, text: str) -> Roster:
        roster = Roster(parse_participants(text))
        save_roster(self.redis, CODE, roster)
        return roster

    def draw(self, **payload):
        return self.client.post(
            f"/luckydraw/session/{CODE}/draw/",
            data=json.dumps(payload),
            content_type="application/json",
        )

    def test_draw_commits_winner_and_announces(self) -> None:
        self.seed("Amy")

        response = self.draw(prize="Gift card")

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["winner"]["name"], "Amy")
        self.assertEqual(payload["winner"]["prize"], "Gift card")
        self.assertEqual(payload["announcement"], "Hooray for Amy!")
        self.assertEqual(payload["frames"][-1]["index"], 0)
        self.assertEqual(payload["eligible_remaining"], 0)

        stored = json.loads(self.redis.get(state_key("winners", CODE)))
        self.assertEqual([w["name"] for w in stored], ["Amy"])

    def test_no_repeat_by_default(self) -> None:
        self.seed("Amy\nBen")

        first = self.draw().json()["winner"]
        second = self.draw().json()["winner"]
        third = self.draw()

        self.assertNotEqual(first["id"], second["id"])
        self.assertEqual(third.status_code, 409)
        self.assertFalse(third.json()["success"])

        status = self.client.get(f"/luckydraw/session/{CODE}/").json()
        self.assertEqual([w["id"] for w in status["winners"]], [second["id"], first["id"]])
        self.assertEqual(status["eligible_count"], 0)
        self.assertEqual(status["roster_count"], 2)

    def test_allow_repeat_ignores_history(self) -> None:
        self.seed("Amy")
        self.draw()

        response = self.draw(allow_repeat=True)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["winners"]), 2)
        self.assertEqual(response.json()["eligible_remaining"], 1)

    def test_empty_roster_is_refused_without_mutation(self) -> None:
        response = self.draw()

        self.assertEqual(response.status_code, 409)
        self.assertIsNone(self.redis.get(state_key("winners", CODE)))

    def test_clear_winners_is_idempotent(self) -> None:
        self.seed("Amy")
        self.draw()

        for _ in range(2):
            response = self.client.post(f"/luckydraw/session/{CODE}/winners/clear/")
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.json()["winners"], [])

        self.assertEqual(self.draw().status_code, 200)

    @override_settings(HRSUITE_TEXT_GENERATOR="hr_suite.tests.fakes.FailingTextGenerator")
    def test_announcement_failure_falls_back(self) -> None:
        self.seed("Amy")

        with self.assertLogs("hr_suite.text_generation", level="ERROR"):
            response = self.draw()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["announcement"], "Congratulations, Amy! You are the winner!")
        self.assertEqual(len(json.loads(self.redis.get(state_key("winners", CODE)))), 1)

    def test_winner_is_stored_before_announcement_is_requested(self) -> None:
        self.seed("Amy")
        seen = {}

        def announce(generator, name):
            seen["stored"] = json.loads(self.redis.get(state_key("winners", CODE)))
            return "Bravo"

        with mock.patch("luckydraw.views.generate_announcement", side_effect=announce):
            response = self.draw()

        self.assertEqual(response.json()["announcement"], "Bravo")
        self.assertEqual([w["name"] for w in seen["stored"]], ["Amy"])

    def test_announce_can_be_skipped(self) -> None:
        self.seed("Amy")

        with mock.patch("luckydraw.views.generate_announcement") as announce:
            response = self.draw(announce=False)

        announce.assert_not_called()
        self.assertIsNone(response.json()["announcement"])
