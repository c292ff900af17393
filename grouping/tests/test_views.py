import csv
import io
import json
from unittest import mock

import redis
from django.test import Client, TestCase, override_settings

from hr_suite.session_store import state_key
from hr_suite.tests.fakes import RedisTestMixin, _InMemoryLock
from roster.ingestion import parse_participants
from roster.store import Roster, save_roster

CODE = "TEAMS1"


@override_settings(HRSUITE_TEXT_GENERATOR="hr_suite.text_generation.OfflineTextGenerator")
class GroupingAPITests(RedisTestMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.client = Client()

    def seed(self, count: int) -> Roster:
        roster = Roster(parse_participants("\n".join(f"P{index}" for index in range(count))))
        save_roster(self.redis, CODE, roster)
        return roster

    def group(self, **payload):
        return self.client.post(
            f"/grouping/session/{CODE}/",
            data=json.dumps(payload),
            content_type="application/json",
        )

    def test_groups_partition_roster_with_fallback_names(self) -> None:
        roster = self.seed(10)

        response = self.group(group_size=4)

        self.assertEqual(response.status_code, 200)
        grouping = response.json()["grouping"]
        self.assertEqual([g["name"] for g in grouping["groups"]], ["Team 1", "Team 2", "Team 3"])
        self.assertEqual([len(g["members"]) for g in grouping["groups"]], [4, 4, 2])
        ids = [m["id"] for g in grouping["groups"] for m in g["members"]]
        self.assertEqual(sorted(ids), sorted(roster.ids()))
        self.assertEqual(grouping["names_source"], "fallback")

        stored = self.client.get(f"/grouping/session/{CODE}/").json()["grouping"]
        self.assertEqual(stored, grouping)

    def test_default_group_size_and_theme(self) -> None:
        self.seed(7)

        grouping = self.group().json()["grouping"]

        self.assertEqual(grouping["group_size"], 3)
        self.assertEqual(grouping["theme"], "Professional")
        self.assertEqual(grouping["group_count"], 3)

    def test_group_size_is_clamped_to_one(self) -> None:
        self.seed(3)

        grouping = self.group(group_size=0).json()["grouping"]

        self.assertEqual(grouping["group_size"], 1)
        self.assertEqual(grouping["group_count"], 3)

    def test_non_integer_group_size_is_rejected(self) -> None:
        self.seed(3)

        self.assertEqual(self.group(group_size="many").status_code, 400)
        self.assertEqual(self.group(group_size=True).status_code, 400)
        self.assertEqual(self.group(group_size=2.9).status_code, 400)
        self.assertIsNone(self.redis.get(state_key("groups", CODE)))

    def test_infinite_group_size_is_rejected(self) -> None:
        self.seed(3)

        response = self.client.post(
            f"/grouping/session/{CODE}/",
            data='{"group_size": Infinity}',
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 400)

    def test_whole_float_group_size_is_accepted(self) -> None:
        self.seed(4)

        self.assertEqual(self.group(group_size=2.0).json()["grouping"]["group_size"], 2)

    def test_redis_outage_while_locking_is_unavailable(self) -> None:
        self.seed(3)

        with mock.patch.object(_InMemoryLock, "acquire", side_effect=redis.ConnectionError("Connection refused")):
            response = self.group(group_size=2)

        self.assertEqual(response.status_code, 503)
        self.assertFalse(response.json()["success"])

    def test_empty_roster_is_refused(self) -> None:
        response = self.group(group_size=2)

        self.assertEqual(response.status_code, 409)
        self.assertIsNone(self.redis.get(state_key("groups", CODE)))

    def test_new_run_replaces_previous_batch(self) -> None:
        self.seed(6)
        first = self.group(group_size=2).json()["grouping"]
        second = self.group(group_size=3).json()["grouping"]

        stored = self.client.get(f"/grouping/session/{CODE}/").json()["grouping"]
        self.assertNotEqual(first["batch_id"], second["batch_id"])
        self.assertEqual(stored["batch_id"], second["batch_id"])
        self.assertEqual(stored["group_count"], 2)

    @override_settings(HRSUITE_TEXT_GENERATOR="hr_suite.tests.fakes.StubTextGenerator")
    def test_generated_names_are_stored(self) -> None:
        self.seed(4)

        grouping = self.group(group_size=2, theme="Ocean").json()["grouping"]

        self.assertEqual([g["name"] for g in grouping["groups"]], ["Ocean Squad 1", "Ocean Squad 2"])
        stored = self.client.get(f"/grouping/session/{CODE}/").json()["grouping"]
        self.assertEqual(stored["names_source"], "generated")
        self.assertEqual([g["name"] for g in stored["groups"]], ["Ocean Squad 1", "Ocean Squad 2"])

    @override_settings(HRSUITE_TEXT_GENERATOR="hr_suite.tests.fakes.ShortTextGenerator")
    def test_short_name_list_is_padded(self) -> None:
        self.seed(8)

        grouping = self.group(group_size=2).json()["grouping"]

        self.assertEqual(
            [g["name"] for g in grouping["groups"]],
            ["Rockets", "Team 2", "Team 3", "Team 4"],
        )

    @override_settings(HRSUITE_TEXT_GENERATOR="hr_suite.tests.fakes.FailingTextGenerator")
    def test_failing_generator_falls_back(self) -> None:
        self.seed(4)

        with self.assertLogs("hr_suite.text_generation", level="ERROR"):
            grouping = self.group(group_size=2).json()["grouping"]

        self.assertEqual([g["name"] for g in grouping["groups"]], ["Team 1", "Team 2"])

    def test_groups_are_stored_before_names_are_requested(self) -> None:
        self.seed(4)
        seen = {}

        def names(generator, count, theme):
            seen["stored"] = json.loads(self.redis.get(state_key("groups", CODE)))
            return ["Alpha", "Beta"]

        with mock.patch("grouping.views.generate_team_names", side_effect=names):
            grouping = self.group(group_size=2).json()["grouping"]

        self.assertEqual(seen["stored"]["batch_id"], grouping["batch_id"])
        self.assertEqual([g["name"] for g in seen["stored"]["groups"]], ["Team 1", "Team 2"])
        self.assertEqual([g["name"] for g in grouping["groups"]], ["Alpha", "Beta"])

    def test_export_csv(self) -> None:
        self.seed(5)
        grouping = self.group(group_size=2).json()["grouping"]

        response = self.client.get(f"/grouping/session/{CODE}/export/")

        self.assertEqual(response.status_code, 200)
        self.assertIn("attachment", response["Content-Disposition"])
        self.assertIn(".csv", response["Content-Disposition"])
        text = response.content.decode("utf-8")
        self.assertTrue(text.startswith("\ufeff組別,成員姓名\n"))
        rows = list(csv.reader(io.StringIO(text.lstrip("\ufeff"))))[1:]
        expected = [[g["name"], m["name"]] for g in grouping["groups"] for m in g["members"]]
        self.assertEqual(rows, expected)

    def test_export_without_grouping(self) -> None:
        response = self.client.get(f"/grouping/session/{CODE}/export/")
        self.assertEqual(response.status_code, 404)
