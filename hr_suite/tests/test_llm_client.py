from unittest import mock

from django.test import SimpleTestCase, override_settings
from requests import RequestException

from hr_suite.llm_client import call_llm, parse_json_content


def _response(payload):
    response = mock.Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


@override_settings(LLM_BASE_URL="https://llm.example/v1/", LLM_API_KEY="secret", LLM_MODEL="test-model")
class CallLLMTests(SimpleTestCase):
    @override_settings(LLM_BASE_URL=None)
    def test_unconfigured_provider_is_reported_without_network(self):
        with mock.patch("hr_suite.llm_client.requests.post") as post:
            result = call_llm([{"role": "user", "content": "hi"}])

        self.assertFalse(result["success"])
        post.assert_not_called()

    def test_returns_stripped_message_content(self):
        payload = {"choices": [{"message": {"content": "  Well done!  "}}]}
        with mock.patch("hr_suite.llm_client.requests.post", return_value=_response(payload)) as post:
            result = call_llm([{"role": "user", "content": "hi"}], temperature=0.5)

        self.assertEqual(result, {"success": True, "content": "Well done!"})
        args, kwargs = post.call_args
        self.assertEqual(args[0], "https://llm.example/v1/chat/completions")
        self.assertEqual(kwargs["json"]["model"], "test-model")
        self.assertEqual(kwargs["json"]["temperature"], 0.5)
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer secret")

    def test_http_failure_is_reported(self):
        with mock.patch("hr_suite.llm_client.requests.post", side_effect=RequestException("boom")):
            result = call_llm([{"role": "user", "content": "hi"}])

        self.assertFalse(result["success"])
        self.assertIn("boom", result["error"])

    def test_missing_choices_is_reported(self):
        with mock.patch("hr_suite.llm_client.requests.post", return_value=_response({})):
            result = call_llm([{"role": "user", "content": "hi"}])

        self.assertFalse(result["success"])

    def test_blank_content_is_a_failure(self):
        payload = {"choices": [{"message": {"content": "   "}}]}
        with mock.patch("hr_suite.llm_client.requests.post", return_value=_response(payload)):
            result = call_llm([{"role": "user", "content": "hi"}])

        self.assertFalse(result["success"])


class ParseJsonContentTests(SimpleTestCase):
    def test_plain_json(self):
        self.assertEqual(parse_json_content('["a", "b"]'), ["a", "b"])

    def test_embedded_json_is_extracted(self):
        content = 'Sure! Here you go:\n```json\n{"names": ["Falcons"]}\n```'
        self.assertEqual(parse_json_content(content), {"names": ["Falcons"]})

    def test_garbage_returns_none(self):
        self.assertIsNone(parse_json_content("no json here"))
        self.assertIsNone(parse_json_content(""))
