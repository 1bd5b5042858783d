import logging
import unittest
from unittest.mock import Mock

import requests

logging.disable(logging.CRITICAL)


def _response(status_code=200, payload=None, json_error=False):
    response = Mock()
    response.status_code = status_code
    if json_error:
        response.json = Mock(side_effect=ValueError("not json"))
    else:
        response.json = Mock(return_value=payload)
    return response


class BacklogClientApiCallTests(unittest.TestCase):
    def _client(self, response=None, side_effect=None):
        from backlog_link.services.backlog_client import BacklogClient

        session = Mock()
        session.request = Mock(return_value=response, side_effect=side_effect)
        return BacklogClient("example.backlog.com", "secret-key", session=session), session

    def test_init_builds_api_base_url(self):
        from backlog_link.services.backlog_client import BacklogClient

        client = BacklogClient("example.backlog.com", "k", session=Mock())

        self.assertEqual(client.base_url, "https://example.backlog.com/api/v2")

    def test_get_project_sends_api_key(self):
        client, session = self._client(_response(payload={"projectKey": "ABC"}))

        self.assertEqual(client.get_project("ABC"), {"projectKey": "ABC"})

        session.request.assert_called_once_with(
            "GET",
            "https://example.backlog.com/api/v2/projects/ABC",
            params={"apiKey": "secret-key"},
            data=None,
            timeout=30,
        )

    def test_get_custom_fields_calls_project_endpoint(self):
        client, session = self._client(_response(payload=[{"id": 1, "name": "Pull Request"}]))

        fields = client.get_custom_fields("ABC")

        self.assertEqual(fields, [{"id": 1, "name": "Pull Request"}])
        args, _ = session.request.call_args
        self.assertEqual(args, ("GET", "https://example.backlog.com/api/v2/projects/ABC/customFields"))

    def test_create_custom_field_posts_form(self):
        client, session = self._client(_response(payload={"id": 5, "name": "PR Status"}))

        created = client.create_custom_field("ABC", name="PR Status", type_id=1, description="d")

        self.assertEqual(created["id"], 5)
        args, kwargs = session.request.call_args
        self.assertEqual(args[0], "POST")
        self.assertEqual(kwargs["data"], {"typeId": 1, "name": "PR Status", "description": "d"})

    def test_get_issue_calls_issue_endpoint(self):
        client, session = self._client(_response(payload={"issueKey": "ABC-1", "customFields": []}))

        self.assertEqual(client.get_issue("ABC-1")["issueKey"], "ABC-1")
        args, _ = session.request.call_args
        self.assertEqual(args[1], "https://example.backlog.com/api/v2/issues/ABC-1")

    def test_patch_issue_sends_custom_field_form(self):
        client, session = self._client(_response(payload={"issueKey": "ABC-1"}))

        client.patch_issue("ABC-1", {"customField_7": "merged"})

        args, kwargs = session.request.call_args
        self.assertEqual(args[0], "PATCH")
        self.assertEqual(kwargs["data"], {"customField_7": "merged"})

    def test_error_response_raises_with_backlog_message(self):
        from backlog_link.services.backlog_client import BacklogAPIError

        body = {"errors": [{"message": "No project.", "code": 6, "moreInfo": ""}]}
        client, _ = self._client(_response(404, body))

        with self.assertRaises(BacklogAPIError) as ctx:
            client.get_project("NOPE")

        self.assertEqual(ctx.exception.status, 404)
        self.assertEqual(ctx.exception.code, 6)
        self.assertTrue(ctx.exception.not_found)
        self.assertIn("No project.", str(ctx.exception))

    def test_error_response_without_json_body(self):
        from backlog_link.services.backlog_client import BacklogAPIError

        client, _ = self._client(_response(502, json_error=True))

        with self.assertRaises(BacklogAPIError) as ctx:
            client.patch_issue("ABC-1", {"customField_1": "x"})

        self.assertEqual(ctx.exception.status, 502)
        self.assertIsNone(ctx.exception.code)

    def test_failed_patch_is_logged_once_at_error(self):
        from backlog_link.models import UpdateOutcome
        from backlog_link.services.link_service import LinkService

        logging.disable(logging.NOTSET)
        self.addCleanup(logging.disable, logging.CRITICAL)

        issue = {"issueKey": "ABC-1", "customFields": [{"id": 7, "name": "PR Status", "value": None}]}
        client, session = self._client()
        session.request = Mock(side_effect=[_response(payload=issue), _response(500, json_error=True)])
        svc = LinkService(client, "example.backlog.com")

        with self.assertLogs("backlog_link", level="DEBUG") as logs:
            result = svc.set_pull_request_status("ABC-1", 7, "open")

        self.assertEqual(result.outcome, UpdateOutcome.PERSIST_FAILED)
        errors = [r for r in logs.records if r.levelno >= logging.ERROR]
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].name, "backlog_link.services.link_service")

    def test_network_error_is_wrapped_without_leaking_api_key(self):
        from backlog_link.services.backlog_client import BacklogAPIError

        client, _ = self._client(
            side_effect=requests.ConnectionError("https://example.backlog.com/?apiKey=secret-key")
        )

        with self.assertRaises(BacklogAPIError) as ctx:
            client.get_issue("ABC-1")

        self.assertIsNone(ctx.exception.status)
        self.assertNotIn("secret-key", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
