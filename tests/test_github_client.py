import logging
import unittest
from types import SimpleNamespace
from unittest.mock import Mock, patch

from github import GithubException

logging.disable(logging.CRITICAL)


class GitHubClientTests(unittest.TestCase):
    def test_init_uses_token_auth_and_base_url(self):
        from backlog_link.services.github_client import GitHubClient

        with patch("backlog_link.services.github_client.Github") as github_ctor:
            client = GitHubClient("tok", "https://ghe.example/api/v3")

        self.assertIs(client.gh, github_ctor.return_value)
        _, kwargs = github_ctor.call_args
        self.assertEqual(kwargs["base_url"], "https://ghe.example/api/v3")
        self.assertEqual(kwargs["auth"].token, "tok")

    def _client_with_pull(self, pull):
        from backlog_link.services.github_client import GitHubClient

        client = GitHubClient.__new__(GitHubClient)
        repo = Mock()
        repo.get_pull = Mock(return_value=pull)
        client.gh = Mock()
        client.gh.get_repo = Mock(return_value=repo)
        return client, repo

    def test_merged_pull_request_reports_merged(self):
        client, repo = self._client_with_pull(SimpleNamespace(merged=True, state="closed"))

        self.assertEqual(client.get_pull_request_status("acme/app", 7), "merged")
        client.gh.get_repo.assert_called_once_with("acme/app")
        repo.get_pull.assert_called_once_with(7)

    def test_unmerged_pull_request_reports_raw_state(self):
        client, _ = self._client_with_pull(SimpleNamespace(merged=False, state="open"))
        self.assertEqual(client.get_pull_request_status("acme/app", 7), "open")

        client, _ = self._client_with_pull(SimpleNamespace(merged=False, state="closed"))
        self.assertEqual(client.get_pull_request_status("acme/app", 7), "closed")

    def test_github_errors_propagate(self):
        from backlog_link.services.github_client import GitHubClient

        client = GitHubClient.__new__(GitHubClient)
        client.gh = Mock()
        client.gh.get_repo = Mock(side_effect=GithubException(404, {"message": "Not Found"}, None))

        with self.assertRaises(GithubException):
            client.get_pull_request_status("acme/missing", 1)


if __name__ == "__main__":
    unittest.main()
