"""GitHub API client wrapper"""
import logging

from github import Auth, Github, GithubException

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
MERGED_STATUS = "merged"


class GitHubClient:
    """Wrapper for the GitHub pull request lookups we need"""

    def __init__(self, token: str, base_url: str = DEFAULT_API_URL):
        """Initialize GitHub client"""
        self.base_url = base_url
        self.gh = Github(base_url=base_url, auth=Auth.Token(token))

    def get_pull_request(self, repo: str, number: int):
        """Get a pull request by repository full name and number"""
        try:
            return self.gh.get_repo(repo).get_pull(int(number))
        except GithubException as e:
            logger.debug(f"Failed to get pull request {repo}#{number}: {e}")
            raise

    def get_pull_request_status(self, repo: str, number: int) -> str:
        """Status string for a PR: "merged" if merged, else its raw state"""
        pr = self.get_pull_request(repo, number)
        return MERGED_STATUS if pr.merged else pr.state
