"""Services"""

from backlog_link.services.backlog_client import BacklogAPIError, BacklogClient
from backlog_link.services.github_client import GitHubClient
from backlog_link.services.link_service import LinkService

__all__ = ["BacklogAPIError", "BacklogClient", "GitHubClient", "LinkService"]
