"""Pull request event payload reader"""
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from backlog_link.config import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class PullRequestEvent:
    """The parts of a pull_request event the sync needs"""

    number: int
    url: str
    body: str
    repository: Optional[str] = None

    @classmethod
    def from_payload(
        cls, payload: Dict[str, Any], *, default_repository: Optional[str] = None
    ) -> "PullRequestEvent":
        pr = payload.get("pull_request")
        if not isinstance(pr, dict):
            raise ConfigurationError(
                "Can't get pull_request payload. Check you trigger pull_request event"
            )
        url = (pr.get("html_url") or "").strip()
        if not url:
            raise ConfigurationError("pull_request payload has no html_url")
        number = pr.get("number")
        # bool is an int subclass; reject it along with missing and non-positive numbers.
        if isinstance(number, bool) or not str(number).isdigit() or int(number) <= 0:
            raise ConfigurationError(f"pull_request payload has no valid number: {number!r}")
        repo = (payload.get("repository") or {}).get("full_name") or default_repository
        return cls(
            number=int(number),
            url=url,
            body=pr.get("body") or "",
            repository=repo,
        )


def load_event(path: str, *, default_repository: Optional[str] = None) -> PullRequestEvent:
    """Read the event JSON written by the runner at GITHUB_EVENT_PATH"""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Failed to read event payload {path}: {e}") from e
    if not isinstance(payload, dict):
        raise ConfigurationError(f"Event payload {path} is not a JSON object")
    event = PullRequestEvent.from_payload(payload, default_repository=default_repository)
    logger.debug(f"Loaded pull request #{event.number} event from {path}")
    return event
