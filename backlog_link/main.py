"""Entry point: link the triggering pull request to its Backlog issue"""
import logging
from typing import Any, Dict, Optional

from backlog_link.config import ConfigurationError, Settings, load_settings
from backlog_link.event import PullRequestEvent, load_event
from backlog_link.logging_config import configure_logging
from backlog_link.models import IssueTracker
from backlog_link.services.backlog_client import BacklogClient
from backlog_link.services.github_client import GitHubClient
from backlog_link.services.link_service import LinkService

logger = logging.getLogger(__name__)


def _new_report() -> Dict[str, Any]:
    return {
        "reference": None,
        "project_valid": False,
        "pr_linked": False,
        "status": None,
        "status_updated": False,
        "skipped": None,
    }


def run(
    settings: Settings,
    *,
    event: Optional[PullRequestEvent] = None,
    tracker: Optional[IssueTracker] = None,
    github: Optional[GitHubClient] = None,
) -> Dict[str, Any]:
    """Run the sync for one pull request event.

    Raises ConfigurationError for missing inputs; every other failure is
    logged and recorded in the returned report.
    """
    settings.require_runtime()
    if event is None:
        event = load_event(settings.github_event_path, default_repository=settings.github_repository)

    report = _new_report()
    if tracker is None:
        tracker = BacklogClient(settings.backlog_host, settings.backlog_api_key)
    service = LinkService(tracker, settings.backlog_host)

    if not service.contains_reference(event.body):
        logger.info("Skip process since body doesn't contain backlog URL")
        report["skipped"] = "no_reference"
        return report

    reference = service.parse_reference(event.body)
    if not reference:
        logger.info("Skip process since no backlog URL found")
        report["skipped"] = "no_reference"
        return report
    report["reference"] = reference.url

    if not service.validate_project(reference.project_key):
        logger.warning(f"Invalid project key: {reference.project_key}")
        report["skipped"] = "invalid_project"
        return report
    report["project_valid"] = True

    # Pull request link
    logger.info(f"Trying to link the Pull Request to {reference.url}")
    pr_field = service.resolve_pr_field(
        reference.project_key, create_missing=settings.create_missing_fields
    )
    if pr_field is not None:
        result = service.link_pull_request(reference.issue_key, pr_field.id, event.url)
        if result:
            logger.info(f"Pull Request ({event.url}) has been successfully linked.")
        report["pr_linked"] = result.updated

    # Pull request status
    logger.info(f"Trying to link the PR Status to {reference.url}")
    if not event.repository:
        logger.warning("Skip PR Status since the repository name is unknown")
        return report
    try:
        github = github or GitHubClient(settings.github_token, settings.github_api_url)
        status = github.get_pull_request_status(event.repository, event.number)
    except Exception as e:
        logger.error(f"Failed to get status of pull request #{event.number}: {e}")
        return report
    report["status"] = status

    status_field = service.resolve_pr_status_field(
        reference.project_key, create_missing=settings.create_missing_fields
    )
    if status_field is not None:
        result = service.set_pull_request_status(reference.issue_key, status_field.id, status)
        if result:
            logger.info(f"PR Status ({status}) has been successfully linked.")
        report["status_updated"] = result.updated

    return report


def main() -> int:
    """Console entry point; returns the process exit code"""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        configure_logging()
        logger.error(str(e))
        return 1

    configure_logging(settings.log_level, github_actions=settings.github_actions)
    try:
        report = run(settings)
    except ConfigurationError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.exception(f"Sync failed: {e}")
        return 1

    logger.debug(f"Sync completed: {report}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
