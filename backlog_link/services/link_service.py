"""Link pull requests to Backlog issues through custom fields"""
import logging
import re
from typing import Callable, Optional, Tuple, Union

from backlog_link.models import (
    CustomField,
    FieldUpdateResult,
    FieldValueState,
    IssueTracker,
    ParsedReference,
    UpdateOutcome,
)
from backlog_link.services.backlog_client import TEXT_FIELD_TYPE_ID

logger = logging.getLogger(__name__)

PR_FIELD_NAME = "Pull Request"
PR_STATUS_FIELD_NAME = "PR Status"
PR_FIELD_DESCRIPTION = "Field for pull request URL."
PR_STATUS_FIELD_DESCRIPTION = "Field for pull request status."


class FieldNotFoundError(LookupError):
    """Raised when an issue does not carry the requested custom field."""


class LinkService:
    """Parses Backlog references and keeps an issue's PR fields up to date"""

    def __init__(self, tracker: IssueTracker, host: str):
        self.tracker = tracker
        self.host = host
        self._reference_re = re.compile(rf"https://{re.escape(host)}/view/(\w+)-(\d+)")

    # ---- references ---------------------------------------------------
    def contains_reference(self, text: Optional[str]) -> bool:
        """Whether text embeds a Backlog issue URL for our host"""
        return self._reference_re.search(text or "") is not None

    def parse_reference(self, text: Optional[str]) -> Union[ParsedReference, Tuple[()]]:
        """Extract (url, project_key, issue_key) from text, or () when absent"""
        match = self._reference_re.search(text or "")
        if match is None:
            return ()
        project_key, issue_number = match.group(1), match.group(2)
        return ParsedReference(match.group(0), project_key, f"{project_key}-{issue_number}")

    def validate_project(self, project_key: str) -> bool:
        """Whether the project can be fetched; every failure counts as invalid"""
        try:
            self.tracker.get_project(project_key)
            return True
        except Exception as e:
            logger.debug(f"Project lookup failed for {project_key}: {e}")
            return False

    # ---- custom field resolution -------------------------------------
    def find_field(self, project_key: str, field_name: str) -> Optional[CustomField]:
        """First custom field on the project whose name matches exactly"""
        for data in self.tracker.get_custom_fields(project_key) or []:
            if data.get("name") == field_name:
                return CustomField.from_api(data)
        return None

    def create_field(self, project_key: str, field_name: str, description: str) -> CustomField:
        """Create a text custom field on the project"""
        # Not guarded against concurrent runs creating the same field.
        created = self.tracker.create_custom_field(
            project_key,
            name=field_name,
            type_id=TEXT_FIELD_TYPE_ID,
            description=description,
        )
        return CustomField.from_api(created)

    def get_or_create_field(
        self, project_key: str, field_name: str, description: str
    ) -> CustomField:
        """Find the named field, creating it when missing"""
        field = self.find_field(project_key, field_name)
        if field is not None:
            return field
        logger.info(f'Creating "{field_name}" custom field in project {project_key}')
        return self.create_field(project_key, field_name, description)

    def resolve_field(
        self,
        project_key: str,
        field_name: str,
        description: str,
        *,
        create_missing: bool = True,
    ) -> Optional[CustomField]:
        """Find (or find-or-create) a field for a pipeline stage.

        Returns None when the field is missing and creation is off, or when
        the tracker call fails; both are logged.
        """
        try:
            if create_missing:
                return self.get_or_create_field(project_key, field_name, description)
            field = self.find_field(project_key, field_name)
        except Exception as e:
            logger.error(f'Failed to resolve "{field_name}" custom field in project {project_key}: {e}')
            return None
        if field is None:
            logger.warning(f'Skip process since "{field_name}" custom field not found')
        return field

    def get_pr_field(self, project_key: str) -> Optional[CustomField]:
        return self.find_field(project_key, PR_FIELD_NAME)

    def create_pr_field(self, project_key: str) -> CustomField:
        return self.create_field(project_key, PR_FIELD_NAME, PR_FIELD_DESCRIPTION)

    def resolve_pr_field(self, project_key: str, *, create_missing: bool = True) -> Optional[CustomField]:
        return self.resolve_field(
            project_key, PR_FIELD_NAME, PR_FIELD_DESCRIPTION, create_missing=create_missing
        )

    def get_pr_status_field(self, project_key: str) -> Optional[CustomField]:
        return self.find_field(project_key, PR_STATUS_FIELD_NAME)

    def create_pr_status_field(self, project_key: str) -> CustomField:
        return self.create_field(project_key, PR_STATUS_FIELD_NAME, PR_STATUS_FIELD_DESCRIPTION)

    def resolve_pr_status_field(
        self, project_key: str, *, create_missing: bool = True
    ) -> Optional[CustomField]:
        return self.resolve_field(
            project_key,
            PR_STATUS_FIELD_NAME,
            PR_STATUS_FIELD_DESCRIPTION,
            create_missing=create_missing,
        )

    # ---- field updates ------------------------------------------------
    def get_current_field(self, issue_key: str, field_id: int) -> CustomField:
        """Read the issue and return its custom field with the given id"""
        issue = self.tracker.get_issue(issue_key)
        for data in issue.get("customFields") or []:
            if int(data.get("id", -1)) == field_id:
                return CustomField.from_api(data)
        raise FieldNotFoundError(f"Custom field {field_id} not found on issue {issue_key}")

    def _update_field(
        self,
        issue_key: str,
        field_id: int,
        merge: Callable[[CustomField], Optional[str]],
    ) -> FieldUpdateResult:
        """Fetch the field, let `merge` decide the new value (None = no-op), persist it."""
        try:
            current = self.get_current_field(issue_key, field_id)
        except Exception as e:
            logger.error(str(e))
            logger.warning(f"Invalid issue key: {issue_key}")
            return FieldUpdateResult(
                UpdateOutcome.FETCH_FAILED, issue_key, field_id, reason=str(e)
            )

        new_value = merge(current)
        if new_value is None:
            return FieldUpdateResult(
                UpdateOutcome.UNCHANGED, issue_key, field_id, value=current.value
            )

        try:
            self.tracker.patch_issue(issue_key, {f"customField_{current.id}": new_value})
        except Exception as e:
            logger.error(str(e))
            return FieldUpdateResult(
                UpdateOutcome.PERSIST_FAILED, issue_key, field_id, value=current.value, reason=str(e)
            )
        return FieldUpdateResult(UpdateOutcome.UPDATED, issue_key, field_id, value=new_value)

    def link_pull_request(self, issue_key: str, field_id: int, pr_url: str) -> FieldUpdateResult:
        """Append pr_url to the field unless it is already there"""

        def merge(current: CustomField) -> Optional[str]:
            if pr_url in current.text:
                logger.info(f"Pull Request ({pr_url}) is already linked.")
                return None
            if current.value_state == FieldValueState.TEXT:
                return f"{current.value}\n{pr_url}"
            return pr_url

        return self._update_field(issue_key, field_id, merge)

    def set_pull_request_status(self, issue_key: str, field_id: int, status: str) -> FieldUpdateResult:
        """Overwrite the field with status unless it already holds it"""

        def merge(current: CustomField) -> Optional[str]:
            if current.value == status:
                logger.info(f"PR Status ({status}) is already linked.")
                return None
            return status

        return self._update_field(issue_key, field_id, merge)

    def update_issue_pr_field(self, issue_key: str, field_id: int, pr_url: str) -> bool:
        return self.link_pull_request(issue_key, field_id, pr_url).updated

    def update_issue_pr_status_field(self, issue_key: str, field_id: int, status: str) -> bool:
        return self.set_pull_request_status(issue_key, field_id, status).updated
