"""Backlog API client wrapper"""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

# Backlog custom field type ids
TEXT_FIELD_TYPE_ID = 1

HTTP_ERROR_STATUS = 400
REQUEST_TIMEOUT_S = 30


class BacklogAPIError(RuntimeError):
    """Raised when the Backlog API returns an error or cannot be reached."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[int] = None,
    ):
        super().__init__(message)
        self.status = status
        self.code = code

    @property
    def not_found(self) -> bool:
        return self.status == 404


class BacklogClient:
    """Wrapper for Backlog API v2 operations"""

    def __init__(self, host: str, api_key: str, session: Optional[requests.Session] = None):
        """Initialize Backlog client"""
        self.host = host
        self.base_url = f"https://{host}/api/v2"
        self.api_key = api_key
        self.session = session or requests.Session()

    @staticmethod
    def _error_from_response(method: str, path: str, response: requests.Response) -> BacklogAPIError:
        """Build an error from Backlog's `{"errors": [...]}` body when present."""
        message = f"Backlog API {method} {path} failed with {response.status_code}"
        code = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("errors"):
            first = body["errors"][0] or {}
            code = first.get("code")
            if first.get("message"):
                message = f"{message}: {first['message']}"
        return BacklogAPIError(message, status=response.status_code, code=code)

    def _request(
        self,
        method: str,
        path: str,
        *,
        data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.request(
                method,
                url,
                params={"apiKey": self.api_key},
                data=data,
                timeout=REQUEST_TIMEOUT_S,
            )
        except requests.RequestException as e:
            # The URL carries the api key; keep it out of the message.
            raise BacklogAPIError(f"Backlog API {method} {path} failed: {type(e).__name__}") from e

        if response.status_code >= HTTP_ERROR_STATUS:
            raise self._error_from_response(method, path, response)
        return response.json()

    def get_project(self, project_key: str) -> Dict[str, Any]:
        """Get project by key or id"""
        return self._request("GET", f"projects/{quote(project_key, safe='')}")

    def get_custom_fields(self, project_key: str) -> List[Dict[str, Any]]:
        """List custom fields defined on a project"""
        try:
            return self._request("GET", f"projects/{quote(project_key, safe='')}/customFields")
        except BacklogAPIError as e:
            logger.debug(f"Failed to list custom fields for project {project_key}: {e}")
            raise

    def create_custom_field(
        self,
        project_key: str,
        *,
        name: str,
        type_id: int = TEXT_FIELD_TYPE_ID,
        description: str = "",
    ) -> Dict[str, Any]:
        """Create a custom field on a project"""
        try:
            created = self._request(
                "POST",
                f"projects/{quote(project_key, safe='')}/customFields",
                data={"typeId": type_id, "name": name, "description": description},
            )
            logger.info(f"Created custom field '{name}' (id={created.get('id')}) in project {project_key}")
            return created
        except BacklogAPIError as e:
            logger.debug(f"Failed to create custom field '{name}' in project {project_key}: {e}")
            raise

    def get_issue(self, issue_key: str) -> Dict[str, Any]:
        """Get issue by key or id"""
        return self._request("GET", f"issues/{quote(issue_key, safe='')}")

    def patch_issue(self, issue_key: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Update an existing issue"""
        try:
            issue = self._request("PATCH", f"issues/{quote(issue_key, safe='')}", data=data)
            logger.info(f"Updated issue {issue_key}")
            return issue
        except BacklogAPIError as e:
            logger.debug(f"Failed to update issue {issue_key}: {e}")
            raise
