# services/api_client.py

"""
Thin REST client for the Volunteer Match API.

Responses are JSON envelopes: {"data": ...} on success, {"error": ...} or
{"detail": ...} on failure. Every helper returns the unwrapped `data`
value and raises core.errors.ApiError otherwise.
"""

from typing import Any, Dict, List, Optional, Tuple
import json

import requests

from core.config import settings
from core.errors import ApiError
from core.logging_config import logger


# ============================================================
# Multipart helpers
# ============================================================
def flatten_form_fields(data: Dict[str, Any], prefix: str = "") -> List[Tuple[str, str]]:
    """
    Flatten a nested dict into multipart form fields.

        {"location": {"address": "x"}} -> [("location[address]", "x")]
        {"skills": ["a", "b"]}         -> [("skills[]", "a"), ("skills[]", "b")]

    None values are skipped; booleans become "true"/"false".
    """
    fields: List[Tuple[str, str]] = []

    for key, value in data.items():
        name = f"{prefix}[{key}]" if prefix else str(key)

        if value is None:
            continue
        if isinstance(value, dict):
            fields.extend(flatten_form_fields(value, name))
        elif isinstance(value, (list, tuple)):
            for item in value:
                if isinstance(item, dict):
                    fields.extend(flatten_form_fields(item, f"{name}[]"))
                elif item is not None:
                    fields.append((f"{name}[]", _form_value(item)))
        else:
            fields.append((name, _form_value(value)))

    return fields


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


# ============================================================
# Client
# ============================================================
class ApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.API_TIMEOUT_SECONDS
        self.session = session or requests.Session()
        self.token = token or settings.API_TOKEN

    def set_token(self, token: Optional[str]):
        self.token = token

    def _headers(self, json_body: bool = True) -> Dict[str, str]:
        headers = {}
        if json_body:
            headers["Content-Type"] = "application/json"
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    # --------------------------------------------------------
    # Core request
    # --------------------------------------------------------
    def request(self, method: str, endpoint: str, **kwargs) -> Any:
        url = f"{self.base_url}{endpoint}"
        json_body = "files" not in kwargs and "data" not in kwargs
        headers = self._headers(json_body=json_body)

        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            logger.error(f"API request failed: {method} {endpoint} — {e}")
            raise ApiError(str(e)) from e

        try:
            payload = response.json() if response.content else {}
        except (ValueError, json.JSONDecodeError):
            payload = {}

        if not response.ok:
            message = (
                (payload.get("error") or payload.get("detail"))
                if isinstance(payload, dict) else None
            ) or f"HTTP error! status: {response.status_code}"
            if not isinstance(message, str):
                message = json.dumps(message)
            logger.error(f"API request failed: {method} {endpoint} — {message}")
            raise ApiError(message, status_code=response.status_code)

        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload

    def get(self, endpoint: str, params: Optional[dict] = None) -> Any:
        return self.request("GET", endpoint, params=params)

    def post(self, endpoint: str, body: Optional[dict] = None) -> Any:
        return self.request("POST", endpoint, json=body or {})

    def put(self, endpoint: str, body: Optional[dict] = None) -> Any:
        return self.request("PUT", endpoint, json=body or {})

    def patch(self, endpoint: str, body: Optional[dict] = None) -> Any:
        return self.request("PATCH", endpoint, json=body or {})

    def delete(self, endpoint: str) -> Any:
        return self.request("DELETE", endpoint)

    def post_multipart(self, endpoint: str, fields: Dict[str, Any], files: List[Tuple[str, tuple]]) -> Any:
        return self.request(
            "POST",
            endpoint,
            data=flatten_form_fields(fields),
            files=files,
        )

    # --------------------------------------------------------
    # Requests
    # --------------------------------------------------------
    def get_requests(self, params: Optional[dict] = None) -> Any:
        return self.get("/requests", params=params)

    def get_all_requests(self) -> Any:
        return self.get("/admin/requests")

    def get_request(self, request_id: str) -> Any:
        return self.get(f"/requests/{request_id}")

    def search_requests(self, filters: Optional[dict] = None) -> Any:
        params = {k: v for k, v in (filters or {}).items() if v not in (None, "")}
        return self.get("/requests/search", params=params)

    def create_request(self, data: dict) -> Any:
        return self.post("/requests", data)

    def create_request_with_files(self, data: dict) -> Any:
        """
        Submit a request with attachments as multipart form data.
        Each attachment is a dict with name, content (bytes) and mimetype.
        """
        fields = {k: v for k, v in data.items() if k != "attachments"}
        files = [
            (
                "attachments",
                (a["name"], a.get("content", b""), a.get("mimetype") or "application/octet-stream"),
            )
            for a in data.get("attachments") or []
        ]
        return self.post_multipart("/requests/upload", fields, files)

    def update_request(self, request_id: str, data: dict) -> Any:
        return self.put(f"/requests/{request_id}", data)

    def delete_request(self, request_id: str) -> Any:
        return self.delete(f"/requests/{request_id}")

    def assign_volunteer(self, request_id: str, volunteer_id: str) -> Any:
        return self.post(f"/requests/{request_id}/assign/{volunteer_id}")

    def complete_request(self, request_id: str, body: dict) -> Any:
        return self.post(f"/requests/{request_id}/complete", body)

    def apply(self, request_id: str, message: str = "") -> Any:
        return self.post(f"/requests/{request_id}/apply", {"message": message})

    def cancel_application(self, request_id: str) -> Any:
        return self.delete(f"/requests/{request_id}/apply")

    def reject_request(self, request_id: str, reason: Optional[str] = None) -> Any:
        return self.post(f"/requests/{request_id}/reject", {"reason": reason})

    def cancel_request(self, request_id: str, reason: str) -> Any:
        return self.post(f"/requests/{request_id}/cancel", {"reason": reason})

    def toggle_freeze(self, request_id: str) -> Any:
        return self.post(f"/requests/{request_id}/freeze")

    def mark_shortlisted(self, request_id: str, saved: bool) -> Any:
        if saved:
            return self.post(f"/requests/{request_id}/shortlist")
        return self.delete(f"/requests/{request_id}/shortlist")

    # --------------------------------------------------------
    # Categories
    # --------------------------------------------------------
    def get_categories(self) -> Any:
        return self.get("/categories")

    # --------------------------------------------------------
    # Admin
    # --------------------------------------------------------
    def get_all_users(self) -> Any:
        return self.get("/admin/users")

    def batch_update_users(self, action: str, user_ids: List[str]) -> Any:
        return self.post("/admin/users/batch", {"action": action, "user_ids": user_ids})
