from typing import Dict, Optional
from urllib.parse import parse_qsl
import json


class ConfigNotFoundError(Exception):
    """Raised when no Xero application config is available."""


class OAuthFlowError(Exception):
    """Raised when a step of the OAuth 1.0a handshake fails."""


class XeroApiError(Exception):
    """Non-2xx response from the Xero accounting API."""

    def __init__(self, status_code: int, data: Optional[Dict] = None, message: Optional[str] = None):
        self.status_code = status_code
        self.data = data or {}
        super().__init__(message or f"Xero API request failed with status {status_code}")

    @property
    def oauth_problem(self) -> Optional[str]:
        return self.data.get("oauth_problem")

    @classmethod
    def from_response(cls, status_code: int, body: str) -> "XeroApiError":
        """Build an error from a raw response body.

        Xero reports OAuth failures as urlencoded bodies
        (``oauth_problem=token_rejected&oauth_problem_advice=...``) and
        validation failures as JSON.
        """
        data: Dict = {}
        try:
            parsed = json.loads(body) if body else {}
            if isinstance(parsed, dict):
                data = parsed
        except json.JSONDecodeError:
            if "oauth_problem" in body:
                data = dict(parse_qsl(body))
            elif body:
                data = {"Message": body}

        validation_errors = [
            error.get("Message")
            for element in data.get("Elements") or []
            for error in element.get("ValidationErrors") or []
            if error.get("Message")
        ]
        message = (
            "; ".join(validation_errors)
            or data.get("oauth_problem_advice")
            or data.get("Message")
            or data.get("oauth_problem")
        )
        if message:
            message = f"{status_code}: {message}"
        return cls(status_code, data, message)
