# evaluator/api.py
"""
HTTP client for the evaluations API.

Thin wrapper over an injected httpx.Client (base URL, cookies and timeouts
belong to the caller). Maps statuses and transport errors onto the
evaluator error taxonomy:

- 401/403           -> AuthorizationFailure
- 422               -> ValidationFailure (server field errors)
- other non-2xx     -> ApiError
- transport errors  -> NetworkFailure
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from evaluator.errors import ApiError, AuthorizationFailure, NetworkFailure, ValidationFailure


_logger = logging.getLogger(__name__)

EVALUATIONS_PATH = "/api/v1/evaluations"
USERS_PATH = "/users"


class EvaluationsApi:
    """Calls the evaluations and auth endpoints with one httpx client."""

    def __init__(self, client: httpx.Client, base_path: str = EVALUATIONS_PATH):
        self.client = client
        self.base_path = base_path.rstrip("/")

    # =========================================================================
    # Evaluations
    # =========================================================================

    def list_evaluations(self) -> List[Dict[str, Any]]:
        body = self._json(self._request("GET", self.base_path))
        if not isinstance(body, list):
            raise ApiError(200, "Expected a list of evaluations")
        return body

    def create_evaluation(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = self._json(self._request("POST", self.base_path, json=payload))
        if not isinstance(body, dict):
            raise ApiError(201, "Expected an evaluation result object")
        return body

    def generate_upload_url(self) -> str:
        """Request a single-use upload URL (the body is a bare JSON string)."""
        body = self._json(self._request("POST", f"{self.base_path}/generate_upload_url"))
        if not isinstance(body, str) or not body:
            raise ApiError(200, "Expected an upload URL string")
        return body

    def upload_bytes(self, url: str, data: bytes, content_type: str) -> Dict[str, Any]:
        """POST raw bytes to an upload URL and return the acknowledgment."""
        response = self._request(
            "POST",
            url,
            content=data,
            headers={"Content-Type": content_type},
        )
        body = self._json(response)
        if not isinstance(body, dict):
            raise ApiError(response.status_code, "Expected an upload acknowledgment object")
        return body

    # =========================================================================
    # Auth
    # =========================================================================

    def sign_up(self, email: str, password: str) -> Dict[str, Any]:
        return self._json(self._request("POST", USERS_PATH, data={"email": email, "password": password}))

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        return self._json(
            self._request("POST", f"{USERS_PATH}/sign_in", data={"email": email, "password": password})
        )

    def sign_out(self) -> None:
        self._request("DELETE", f"{USERS_PATH}/sign_out")

    # =========================================================================
    # Internals
    # =========================================================================

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            _logger.warning(f"{method} {url} failed: {e.__class__.__name__}: {e}")
            raise NetworkFailure(str(e)) from e

        if response.is_success:
            return response

        detail = _error_detail(response)
        if response.status_code in (401, 403):
            raise AuthorizationFailure(detail or "Not authenticated")
        if response.status_code == 422:
            errors = _error_list(response)
            raise ValidationFailure(errors or [detail or "Validation failed"])
        raise ApiError(response.status_code, detail)

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(response.status_code, "Response body is not JSON") from e


def _safe_json(response: httpx.Response) -> Optional[Any]:
    try:
        return response.json()
    except ValueError:
        return None


def _error_list(response: httpx.Response) -> List[str]:
    body = _safe_json(response)
    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list):
            return [str(error) for error in errors]
        if body.get("error"):
            return [str(body["error"])]
    return []


def _error_detail(response: httpx.Response) -> str:
    body = _safe_json(response)
    if isinstance(body, dict):
        for key in ("error", "detail"):
            if isinstance(body.get(key), str):
                return body[key]
        if isinstance(body.get("errors"), list):
            return ", ".join(str(error) for error in body["errors"])
    return ""
