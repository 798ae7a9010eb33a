"""Shared fixtures for evaluator tests: an in-process fake of the HTTP API."""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from evaluator.groups import StagedFile
from evaluator.session import EvaluatorSession


PLACEHOLDER_RESULT = {
    "coverage": "High",
    "confidence": "High",
    "conclusion": "The courses are equivalent",
    "courseMatches": "Course A matches Course B",
    "reasoning": "Based on the course descriptions provided.",
}


class FakeEvaluationsServer:
    """
    Answers the evaluations API over httpx.MockTransport.

    Failure injection knobs are plain attributes so tests can flip them
    between calls.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.uploads: List[Dict[str, Any]] = []
        self.created: List[Dict[str, Any]] = []
        self.evaluations: List[Dict[str, Any]] = []
        self.tickets_issued = 0

        self.fail_upload_at: Optional[int] = None
        self.omit_storage_id = False
        self.ticket_status = 200
        self.create_status = 201
        self.create_body: Optional[Any] = None
        self.list_status = 200
        self.network_down = False

    # Request log helpers

    def paths(self) -> List[str]:
        return [request.url.path for request in self.requests]

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and r.url.path == path)

    # Transport

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.network_down:
            raise httpx.ConnectError("connection refused", request=request)

        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path == "/api/v1/evaluations/generate_upload_url":
            if self.ticket_status != 200:
                return httpx.Response(self.ticket_status, json={"detail": "Authentication required"})
            self.tickets_issued += 1
            return httpx.Response(200, json=f"http://testserver/upload/{self.tickets_issued}")

        if request.method == "POST" and path.startswith("/upload/"):
            index = len(self.uploads)
            if self.fail_upload_at is not None and index == self.fail_upload_at:
                self.uploads.append({"failed": True})
                return httpx.Response(500, json={"error": "storage unavailable"})
            self.uploads.append({
                "content_type": request.headers.get("content-type"),
                "data": request.content,
            })
            if self.omit_storage_id:
                return httpx.Response(200, json={"ok": True})
            return httpx.Response(200, json={"storageId": f"ref-{index}"})

        if request.method == "POST" and path == "/api/v1/evaluations":
            payload = json.loads(request.content)
            if self.create_status != 201:
                body = self.create_body or {"errors": ["Input type can't be blank"]}
                return httpx.Response(self.create_status, json=body)
            self.created.append(payload)
            self.evaluations.insert(0, self._record_for(payload))
            return httpx.Response(201, json=self.create_body or PLACEHOLDER_RESULT)

        if request.method == "GET" and path == "/api/v1/evaluations":
            if self.list_status != 200:
                return httpx.Response(self.list_status, json={"detail": "Authentication required"})
            return httpx.Response(200, json=self.evaluations)

        return httpx.Response(404, json={"detail": "Not Found"})

    def _record_for(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        record_id = len(self.created)
        urls = [f"http://testserver/blobs/{ref}" for ref in payload.get("imageIds", [])]
        return {
            "id": record_id,
            "_id": record_id,
            "inputType": payload["inputType"],
            "input_type": payload["inputType"],
            "textInput": payload.get("textInput"),
            "text_input": payload.get("textInput"),
            "externalCoursesCount": payload.get("externalCoursesCount"),
            "external_courses_count": payload.get("externalCoursesCount"),
            "internalCoursesCount": payload.get("internalCoursesCount"),
            "internal_courses_count": payload.get("internalCoursesCount"),
            "isSimpleMode": payload["isSimpleMode"],
            "is_simple_mode": payload["isSimpleMode"],
            "imageUrls": urls,
            "image_urls": urls,
            "result": PLACEHOLDER_RESULT,
            "_creationTime": 1700000000000 + record_id,
            "creation_time": 1700000000000 + record_id,
        }


@pytest.fixture
def server():
    return FakeEvaluationsServer()


@pytest.fixture
def http_client(server):
    client = httpx.Client(transport=httpx.MockTransport(server.handler), base_url="http://testserver")
    yield client
    client.close()


@pytest.fixture
def session(http_client):
    session = EvaluatorSession(http_client)
    yield session
    session.teardown()


def make_image(name: str = "course.png", content_type: str = "image/png", data: Optional[bytes] = None) -> StagedFile:
    return StagedFile(name=name, content_type=content_type, data=data or name.encode())


@pytest.fixture
def image_factory():
    """Build staged image files with distinct contents."""
    return make_image


@pytest.fixture
def placeholder_result():
    return dict(PLACEHOLDER_RESULT)
