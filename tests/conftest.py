"""Shared fixtures: a fake Compute Engine API behind httpx.MockTransport."""

from typing import Any, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from micro_gce.compute import Compute
from micro_gce.core.config import ComputeConfig, ConnectionConfig
from micro_gce.core.connection import Connection

PROJECT = "test-project"
ZONE = "us-central1-a"
PROJECT_PATH = f"/compute/v1/projects/{PROJECT}"
ZONE_PATH = f"{PROJECT_PATH}/zones/{ZONE}"

Reply = Tuple[int, Any]


def error_body(code: int, message: str, reason: str = "error") -> Dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "errors": [{"domain": "global", "reason": reason, "message": message}],
        }
    }


NOT_FOUND = error_body(404, "The resource was not found", "notFound")


class FakeApi:
    """Routes requests by (method, path) to canned replies and records them.

    A route holds a list of replies; each request consumes one until the
    last, which is repeated. A reply may be an exception to raise instead.
    Unknown routes answer 404.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], List[Union[Reply, Exception]]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, *replies: Union[Reply, Exception]) -> None:
        self.routes[(method, path)] = list(replies)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        replies = self.routes.get((request.method, request.url.path))
        if not replies:
            return httpx.Response(404, json=NOT_FOUND)

        reply = replies.pop(0) if len(replies) > 1 else replies[0]
        if isinstance(reply, Exception):
            raise reply

        status, body = reply
        if body is None:
            return httpx.Response(status)
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    @property
    def last(self) -> Optional[httpx.Request]:
        return self.requests[-1] if self.requests else None


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def connection_config() -> ConnectionConfig:
    return ConnectionConfig(max_retries=1, retry_min_wait=0, retry_max_wait=0)


@pytest.fixture
def connection(api: FakeApi, connection_config: ConnectionConfig) -> Connection:
    client = httpx.AsyncClient(transport=httpx.MockTransport(api.handler))
    return Connection(connection_config, http_client=client)


@pytest.fixture
def config(connection_config: ConnectionConfig) -> ComputeConfig:
    return ComputeConfig(
        project_id=PROJECT,
        connection=connection_config,
        operation_poll_interval=0.01,
    )


@pytest.fixture
def compute(config: ComputeConfig, connection: Connection) -> Compute:
    return Compute(config, connection=connection)


@pytest.fixture
def zone(compute: Compute):
    return compute.zone(ZONE)
