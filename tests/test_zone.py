import json
from unittest.mock import Mock

import pytest

from conftest import NOT_FOUND, PROJECT, ZONE, ZONE_PATH, error_body
from micro_gce.compute import Autoscaler, Operation
from micro_gce.compute.zone import build_autoscaler_body
from micro_gce.core.errors import ApiError

PROJECT_URL = f"https://www.googleapis.com/compute/v1/projects/{PROJECT}"
IGM_URL = f"{PROJECT_URL}/zones/{ZONE}/instanceGroupManagers/ig-1"
OPERATION = {"name": "operation-create", "status": "PENDING"}


def test_build_body_translates_shorthands():
    body = build_autoscaler_body(
        PROJECT_URL,
        ZONE,
        "as-1",
        {
            "cool_down": 30,
            "cpu": 80,
            "load_balance": 40,
            "max_replicas": 5,
            "min_replicas": 0,
            "target": "ig-1",
            "description": "web tier",
        },
    )

    assert body == {
        "name": "as-1",
        "description": "web tier",
        "target": IGM_URL,
        "autoscalingPolicy": {
            "coolDownPeriodSec": 30,
            "cpuUtilization": {"utilizationTarget": 0.8},
            "loadBalancingUtilization": {"utilizationTarget": 0.4},
            "maxNumReplicas": 5,
            "minNumReplicas": 0,
        },
    }


def test_build_body_keeps_full_target_and_explicit_policy():
    body = build_autoscaler_body(
        PROJECT_URL,
        ZONE,
        "as-1",
        {
            "target": IGM_URL,
            "autoscalingPolicy": {"maxNumReplicas": 10},
            "min_replicas": 2,
        },
    )

    assert body["target"] == IGM_URL
    assert body["autoscalingPolicy"] == {"maxNumReplicas": 10, "minNumReplicas": 2}


def test_handles_are_built_without_requests(api, zone):
    autoscaler = zone.autoscaler("as-1")
    operation = zone.operation("op-1")

    assert isinstance(autoscaler, Autoscaler)
    assert isinstance(operation, Operation)
    assert operation.scope is zone
    assert api.requests == []


def test_zone_does_not_expose_delete(zone):
    with pytest.raises(AttributeError):
        zone.delete


@pytest.mark.asyncio
async def test_create_autoscaler_requires_name_and_target(zone):
    with pytest.raises(ValueError):
        await zone.create_autoscaler("", {"target": "ig-1"})
    with pytest.raises(ValueError):
        await zone.create_autoscaler("as-1", {"cpu": 50})


@pytest.mark.asyncio
async def test_create_autoscaler_posts_body(api, zone):
    api.add("POST", f"{ZONE_PATH}/autoscalers", (200, OPERATION))
    callback = Mock()

    result = await zone.create_autoscaler("as-1", {"target": "ig-1", "max_replicas": 4}, callback)

    assert api.last.method == "POST"
    assert json.loads(api.last.content) == {
        "name": "as-1",
        "target": IGM_URL,
        "autoscalingPolicy": {"maxNumReplicas": 4},
    }

    error, autoscaler, operation, response = callback.call_args.args
    assert error is None
    assert autoscaler.name == "as-1"
    assert autoscaler.zone is zone
    assert operation.name == "operation-create"
    assert operation.metadata is response
    assert result.value is autoscaler
    assert result.operation is operation


@pytest.mark.asyncio
async def test_create_autoscaler_failure_shape(api, zone):
    body = error_body(409, "Already exists", "alreadyExists")
    api.add("POST", f"{ZONE_PATH}/autoscalers", (409, body))
    callback = Mock()

    result = await zone.create_autoscaler("as-1", {"target": "ig-1"}, callback)

    error, autoscaler, operation, response = callback.call_args.args
    assert error.code == 409
    assert autoscaler is None
    assert operation is None
    assert response == body
    assert not result.ok


@pytest.mark.asyncio
async def test_get_autoscalers_pages(api, zone):
    api.add(
        "GET",
        f"{ZONE_PATH}/autoscalers",
        (200, {"items": [{"name": "as-1"}, {"name": "as-2"}], "nextPageToken": "next"}),
    )
    callback = Mock()

    result = await zone.get_autoscalers({"maxResults": 2}, callback)

    assert api.last.url.params["maxResults"] == "2"
    error, autoscalers, next_query, response = callback.call_args.args
    assert error is None
    assert [a.name for a in autoscalers] == ["as-1", "as-2"]
    assert autoscalers[0].metadata == {"name": "as-1"}
    assert next_query == {"maxResults": 2, "pageToken": "next"}
    assert result.next_query == next_query


@pytest.mark.asyncio
async def test_get_autoscalers_last_page(api, zone):
    api.add("GET", f"{ZONE_PATH}/autoscalers", (200, {"kind": "compute#autoscalerList"}))

    result = await zone.get_autoscalers()

    assert result.value == []
    assert result.next_query is None


@pytest.mark.asyncio
async def test_get_autoscalers_accepts_callback_in_place_of_options(api, zone):
    api.add("GET", f"{ZONE_PATH}/autoscalers", (200, {"items": [{"name": "as-1"}]}))
    callback = Mock()

    await zone.get_autoscalers(callback)

    error, autoscalers, next_query, response = callback.call_args.args
    assert error is None
    assert [a.name for a in autoscalers] == ["as-1"]
    assert next_query is None


@pytest.mark.asyncio
async def test_iter_autoscalers_follows_page_tokens(api, zone):
    api.add(
        "GET",
        f"{ZONE_PATH}/autoscalers",
        (200, {"items": [{"name": "as-1"}], "nextPageToken": "p2"}),
        (200, {"items": [{"name": "as-2"}]}),
    )

    names = [autoscaler.name async for autoscaler in zone.iter_autoscalers()]

    assert names == ["as-1", "as-2"]
    assert api.requests[1].url.params["pageToken"] == "p2"


@pytest.mark.asyncio
async def test_iter_autoscalers_raises_on_failure(api, zone):
    api.add("GET", f"{ZONE_PATH}/autoscalers", (403, error_body(403, "Forbidden")))

    with pytest.raises(ApiError) as excinfo:
        async for _ in zone.iter_autoscalers():
            pass

    assert excinfo.value.code == 403


@pytest.mark.asyncio
async def test_zone_exists(api, zone):
    api.add("GET", ZONE_PATH, (200, {"name": ZONE, "status": "UP"}))

    result = await zone.exists()

    assert result.value is True


@pytest.mark.asyncio
async def test_zone_get_metadata_not_found(api, compute):
    result = await compute.zone("nowhere-1").get_metadata()

    assert result.error.code == 404
    assert result.api_response == NOT_FOUND
