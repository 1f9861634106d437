import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from household_budget.integration.household import HouseholdAPIError, HouseholdClient


def _response(payload: Any) -> MagicMock:
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = payload
    return response


def _status_error(status_code: int) -> MagicMock:
    request = httpx.Request("GET", "http://test")
    error_response = httpx.Response(status_code, request=request)
    response = MagicMock()
    response.raise_for_status.side_effect = httpx.HTTPStatusError(
        "error", request=request, response=error_response
    )
    return response


def _client_with(responses: list[Any], **kwargs: Any) -> tuple[HouseholdClient, AsyncMock]:
    http = AsyncMock()
    http.is_closed = False
    http.get = AsyncMock(side_effect=responses)
    return HouseholdClient(base_url="http://test/", token="secret", client=http, **kwargs), http


@pytest.mark.anyio
async def test_get_family_sends_bearer_token() -> None:
    client, http = _client_with([_response({"id": "f1", "members": [{}, {}]})], family_cache_ttl=0)

    family = await client.get_family("f1")

    assert family == {"id": "f1", "members": [{}, {}]}
    url = http.get.call_args.args[0]
    headers = http.get.call_args.kwargs["headers"]
    assert url == "http://test/api/families/f1"
    assert headers["Authorization"] == "Bearer secret"


@pytest.mark.anyio
async def test_family_profile_is_cached() -> None:
    client, http = _client_with([_response({"id": "f1"})], family_cache_ttl=60)

    first = await client.get_family("f1")
    second = await client.get_family("f1")

    assert first == second == {"id": "f1"}
    assert http.get.await_count == 1


@pytest.mark.anyio
async def test_expired_cache_refetches() -> None:
    client, http = _client_with([_response({"id": "f1", "v": 1}), _response({"id": "f1", "v": 2})],
                                family_cache_ttl=10)

    with patch("household_budget.integration.household.monotonic", side_effect=[0.0, 5.0, 20.0, 20.0]):
        assert (await client.get_family("f1"))["v"] == 1
        assert (await client.get_family("f1"))["v"] == 1
        assert (await client.get_family("f1"))["v"] == 2

    assert http.get.await_count == 2


@pytest.mark.anyio
async def test_missing_family_returns_none() -> None:
    client, _ = _client_with([_status_error(404)], family_cache_ttl=0)

    assert await client.get_family("nope", raise_on_error=True) is None


@pytest.mark.anyio
async def test_family_error_raises_when_asked() -> None:
    client, _ = _client_with([_status_error(500)], family_cache_ttl=0)

    with pytest.raises(HouseholdAPIError):
        await client.get_family("f1", raise_on_error=True)


@pytest.mark.anyio
async def test_family_error_serves_stale_profile() -> None:
    client, _ = _client_with([_response({"id": "f1"}), httpx.ConnectError("down")], family_cache_ttl=10)

    with patch("household_budget.integration.household.monotonic", side_effect=[0.0, 50.0, 50.0]):
        assert await client.get_family("f1") == {"id": "f1"}
        assert await client.get_family("f1", raise_on_error=True) == {"id": "f1"}


@pytest.mark.anyio
async def test_slow_family_fetch_does_not_block_other_families() -> None:
    release = asyncio.Event()

    async def fake_get(url: str, headers: dict[str, str]) -> MagicMock:
        family_id = url.rsplit("/", 1)[-1]
        if family_id == "slow":
            await release.wait()
        return _response({"id": family_id})

    http = AsyncMock()
    http.is_closed = False
    http.get = AsyncMock(side_effect=fake_get)
    client = HouseholdClient(base_url="http://test", client=http, family_cache_ttl=60)

    slow = asyncio.create_task(client.get_family("slow"))
    await asyncio.sleep(0)

    assert await asyncio.wait_for(client.get_family("fast"), timeout=1) == {"id": "fast"}
    release.set()
    assert await slow == {"id": "slow"}
    assert await client.get_family("slow") == {"id": "slow"}
    assert http.get.await_count == 2


@pytest.mark.anyio
async def test_rows_accept_list_or_data_envelope() -> None:
    client, http = _client_with([
        _response([{"id": "1"}]),
        _response({"data": [{"id": "2"}, {"id": "3"}]}),
    ])

    income = await client.get_income("f1")
    expenses = await client.get_expenses("f1")

    assert income == [{"id": "1"}]
    assert [row["id"] for row in expenses] == ["2", "3"]
    assert http.get.call_args_list[0].args[0] == "http://test/api/families/f1/budget/income"
    assert http.get.call_args_list[1].args[0] == "http://test/api/families/f1/budget/expenses"


@pytest.mark.anyio
async def test_row_errors_are_empty_unless_raising() -> None:
    client, _ = _client_with([httpx.ReadTimeout("slow"), httpx.ReadTimeout("slow")])

    assert await client.get_expenses("f1") == []
    with pytest.raises(HouseholdAPIError):
        await client.get_expenses("f1", raise_on_error=True)


@pytest.mark.anyio
async def test_unconfigured_client(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HOUSEHOLD_API_URL", raising=False)
    client = HouseholdClient(family_cache_ttl=0)

    assert not client.configured
    assert await client.get_income("f1") == []
    assert await client.get_family("f1") is None
    with pytest.raises(HouseholdAPIError):
        await client.get_family("f1", raise_on_error=True)


@pytest.mark.anyio
async def test_lazy_client_is_created_once() -> None:
    client = HouseholdClient(base_url="http://test", family_cache_ttl=0)

    with patch("httpx.AsyncClient") as mock_client_cls:
        http = AsyncMock()
        http.is_closed = False
        http.get = AsyncMock(return_value=_response([]))
        mock_client_cls.return_value = http

        await client.get_income("f1")
        await client.get_expenses("f1")
        await client.aclose()

    mock_client_cls.assert_called_once()
    http.aclose.assert_awaited_once()


@pytest.mark.anyio
async def test_get_events_reads_family_calendar() -> None:
    client, http = _client_with([
        _response([{"id": "e1", "title": "School trip", "cost": 25}]),
        httpx.ConnectError("down"),
    ])

    assert await client.get_events("f1") == [{"id": "e1", "title": "School trip", "cost": 25}]
    assert http.get.call_args.args[0] == "http://test/api/families/f1/events"
    assert await client.get_events("f1") == []
