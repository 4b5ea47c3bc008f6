import asyncio
import logging

import pytest

from app.core.logging import RequestIdFilter
from app.core.request_context import get_request_id


@pytest.mark.asyncio
async def test_each_response_gets_its_own_id(client):
    ids = {(await client.get("/api/v1/health")).headers["request-id"] for _ in range(5)}
    assert len(ids) == 5
    assert all(len(i) == 10 and i.isalnum() for i in ids)


@pytest.mark.asyncio
async def test_concurrent_requests_do_not_share_ids(app, client):
    seen = []

    @app.get("/whoami")
    async def whoami():
        first = get_request_id()
        await asyncio.sleep(0.01)
        seen.append(first == get_request_id())
        return {"id": first}

    responses = await asyncio.gather(*(client.get("/whoami") for _ in range(10)))
    assert all(seen)
    for r in responses:
        assert r.json()["id"] == r.headers["request-id"]
    assert get_request_id() is None


def test_log_records_outside_a_request_use_placeholder():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    assert RequestIdFilter().filter(record)
    assert record.request_id == "-"
