import httpx
import pytest
from unittest.mock import AsyncMock

from submission_analyzer.core.page_fetcher import PageFetcher, SUBMISSIONS_PATH
from submission_analyzer.errors import DecodeError, FetchError


def judge_payload(offset: int, count: int) -> dict:
    return {
        "submissions_dump": [
            {
                "id": offset + i,
                "title": f"Problem {offset + i}",
                "status_display": "Accepted" if (offset + i) % 2 == 0 else "Wrong Answer",
                "lang": "python3",
                "code": "pass",
            }
            for i in range(count)
        ],
        "has_next": True,
    }


@pytest.fixture
def recorded_requests():
    return []


@pytest.fixture
def make_fetcher(recorded_requests):
    """Builds a PageFetcher whose HTTP client is served by ``handler``."""
    def _make(handler=None, page_delay=0.5):
        def default_handler(request: httpx.Request) -> httpx.Response:
            offset = int(request.url.params["offset"])
            limit = int(request.url.params["limit"])
            return httpx.Response(200, json=judge_payload(offset, limit))

        def recording_handler(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            return (handler or default_handler)(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        return PageFetcher(base_url="https://judge.test", page_size=20, page_delay=page_delay, client=client)
    return _make


@pytest.fixture
def mock_sleep(mocker):
    return mocker.patch("submission_analyzer.core.page_fetcher.asyncio.sleep", new_callable=AsyncMock)


def test_plan_pages_splits_limit_into_page_sized_requests(make_fetcher):
    fetcher = make_fetcher()
    assert fetcher.plan_pages(25) == [(0, 20), (20, 5)]
    assert fetcher.plan_pages(40) == [(0, 20), (20, 20)]
    assert fetcher.plan_pages(1) == [(0, 1)]


@pytest.mark.parametrize("limit", [0, -3])
def test_plan_pages_non_positive_limit_is_empty(make_fetcher, limit):
    assert make_fetcher().plan_pages(limit) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [0, -1])
async def test_fetch_non_positive_limit_makes_no_requests(make_fetcher, recorded_requests, mock_sleep, limit):
    fetcher = make_fetcher()

    submissions = await fetcher.fetch("LEETCODE_SESSION=abc", limit)

    assert submissions == []
    assert recorded_requests == []
    mock_sleep.assert_not_called()


@pytest.mark.asyncio
async def test_fetch_issues_two_requests_for_limit_25(make_fetcher, recorded_requests, mock_sleep):
    """25 submissions need a full page of 20 followed by a page of 5."""
    fetcher = make_fetcher()

    submissions = await fetcher.fetch("LEETCODE_SESSION=abc", 25)

    assert len(recorded_requests) == 2
    assert [(r.url.params["offset"], r.url.params["limit"]) for r in recorded_requests] == [("0", "20"), ("20", "5")]
    assert all(r.url.path == SUBMISSIONS_PATH for r in recorded_requests)
    assert all(r.headers["Cookie"] == "LEETCODE_SESSION=abc" for r in recorded_requests)
    assert len(submissions) == 25
    assert [s.id for s in submissions] == list(range(25))


@pytest.mark.asyncio
async def test_fetch_waits_between_pages_only(make_fetcher, mock_sleep):
    fetcher = make_fetcher(page_delay=0.5)

    await fetcher.fetch("cookie", 60)

    # Three pages, two gaps between them.
    assert mock_sleep.await_count == 2
    mock_sleep.assert_awaited_with(0.5)


@pytest.mark.asyncio
async def test_fetch_single_page_does_not_sleep(make_fetcher, mock_sleep):
    fetcher = make_fetcher()

    submissions = await fetcher.fetch("cookie", 7)

    assert len(submissions) == 7
    mock_sleep.assert_not_called()


@pytest.mark.asyncio
async def test_fetch_preserves_status_and_decodes_fields(make_fetcher, mock_sleep):
    submissions = await make_fetcher().fetch("cookie", 3)

    assert [s.status for s in submissions] == ["Accepted", "Wrong Answer", "Accepted"]
    assert submissions[0].is_accepted
    assert submissions[1].title == "Problem 1"


@pytest.mark.asyncio
async def test_fetch_stops_after_short_page(make_fetcher, recorded_requests, mock_sleep):
    """A page shorter than requested means the user has no older submissions."""
    def handler(request):
        offset = int(request.url.params["offset"])
        return httpx.Response(200, json=judge_payload(offset, 3))

    fetcher = make_fetcher(handler)

    submissions = await fetcher.fetch("cookie", 45)

    assert len(recorded_requests) == 1
    assert len(submissions) == 3


@pytest.mark.asyncio
async def test_fetch_http_error_raises_fetch_error(make_fetcher, mock_sleep):
    def handler(request):
        if request.url.params["offset"] == "20":
            return httpx.Response(403, json={"detail": "forbidden"})
        return httpx.Response(200, json=judge_payload(0, 20))

    fetcher = make_fetcher(handler)

    with pytest.raises(FetchError) as exc_info:
        await fetcher.fetch("cookie", 30)

    assert isinstance(exc_info.value.cause, httpx.HTTPStatusError)


@pytest.mark.asyncio
async def test_fetch_transport_error_raises_fetch_error(make_fetcher, mock_sleep):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError) as exc_info:
        await make_fetcher(handler).fetch("cookie", 5)

    assert isinstance(exc_info.value.cause, httpx.ConnectError)


@pytest.mark.asyncio
async def test_fetch_malformed_json_raises_fetch_error_with_decode_cause(make_fetcher, mock_sleep):
    def handler(request):
        return httpx.Response(200, content=b"<html>not json</html>")

    with pytest.raises(FetchError) as exc_info:
        await make_fetcher(handler).fetch("cookie", 5)

    assert isinstance(exc_info.value.cause, DecodeError)


@pytest.mark.asyncio
async def test_fetch_wrong_shape_raises_fetch_error_with_decode_cause(make_fetcher, mock_sleep):
    def handler(request):
        return httpx.Response(200, json={"submissions_dump": [{"title": "missing id"}]})

    with pytest.raises(FetchError) as exc_info:
        await make_fetcher(handler).fetch("cookie", 5)

    assert isinstance(exc_info.value.cause, DecodeError)


@pytest.mark.asyncio
async def test_close_closes_http_client():
    client = AsyncMock()
    fetcher = PageFetcher(base_url="https://judge.test", client=client)

    await fetcher.close()

    client.aclose.assert_awaited_once()
