"""
Unit tests for the sheet-backed feed mirror
"""
import httpx
import pytest
from unittest.mock import AsyncMock, Mock
from complaint_desk.clients.sheets_client import GoogleSheetsClient, map_rows, parse_form_timestamp
from complaint_desk.exceptions import FeedNetworkError, FeedServerError
from complaint_desk.services.feed_mirror import FeedMirror

HEADERS = [
    "חותמת זמן",
    "נושא הפנייה",
    "כותרת הפנייה",
    "פרטי הפנייה",
    "שם פונה (שם פרטי + שם משפחה)",
    "נושא הפנייה",
    "שכבה",
]


class TestParseFormTimestamp:
    """Test form timestamp conversion"""

    def test_day_first_format(self):
        assert parse_form_timestamp("15/01/2026 09:30:00", "Asia/Jerusalem") == "2026-01-15T09:30:00+02:00"

    def test_iso_with_offset_is_kept(self):
        assert parse_form_timestamp("2026-01-15T09:30:00+00:00", "Asia/Jerusalem") == "2026-01-15T09:30:00+00:00"

    def test_unrecognized_is_returned_unchanged(self):
        assert parse_form_timestamp("last tuesday", "Asia/Jerusalem") == "last tuesday"

    def test_empty(self):
        assert parse_form_timestamp("  ", "Asia/Jerusalem") == ""


class TestMapRows:
    """Test sheet row mapping"""

    def test_maps_known_columns(self):
        rows = [
            HEADERS,
            ["15/01/2026 09:30:00", "תחבורה", "ההסעה איחרה", "איחור של חצי שעה", "דנה לוי", "", "ט"],
        ]

        records = map_rows(rows)

        assert len(records) == 1
        record = records[0]
        assert record["id"] == 1
        assert record["category"] == "תחבורה"
        assert record["title"] == "ההסעה איחרה"
        assert record["details"] == "איחור של חצי שעה"
        assert record["name"] == "דנה לוי"
        assert record["grade_level"] == "ט"
        assert record["visible"] is True
        assert record["submitter_id"] == "external"
        assert record["created_at"] == "2026-01-15T09:30:00+02:00"

    def test_duplicate_header_uses_first_non_empty_value(self):
        rows = [
            HEADERS,
            ["15/01/2026 09:30:00", "", "כותרת", "", "", "ניקיון", ""],
        ]

        assert map_rows(rows)[0]["category"] == "ניקיון"

    def test_rows_without_content_are_dropped(self):
        rows = [
            HEADERS,
            ["15/01/2026 09:30:00", "תחבורה", "", ""],
            ["16/01/2026 09:30:00", "תחבורה", "", "פרטים"],
        ]

        records = map_rows(rows)

        assert len(records) == 1
        assert records[0]["id"] == 2
        assert records[0]["grade_level"] == ""

    def test_empty_sheet(self):
        assert map_rows([]) == []
        assert map_rows([HEADERS]) == []


class TestGoogleSheetsClient:
    """Test the Sheets values API reader"""

    @pytest.mark.asyncio
    async def test_fetch_complaints(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={
                "values": [HEADERS, ["15/01/2026 09:30:00", "תחבורה", "כותרת", "פרטים"]]
            })

        client = GoogleSheetsClient("sheet-1", "Sheet1", "api-key", transport=httpx.MockTransport(handler))

        records = await client.fetch_complaints()

        assert len(records) == 1
        assert seen[0].url.params["key"] == "api-key"
        assert "sheet-1" in seen[0].url.path

    @pytest.mark.asyncio
    async def test_missing_values(self):
        client = GoogleSheetsClient(
            "sheet-1", "Sheet1", "api-key",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={}))
        )

        assert await client.fetch_complaints() == []

    @pytest.mark.asyncio
    async def test_error_status(self):
        client = GoogleSheetsClient(
            "sheet-1", "Sheet1", "api-key",
            transport=httpx.MockTransport(lambda request: httpx.Response(403, json={"error": "denied"}))
        )

        with pytest.raises(FeedServerError) as exc_info:
            await client.fetch_rows()

        assert exc_info.value.status == 403

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        client = GoogleSheetsClient("sheet-1", "Sheet1", "api-key", transport=httpx.MockTransport(handler))

        with pytest.raises(FeedNetworkError):
            await client.fetch_rows()

    @pytest.mark.asyncio
    async def test_not_configured(self):
        client = GoogleSheetsClient("sheet-1", "Sheet1", "api-key")
        client.api_key = None

        with pytest.raises(FeedServerError) as exc_info:
            await client.fetch_rows()

        assert exc_info.value.status == 503


class TestFeedMirror:
    """Test the in-memory TTL cache"""

    @pytest.fixture
    def clock(self):
        now = [1000.0]
        clock = Mock(side_effect=lambda: now[0])
        clock.now = now
        return clock

    @pytest.fixture
    def source(self):
        source = Mock()
        source.fetch_complaints = AsyncMock(return_value=[{"id": 1}])
        return source

    @pytest.fixture
    def mirror(self, source, clock):
        return FeedMirror(source, ttl_seconds=300, clock=clock)

    @pytest.mark.asyncio
    async def test_serves_from_memory_within_ttl(self, mirror, source, clock):
        assert await mirror.get_complaints() == [{"id": 1}]
        clock.now[0] += 299
        assert await mirror.get_complaints() == [{"id": 1}]

        source.fetch_complaints.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rereads_after_ttl(self, mirror, source, clock):
        await mirror.get_complaints()
        clock.now[0] += 300

        await mirror.get_complaints()

        assert source.fetch_complaints.await_count == 2

    @pytest.mark.asyncio
    async def test_refresh_bypasses_cache(self, mirror, source):
        await mirror.get_complaints()
        source.fetch_complaints.return_value = [{"id": 1}, {"id": 2}]

        records = await mirror.get_complaints(refresh=True)

        assert len(records) == 2
        assert source.fetch_complaints.await_count == 2

    @pytest.mark.asyncio
    async def test_invalidate_and_status(self, mirror, source, clock):
        assert mirror.get_status()["age_seconds"] is None

        await mirror.get_complaints()
        clock.now[0] += 12
        status = mirror.get_status()

        assert status["cached_records"] == 1
        assert status["age_seconds"] == 12.0

        mirror.invalidate()
        await mirror.get_complaints()

        assert source.fetch_complaints.await_count == 2

    @pytest.mark.asyncio
    async def test_source_error_propagates(self, mirror, source):
        source.fetch_complaints.side_effect = FeedServerError(500)

        with pytest.raises(FeedServerError):
            await mirror.get_complaints()
