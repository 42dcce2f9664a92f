"""Tests for voice model prefetch, using httpx's mock transport."""
import asyncio

import httpx
import pytest

from narration.assets import ensure_assets, missing_assets, required_assets
from narration.errors import AssetDownloadError
from narration.progress import ProgressReporter

REPO = "https://voices.test/main"


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def serve_all(requested):
    def handler(request):
        requested.append(str(request.url))
        return httpx.Response(200, content=b"model:" + request.url.path.encode())
    return handler


def run(coro):
    return asyncio.run(coro)


class TestRequiredAssets:

    def test_two_files_per_voice(self, temp_dir):
        assets = required_assets(temp_dir, REPO)
        assert len(assets) == 8
        assert {a.path.suffix for a in assets} == {".onnx", ".json"}
        assert all(a.url.startswith(REPO + "/en/") for a in assets)

    def test_missing_assets(self, temp_dir):
        first = required_assets(temp_dir, REPO)[0]
        first.path.write_bytes(b"present")
        assert first not in missing_assets(temp_dir, REPO)
        assert len(missing_assets(temp_dir, REPO)) == 7


class TestEnsureAssets:

    def test_downloads_everything_missing(self, temp_dir):
        requested = []
        model_dir = temp_dir / "models"

        async def go():
            async with mock_client(serve_all(requested)) as client:
                return await ensure_assets(model_dir, REPO, client=client)

        fetched = run(go())
        assert len(fetched) == 8
        assert len(requested) == 8
        for path in fetched:
            assert path.read_bytes().startswith(b"model:")
        assert not list(model_dir.glob("*.part"))

    def test_present_files_are_skipped(self, temp_dir):
        for asset in required_assets(temp_dir, REPO)[:6]:
            asset.path.write_bytes(b"cached")
        requested = []

        async def go():
            async with mock_client(serve_all(requested)) as client:
                return await ensure_assets(temp_dir, REPO, client=client)

        fetched = run(go())
        assert len(fetched) == 2
        assert all("alan" in url for url in requested)

    def test_nothing_to_do_makes_no_requests(self, temp_dir):
        for asset in required_assets(temp_dir, REPO):
            asset.path.write_bytes(b"cached")

        def handler(request):
            raise AssertionError("no request expected")

        async def go():
            async with mock_client(handler) as client:
                return await ensure_assets(temp_dir, REPO, client=client)

        assert run(go()) == []

    def test_progress_events(self, temp_dir):
        events = []
        reporter = ProgressReporter("job-1", events.append)

        async def go():
            async with mock_client(serve_all([])) as client:
                await ensure_assets(temp_dir, REPO, reporter, client=client)

        run(go())
        assert len(events) == 16
        assert all(e.stage == "download" for e in events)
        assert events[0].message.startswith("Downloading voice: ")
        assert events[0].progress == 0.0
        assert events[1].progress == 1.0
        assert events[2].progress == pytest.approx(1 / 8)

    def test_http_error_stops_and_leaves_no_partial_file(self, temp_dir):
        requested = []

        def handler(request):
            requested.append(str(request.url))
            if len(requested) == 3:
                return httpx.Response(404)
            return httpx.Response(200, content=b"ok")

        async def go():
            async with mock_client(handler) as client:
                await ensure_assets(temp_dir, REPO, client=client)

        with pytest.raises(AssetDownloadError, match="HTTP 404"):
            run(go())
        assert len(requested) == 3
        assert len(list(temp_dir.iterdir())) == 2
        assert not list(temp_dir.glob("*.part"))

    def test_transport_error_is_wrapped(self, temp_dir):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async def go():
            async with mock_client(handler) as client:
                await ensure_assets(temp_dir, REPO, client=client)

        with pytest.raises(AssetDownloadError, match="connection refused"):
            run(go())
        assert not list(temp_dir.iterdir())
