from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from client.api_client import InventoryApiClient
from client.upload_orchestrator import AnalysisRequestError, SelectedFile, UploadOrchestrator, UploadPhase
from core.exceptions import UploadError

PHOTO = SelectedFile(name="tv.jpg", data=b"jpeg-bytes", content_type="image/jpeg")


def run_with(handler, coro_factory, token="tok"):
    async def _run():
        async with InventoryApiClient(
            "http://api.test", token, transport=httpx.MockTransport(handler)
        ) as api:
            return await coro_factory(api)
    return asyncio.run(_run())


def test_upload_sends_multipart_with_bearer_token():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201, json={"key": "u/abc.jpg", "url": "http://api.test/storage/b/u/abc.jpg"})

    url = run_with(handler, lambda api: api.upload_image(PHOTO))

    assert url == "http://api.test/storage/b/u/abc.jpg"
    request = seen[0]
    assert request.url.path == "/api/uploads"
    assert request.headers["Authorization"] == "Bearer tok"
    assert b'name="file"; filename="tv.jpg"' in request.content
    assert b"jpeg-bytes" in request.content


def test_upload_rejection_becomes_upload_error():
    handler = lambda request: httpx.Response(400, json={"detail": "File must be an image (JPEG, PNG or WebP)"})

    with pytest.raises(UploadError, match="must be an image"):
        run_with(handler, lambda api: api.upload_image(PHOTO))


def test_analyze_posts_image_urls():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True, "items": [{"name": "TV"}]})

    items = run_with(handler, lambda api: api.analyze_items(["http://a/1.jpg"]))

    assert items == [{"name": "TV"}]
    assert seen == [{"imageUrls": ["http://a/1.jpg"]}]


def test_any_non_success_analysis_is_a_batch_failure():
    handler = lambda request: httpx.Response(500, json={"error": "AI analysis failed"})

    with pytest.raises(AnalysisRequestError) as excinfo:
        run_with(handler, lambda api: api.analyze_items(["http://a/1.jpg"]))

    assert excinfo.value.message == "AI analysis failed"
    assert excinfo.value.status_code == 500


def test_login_stores_token():
    def handler(request):
        assert json.loads(request.content) == {"email": "me@example.com", "password": "pw-123456"}
        return httpx.Response(200, json={"access_token": "fresh", "token_type": "bearer"})

    async def login(api):
        await api.login("me@example.com", "pw-123456")
        return api.token

    assert run_with(handler, login, token=None) == "fresh"


def test_orchestrator_over_http_tolerates_one_failed_upload():
    uploads = []

    def handler(request):
        if request.url.path == "/api/uploads":
            uploads.append(request)
            if b'filename="broken.jpg"' in request.content:
                return httpx.Response(400, json={"detail": "File is empty"})
            return httpx.Response(201, json={"key": "k", "url": f"http://cdn/{len(uploads)}.jpg"})
        body = json.loads(request.content)
        return httpx.Response(
            200, json={"success": True, "items": [{"name": "Item", "image_url": u} for u in body["imageUrls"]]}
        )

    selection = [
        PHOTO,
        SelectedFile(name="broken.jpg", data=b"", content_type="image/jpeg"),
        SelectedFile(name="sofa.jpg", data=b"sofa", content_type="image/jpeg"),
    ]

    async def flow(api):
        orchestrator = UploadOrchestrator(api, api)
        outcome = await orchestrator.upload(selection)
        assert orchestrator.state.phase is UploadPhase.READY_TO_ANALYZE
        items = await orchestrator.analyze()
        return outcome, items

    outcome, items = run_with(handler, flow)

    assert outcome.succeeded == 2
    assert outcome.failed == 1
    assert len(items) == 2
    assert len(uploads) == 3


def test_unreadable_upload_response_counts_as_one_failed_file():
    def handler(request):
        if b'filename="tv.jpg"' in request.content:
            return httpx.Response(201, text="<html>proxy page</html>")
        return httpx.Response(201, json={"key": "k", "url": "http://cdn/sofa.jpg"})

    selection = [PHOTO, SelectedFile(name="sofa.jpg", data=b"sofa", content_type="image/jpeg")]

    async def flow(api):
        orchestrator = UploadOrchestrator(api, api)
        outcome = await orchestrator.upload(selection)
        assert orchestrator.state.phase is UploadPhase.READY_TO_ANALYZE
        orchestrator.cancel()
        again = await orchestrator.upload(selection[1:])
        return outcome, again

    outcome, again = run_with(handler, flow)

    assert outcome.urls == ("http://cdn/sofa.jpg",)
    assert outcome.failed == 1
    assert again.succeeded == 1


def test_unreadable_upload_response_is_an_upload_error():
    handler = lambda request: httpx.Response(201, json={"key": "k"})

    with pytest.raises(UploadError, match="unreadable response"):
        run_with(handler, lambda api: api.upload_image(PHOTO))


def test_unreadable_analysis_response_keeps_batch_ready():
    def handler(request):
        if request.url.path == "/api/uploads":
            return httpx.Response(201, json={"key": "k", "url": "http://cdn/tv.jpg"})
        return httpx.Response(200, json="not json")

    async def flow(api):
        orchestrator = UploadOrchestrator(api, api)
        await orchestrator.upload([PHOTO])
        with pytest.raises(AnalysisRequestError, match="unreadable response"):
            await orchestrator.analyze()
        return orchestrator.state

    state = run_with(handler, flow)

    assert state.phase is UploadPhase.READY_TO_ANALYZE
    assert state.pending_urls == ("http://cdn/tv.jpg",)
    assert state.error == "Analysis returned an unreadable response"
