"""Unit tests for the caller-side upload state machine."""

import json

import httpx
import pytest

from media_pipeline.client import (
    MediaUploader,
    UploadInProgressError,
    UploadState,
    UploadStatus,
)

API = "http://api.test/v1"
UPLOAD_URL = "https://media.example.org/sda-media/videos/1-a-sermon.mp4?X-Amz-Signature=x"


class FakeMediaApi:
    """Routes requests to canned handlers keyed by method and path."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, *responses: httpx.Response) -> None:
        self.routes.setdefault((method, path), []).extend(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"error": {"message": "no route"}})
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def paths(self) -> list[str]:
        return [f"{r.method} {r.url.path}" for r in self.requests]


@pytest.fixture
def api():
    api = FakeMediaApi()
    api.add(
        "POST",
        "/v1/media/upload-url",
        httpx.Response(
            201,
            json={
                "uploadUrl": UPLOAD_URL,
                "objectName": "videos/1-a-sermon.mp4",
                "assetId": "asset-1",
                "expiresIn": 3600,
            },
        ),
    )
    api.add("PUT", "/sda-media/videos/1-a-sermon.mp4", httpx.Response(200))
    api.add(
        "POST",
        "/v1/media/process",
        httpx.Response(
            200,
            json={
                "assetId": "asset-1",
                "kind": "video",
                "status": "processing",
                "hlsUrl": "https://stream.mux.com/abc123.m3u8",
                "transcoding": {
                    "providerAssetId": "mux-asset-1",
                    "playbackId": "abc123",
                    "status": "preparing",
                    "thumbnailUrl": "https://image.mux.com/abc123/thumbnail.jpg",
                },
            },
        ),
    )
    return api


def make_uploader(api: FakeMediaApi, **kwargs) -> tuple[MediaUploader, list[UploadStatus]]:
    seen: list[UploadStatus] = []
    uploader = MediaUploader(
        API,
        on_status=seen.append,
        poll_interval_seconds=0,
        transport=httpx.MockTransport(api),
        **kwargs,
    )
    return uploader, seen


class TestStorageUpload:
    """Tests for upload through object storage."""

    async def test_happy_path(self, api):
        uploader, seen = make_uploader(api)

        status = await uploader.upload("sermon.mp4", b"video-bytes", "video/mp4")

        assert status.state == UploadState.COMPLETE
        assert status.progress == 100
        assert status.asset_id == "asset-1"
        assert status.provider_asset_id == "mux-asset-1"
        assert status.hls_url == "https://stream.mux.com/abc123.m3u8"
        assert status.thumbnail_url == "https://image.mux.com/abc123/thumbnail.jpg"
        assert [(s.state, s.progress) for s in seen] == [
            (UploadState.UPLOADING, 10),
            (UploadState.UPLOADING, 20),
            (UploadState.PROCESSING, 50),
            (UploadState.COMPLETE, 100),
        ]
        await uploader.close()

    async def test_requests(self, api):
        uploader, _ = make_uploader(api)

        await uploader.upload("sermon.mp4", b"video-bytes", "video/mp4")

        slot_request, put_request, process_request = api.requests
        assert json.loads(slot_request.content) == {
            "filename": "sermon.mp4",
            "contentType": "video/mp4",
            "size": 11,
        }
        assert str(put_request.url) == UPLOAD_URL
        assert put_request.headers["Content-Type"] == "video/mp4"
        assert put_request.content == b"video-bytes"
        assert json.loads(process_request.content) == {"objectName": "videos/1-a-sermon.mp4"}

    async def test_image_uses_public_url(self, api):
        api.routes[("POST", "/v1/media/process")] = [
            httpx.Response(
                200,
                json={
                    "assetId": "asset-1",
                    "kind": "image",
                    "status": "ready",
                    "publicUrl": "https://media.example.org/sda-media/public/images/logo.png",
                },
            )
        ]
        uploader, _ = make_uploader(api)

        status = await uploader.upload("logo.png", b"png", "image/png")

        assert status.state == UploadState.COMPLETE
        assert status.hls_url == "https://media.example.org/sda-media/public/images/logo.png"
        assert status.provider_asset_id is None

    async def test_too_large_sends_nothing(self, api):
        uploader, seen = make_uploader(api, max_size_bytes=5 * 1024 * 1024)

        status = await uploader.upload("huge.mp4", b"x" * (5 * 1024 * 1024 + 1), "video/mp4")

        assert status.state == UploadState.ERROR
        assert status.progress == 0
        assert status.message == "File is too large (maximum 5 MB)"
        assert api.requests == []
        assert [s.state for s in seen] == [UploadState.ERROR]

    async def test_slot_rejected(self, api):
        api.routes[("POST", "/v1/media/upload-url")] = [
            httpx.Response(
                503,
                json={"error": {"code": "STORAGE_UNAVAILABLE", "message": "MinIO connection failed"}},
            )
        ]
        uploader, _ = make_uploader(api)

        status = await uploader.upload("sermon.mp4", b"data", "video/mp4")

        assert status.state == UploadState.ERROR
        assert status.message == "Failed to get upload URL: MinIO connection failed"
        assert len(api.requests) == 1

    async def test_put_failure_skips_processing(self, api):
        api.routes[("PUT", "/sda-media/videos/1-a-sermon.mp4")] = [httpx.Response(403)]
        uploader, _ = make_uploader(api)

        status = await uploader.upload("sermon.mp4", b"data", "video/mp4")

        assert status.state == UploadState.ERROR
        assert status.message == "Upload to storage failed: storage responded 403"
        assert "POST /v1/media/process" not in api.paths()

    async def test_process_rejected(self, api):
        api.routes[("POST", "/v1/media/process")] = [
            httpx.Response(502, json={"error": {"message": "Mux API error (400): input is invalid"}})
        ]
        uploader, _ = make_uploader(api)

        status = await uploader.upload("sermon.mp4", b"data", "video/mp4")

        assert status.message == "Failed to process media: Mux API error (400): input is invalid"

    async def test_non_json_error_uses_reason(self, api):
        api.routes[("POST", "/v1/media/process")] = [httpx.Response(500, text="oops")]
        uploader, _ = make_uploader(api)

        status = await uploader.upload("sermon.mp4", b"data", "video/mp4")

        assert status.message == "Failed to process media: Internal Server Error"

    async def test_network_error(self, api):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        uploader = MediaUploader(API, transport=httpx.MockTransport(refuse))

        status = await uploader.upload("sermon.mp4", b"data", "video/mp4")

        assert status.state == UploadState.ERROR
        assert status.message == "Network error: connection refused"


class TestStateMachine:
    """Tests for busy guards and reset."""

    async def test_concurrent_upload_rejected(self, api):
        uploader, _ = make_uploader(api)
        uploader._status = UploadStatus(state=UploadState.UPLOADING, progress=20)

        with pytest.raises(UploadInProgressError):
            await uploader.upload("sermon.mp4", b"data", "video/mp4")

        assert api.requests == []

    async def test_reset_after_error(self, api):
        uploader, _ = make_uploader(api, max_size_bytes=1)
        await uploader.upload("sermon.mp4", b"data", "video/mp4")

        uploader.reset()

        assert uploader.status == UploadStatus()

    def test_reset_while_busy(self, api):
        uploader, _ = make_uploader(api)
        uploader._status = UploadStatus(state=UploadState.PROCESSING, progress=50)

        with pytest.raises(UploadInProgressError):
            uploader.reset()

    async def test_html_slot_response_can_be_retried(self, api):
        api.routes[("POST", "/v1/media/upload-url")] = [
            httpx.Response(200, text="<html>gateway</html>")
        ]
        uploader, _ = make_uploader(api)

        status = await uploader.upload("sermon.mp4", b"data", "video/mp4")

        assert status.state == UploadState.ERROR
        assert status.message == "Failed to get upload URL: unexpected response from server"
        uploader.reset()
        assert uploader.status.state == UploadState.IDLE

    async def test_incomplete_slot_response_can_be_retried(self, api):
        api.routes[("POST", "/v1/media/upload-url")] = [
            httpx.Response(201, json={"assetId": "asset-1"}),
            httpx.Response(
                201,
                json={"uploadUrl": UPLOAD_URL, "objectName": "videos/1-a-sermon.mp4"},
            ),
        ]
        uploader, _ = make_uploader(api)

        status = await uploader.upload("sermon.mp4", b"data", "video/mp4")

        assert status.state == UploadState.ERROR
        assert "uploadUrl" in status.message
        status = await uploader.upload("sermon.mp4", b"data", "video/mp4")
        assert status.state == UploadState.COMPLETE

    async def test_new_upload_after_error(self, api):
        uploader, _ = make_uploader(api, max_size_bytes=100)
        await uploader.upload("huge.mp4", b"x" * 101, "video/mp4")

        status = await uploader.upload("sermon.mp4", b"data", "video/mp4")

        assert status.state == UploadState.COMPLETE

    async def test_context_manager_closes(self, api):
        async with MediaUploader(API, transport=httpx.MockTransport(api)) as uploader:
            assert uploader.status.state == UploadState.IDLE
        assert uploader._client.is_closed


class TestDirectUpload:
    """Tests for upload straight to the transcoding provider."""

    @pytest.fixture
    def direct_api(self):
        api = FakeMediaApi()
        api.add(
            "POST",
            "/v1/media/direct-upload",
            httpx.Response(
                201,
                json={
                    "uploadId": "up-1",
                    "uploadUrl": "https://storage.mux.com/up-1",
                    "assetId": "asset-9",
                },
            ),
        )
        api.add("PUT", "/up-1", httpx.Response(200))
        return api

    @staticmethod
    def upload_status(**fields) -> httpx.Response:
        body = {
            "uploadId": "up-1",
            "status": "waiting",
            "assetId": "asset-9",
            "assetStatus": "pending",
        }
        body.update(fields)
        return httpx.Response(200, json=body)

    @classmethod
    def asset_created(cls) -> httpx.Response:
        # The provider is still preparing the asset when the upload is linked.
        return cls.upload_status(
            status="asset_created",
            assetStatus="processing",
            providerAssetId="mux-asset-9",
            hlsUrl="https://stream.mux.com/pb9.m3u8",
            transcoding={
                "providerAssetId": "mux-asset-9",
                "playbackId": "pb9",
                "status": "preparing",
                "durationSeconds": None,
                "thumbnailUrl": "https://image.mux.com/pb9/thumbnail.jpg",
            },
        )

    async def test_polls_until_asset_created(self, direct_api):
        direct_api.add(
            "GET",
            "/v1/media/upload-status/up-1",
            self.upload_status(),
            self.asset_created(),
        )
        uploader, seen = make_uploader(direct_api)

        status = await uploader.upload_direct(
            "sermon.mov", b"data", "video/quicktime", cors_origin="https://admin.example.org"
        )

        assert status.state == UploadState.COMPLETE
        assert status.asset_id == "asset-9"
        assert status.provider_asset_id == "mux-asset-9"
        assert status.hls_url == "https://stream.mux.com/pb9.m3u8"
        assert status.thumbnail_url == "https://image.mux.com/pb9/thumbnail.jpg"
        assert status.duration_seconds is None
        assert [s.progress for s in seen] == [10, 30, 70, 71, 100]
        assert json.loads(direct_api.requests[0].content)["corsOrigin"] == (
            "https://admin.example.org"
        )

    async def test_completes_from_upload_status_alone(self, direct_api):
        direct_api.add("GET", "/v1/media/upload-status/up-1", self.asset_created())
        uploader, _ = make_uploader(direct_api)

        await uploader.upload_direct("a.mp4", b"data", "video/mp4")

        assert direct_api.paths() == [
            "POST /v1/media/direct-upload",
            "PUT /up-1",
            "GET /v1/media/upload-status/up-1",
        ]

    async def test_errored_upload(self, direct_api):
        direct_api.add(
            "GET",
            "/v1/media/upload-status/up-1",
            self.upload_status(status="errored", assetStatus="errored", error="File too short"),
        )
        uploader, _ = make_uploader(direct_api)

        status = await uploader.upload_direct("a.mp4", b"data", "video/mp4")

        assert status.state == UploadState.ERROR
        assert status.message == "File too short"

    async def test_non_json_status_fails_run(self, direct_api):
        direct_api.add(
            "GET", "/v1/media/upload-status/up-1", httpx.Response(200, text="<html>gateway</html>")
        )
        uploader, _ = make_uploader(direct_api)

        status = await uploader.upload_direct("a.mp4", b"data", "video/mp4")

        assert status.state == UploadState.ERROR
        assert status.message == "Failed to check upload status: unexpected response from server"
        uploader.reset()
        assert uploader.status.state == UploadState.IDLE

    async def test_poll_timeout(self, direct_api):
        direct_api.add("GET", "/v1/media/upload-status/up-1", self.upload_status())
        uploader, seen = make_uploader(direct_api, max_poll_attempts=3)

        status = await uploader.upload_direct("a.mp4", b"data", "video/mp4")

        assert status.state == UploadState.ERROR
        assert status.message == "Upload timeout - please check media library"
        assert [s.progress for s in seen if s.state == UploadState.PROCESSING] == [70, 71, 72, 73]
        polls = [p for p in direct_api.paths() if p == "GET /v1/media/upload-status/up-1"]
        assert len(polls) == 3

    async def test_poll_progress_stays_below_done(self, direct_api):
        direct_api.add("GET", "/v1/media/upload-status/up-1", self.upload_status())
        uploader, seen = make_uploader(direct_api, max_poll_attempts=40)

        await uploader.upload_direct("a.mp4", b"data", "video/mp4")

        processing = [s.progress for s in seen if s.state == UploadState.PROCESSING]
        assert max(processing) == 99
        assert processing[-1] == 99
