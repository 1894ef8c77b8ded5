import hashlib
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from src.media.cloudinary import (
    CloudinaryClient,
    MediaUploadError,
    optimize_url,
    public_id_from_url,
    sign_params,
)

ASSET_URL = "https://res.cloudinary.com/demo/image/upload/v1712345678/tanah-merapi/upload-1-2.jpg"


def settings_mock(**overrides):
    values = dict(
        cloudinary_cloud_name="demo",
        cloudinary_api_key="key-123",
        cloudinary_api_secret="shh",
        cloudinary_folder="tanah-merapi",
    )
    values.update(overrides)
    return MagicMock(**values)


def mock_async_client(mock_client_cls, response=None, error=None):
    mock_client = MagicMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    if error is not None:
        mock_client.post = AsyncMock(side_effect=error)
        mock_client.get = AsyncMock(side_effect=error)
    else:
        mock_client.post = AsyncMock(return_value=response)
        mock_client.get = AsyncMock(return_value=response)
    mock_client_cls.return_value = mock_client
    return mock_client


def ok_response(payload):
    response = MagicMock()
    response.raise_for_status = MagicMock()
    response.json.return_value = payload
    return response


class TestPublicIdFromUrl:
    def test_folder_and_stem_without_version(self):
        assert public_id_from_url(ASSET_URL) == "tanah-merapi/upload-1-2"

    def test_no_folder(self):
        url = "https://res.cloudinary.com/demo/image/upload/v1/sample.png"
        assert public_id_from_url(url) == "sample"

    def test_without_version_segment(self):
        url = "https://res.cloudinary.com/demo/image/upload/a/b/c.webp"
        assert public_id_from_url(url) == "a/b/c"

    def test_skips_delivery_transformation(self):
        url = "https://res.cloudinary.com/demo/image/upload/w_400,h_300,c_fill/tanah-merapi/x.jpg"
        assert public_id_from_url(url) == "tanah-merapi/x"

    @pytest.mark.parametrize(
        "url", [None, "", "https://example.com/img/upload/x.jpg", "/uploads/local.jpg"]
    )
    def test_non_host_urls(self, url):
        assert public_id_from_url(url) is None


class TestOptimizeUrl:
    def test_inserts_transformation(self):
        url = "https://res.cloudinary.com/demo/image/upload/v1/a.jpg"
        assert optimize_url(url, width=400, height=300) == (
            "https://res.cloudinary.com/demo/image/upload/w_400,h_300,c_limit,q_auto,f_auto/v1/a.jpg"
        )

    def test_optimized_url_still_maps_to_asset(self):
        assert public_id_from_url(optimize_url(ASSET_URL)) == "tanah-merapi/upload-1-2"

    def test_leaves_foreign_urls_alone(self):
        assert optimize_url("https://example.com/a.jpg") == "https://example.com/a.jpg"


def test_sign_params_sorts_keys():
    expected = hashlib.sha1(b"public_id=abc&timestamp=100shh").hexdigest()
    assert sign_params({"timestamp": 100, "public_id": "abc"}, "shh") == expected


class TestCloudinaryClient:
    @patch("src.media.cloudinary.get_settings")
    def test_is_configured(self, mock_settings):
        mock_settings.return_value = settings_mock()
        assert CloudinaryClient.is_configured() is True

        mock_settings.return_value = settings_mock(cloudinary_api_secret="")
        assert CloudinaryClient.is_configured() is False

    @patch("src.media.cloudinary.get_settings")
    async def test_delete_image_destroys_derived_id_once(self, mock_settings):
        mock_settings.return_value = settings_mock()
        client = CloudinaryClient()

        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = mock_async_client(mock_client_cls, ok_response({"result": "ok"}))
            result = await client.delete_image(ASSET_URL)

        assert result is True
        mock_client.post.assert_awaited_once()
        call = mock_client.post.call_args
        assert call.args[0] == "https://api.cloudinary.com/v1_1/demo/image/destroy"
        data = call.kwargs["data"]
        assert data["public_id"] == "tanah-merapi/upload-1-2"
        assert data["api_key"] == "key-123"
        signed = {"public_id": data["public_id"], "timestamp": data["timestamp"]}
        assert data["signature"] == sign_params(signed, "shh")

    @patch("src.media.cloudinary.get_settings")
    async def test_delete_image_swallows_transport_errors(self, mock_settings):
        mock_settings.return_value = settings_mock()
        client = CloudinaryClient()

        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_async_client(mock_client_cls, error=httpx.ConnectError("boom"))
            result = await client.delete_image(ASSET_URL)

        assert result is False

    @patch("src.media.cloudinary.get_settings")
    async def test_delete_image_swallows_http_errors(self, mock_settings):
        mock_settings.return_value = settings_mock()
        client = CloudinaryClient()
        request = httpx.Request("POST", "https://api.cloudinary.com")
        response = MagicMock()
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "401", request=request, response=httpx.Response(401, text="bad key")
        )

        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_async_client(mock_client_cls, response)
            result = await client.delete_image(ASSET_URL)

        assert result is False

    @patch("src.media.cloudinary.get_settings")
    async def test_delete_image_skips_foreign_urls(self, mock_settings):
        mock_settings.return_value = settings_mock()
        client = CloudinaryClient()

        with patch("httpx.AsyncClient") as mock_client_cls:
            result = await client.delete_image("https://example.com/old.jpg")

        assert result is False
        mock_client_cls.assert_not_called()

    @patch("src.media.cloudinary.get_settings")
    async def test_upload_returns_secure_url(self, mock_settings):
        mock_settings.return_value = settings_mock()
        client = CloudinaryClient()

        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = mock_async_client(
                mock_client_cls, ok_response({"secure_url": ASSET_URL})
            )
            url = await client.upload(b"jpeg-bytes", "beach.jpg", "image/jpeg")

        assert url == ASSET_URL
        call = mock_client.post.call_args
        assert call.args[0] == "https://api.cloudinary.com/v1_1/demo/image/upload"
        data = call.kwargs["data"]
        assert data["folder"] == "tanah-merapi"
        assert data["public_id"].startswith("upload-")
        assert data["transformation"] == "w_1000,h_1000,c_limit"
        assert call.kwargs["files"]["file"] == ("beach.jpg", b"jpeg-bytes", "image/jpeg")

    @patch("src.media.cloudinary.get_settings")
    async def test_upload_failure_raises(self, mock_settings):
        mock_settings.return_value = settings_mock()
        client = CloudinaryClient()

        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_async_client(mock_client_cls, error=httpx.ConnectTimeout("slow"))
            with pytest.raises(MediaUploadError):
                await client.upload(b"jpeg-bytes", "beach.jpg", "image/jpeg")

    @patch("src.media.cloudinary.get_settings")
    async def test_ping(self, mock_settings):
        mock_settings.return_value = settings_mock()
        client = CloudinaryClient()

        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = mock_async_client(mock_client_cls, ok_response({"status": "ok"}))
            assert await client.ping() is True

        assert mock_client.get.call_args.kwargs["auth"] == ("key-123", "shh")
