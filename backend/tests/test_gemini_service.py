"""
Gemini client unit tests

These tests validate the request sent to Gemini and how responses are
mapped to data URLs, using httpx's MockTransport instead of the network.
"""
import json
import httpx
import pytest
from unittest.mock import patch

from core.errors import GenerationFailedError, NoImageReturnedError
from services.gemini_service import GeminiService
from services.image_edit_provider import ImageEditProvider


def gemini_response(parts):
    return {"candidates": [{"content": {"role": "model", "parts": parts}}]}


def make_service(handler, api_key="test-key"):
    return GeminiService(
        api_key=api_key,
        model="gemini-2.5-flash-image",
        base_url="https://gemini.test/v1beta",
        transport=httpx.MockTransport(handler)
    )


@pytest.mark.unit
class TestExtractImage:
    """Tests for picking the image out of a Gemini response"""

    def test_single_inline_part(self):
        data = gemini_response([{"inlineData": {"data": "X", "mimeType": "image/png"}}])
        assert GeminiService.extract_image_data_url(data) == "data:image/png;base64,X"

    def test_skips_leading_text_parts(self):
        """Test the first part with inline data wins"""
        data = gemini_response([
            {"text": "no image"},
            {"inlineData": {"data": "Y", "mimeType": "image/webp"}},
            {"inlineData": {"data": "Z", "mimeType": "image/png"}}
        ])
        assert GeminiService.extract_image_data_url(data) == "data:image/webp;base64,Y"

    def test_snake_case_inline_data(self):
        data = gemini_response([{"inline_data": {"data": "S", "mime_type": "image/jpeg"}}])
        assert GeminiService.extract_image_data_url(data) == "data:image/jpeg;base64,S"

    @pytest.mark.parametrize("data", [
        gemini_response([{"text": "I cannot edit this image"}]),
        gemini_response([]),
        {"candidates": []},
        {"candidates": [{"finishReason": "SAFETY"}]},
        {},
    ])
    def test_no_inline_image(self, data):
        with pytest.raises(NoImageReturnedError) as exc_info:
            GeminiService.extract_image_data_url(data)

        assert exc_info.value.user_message == "No image data was found in the API response."

    def test_no_image_is_a_generation_failure(self):
        assert issubclass(NoImageReturnedError, GenerationFailedError)


@pytest.mark.unit
@pytest.mark.asyncio
class TestEditImageWithPrompt:
    """Tests for the single Gemini call"""

    async def test_request_shape(self):
        """Test inline image comes before the prompt and only IMAGE output is requested"""
        captured = {}

        def handler(request):
            captured["url"] = str(request.url)
            captured["headers"] = request.headers
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=gemini_response([
                {"inlineData": {"data": "OUT", "mimeType": "image/png"}}
            ]))

        service = make_service(handler)
        result = await service.edit_image_with_prompt("SRC", "image/jpeg", "add a hat")

        assert result == "data:image/png;base64,OUT"
        assert captured["url"] == "https://gemini.test/v1beta/models/gemini-2.5-flash-image:generateContent"
        assert captured["headers"]["x-goog-api-key"] == "test-key"

        parts = captured["body"]["contents"][0]["parts"]
        assert parts[0] == {"inlineData": {"data": "SRC", "mimeType": "image/jpeg"}}
        assert parts[1] == {"text": "add a hat"}
        assert captured["body"]["generationConfig"] == {"responseModalities": ["IMAGE"]}

    async def test_returned_mime_type_is_used(self):
        def handler(request):
            return httpx.Response(200, json=gemini_response([
                {"text": "here you go"},
                {"inlineData": {"data": "W", "mimeType": "image/webp"}}
            ]))

        result = await make_service(handler).edit_image_with_prompt("SRC", "image/png", "p")
        assert result == "data:image/webp;base64,W"

    async def test_edit_uses_asset_fields(self, png_asset):
        seen = {}

        def handler(request):
            seen["inline"] = json.loads(request.content)["contents"][0]["parts"][0]["inlineData"]
            return httpx.Response(200, json=gemini_response([
                {"inlineData": {"data": "OUT", "mimeType": "image/png"}}
            ]))

        service = make_service(handler)
        assert isinstance(service, ImageEditProvider)

        await service.edit(png_asset, "make it blue")

        assert seen["inline"] == {"data": png_asset.base64, "mimeType": "image/png"}

    async def test_response_without_image(self):
        def handler(request):
            return httpx.Response(200, json=gemini_response([{"text": "no image"}]))

        with pytest.raises(NoImageReturnedError):
            await make_service(handler).edit_image_with_prompt("SRC", "image/png", "p")

    async def test_http_error_is_generic(self):
        """Test provider error details are not leaked to the caller"""
        def handler(request):
            return httpx.Response(403, json={"error": {"message": "API key invalid: secret-detail"}})

        with pytest.raises(GenerationFailedError) as exc_info:
            await make_service(handler).edit_image_with_prompt("SRC", "image/png", "p")

        assert not isinstance(exc_info.value, NoImageReturnedError)
        assert "secret-detail" not in exc_info.value.user_message
        assert "try again" in exc_info.value.user_message

    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GenerationFailedError):
            await make_service(handler).edit_image_with_prompt("SRC", "image/png", "p")

    async def test_invalid_json(self):
        def handler(request):
            return httpx.Response(200, content=b"<html>oops</html>")

        with pytest.raises(GenerationFailedError):
            await make_service(handler).edit_image_with_prompt("SRC", "image/png", "p")

    async def test_missing_api_key_makes_no_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        service = make_service(handler, api_key="")

        assert service.is_configured is False
        with pytest.raises(GenerationFailedError):
            await service.edit_image_with_prompt("SRC", "image/png", "p")
        assert calls == []

    async def test_inputs_are_not_mutated(self, png_asset):
        def handler(request):
            return httpx.Response(200, json=gemini_response([
                {"inlineData": {"data": "OUT", "mimeType": "image/png"}}
            ]))

        before = png_asset.model_dump()
        await make_service(handler).edit(png_asset, "p")

        assert png_asset.model_dump() == before


@pytest.mark.unit
class TestMalformedResponses:
    """Tests for responses whose JSON has the wrong shape"""

    @pytest.mark.parametrize("data", [
        {"candidates": [{"content": "oops"}]},
        {"candidates": [{"content": {"parts": "oops"}}]},
        {"candidates": "oops"},
        gemini_response([{"inlineData": "x"}]),
        gemini_response([{"inlineData": {"mimeType": "image/png"}}]),
        ["not", "a", "dict"],
    ])
    def test_wrong_shapes_have_no_image(self, data):
        with pytest.raises(NoImageReturnedError):
            GeminiService.extract_image_data_url(data)

    def test_part_without_data_is_skipped(self):
        data = gemini_response([
            {"inlineData": {"mimeType": "image/png"}},
            {"inlineData": {"data": "Q", "mimeType": "image/png"}}
        ])
        assert GeminiService.extract_image_data_url(data) == "data:image/png;base64,Q"

    def test_missing_mime_type_defaults(self):
        data = gemini_response([{"inlineData": {"data": "Q"}}])
        assert GeminiService.extract_image_data_url(data) == "data:application/octet-stream;base64,Q"


@pytest.mark.unit
@pytest.mark.asyncio
class TestMalformedResponseCalls:

    @pytest.mark.parametrize("body", [
        {"candidates": [{"content": "oops"}]},
        gemini_response([{"inlineData": "x"}]),
    ])
    async def test_malformed_200_is_generation_failure(self, body):
        def handler(request):
            return httpx.Response(200, json=body)

        with pytest.raises(GenerationFailedError):
            await make_service(handler).edit_image_with_prompt("SRC", "image/png", "p")

    async def test_parse_error_is_generation_failure(self):
        """Test errors raised while reading the response become a generic failure"""
        def handler(request):
            return httpx.Response(200, json=gemini_response([]))

        service = make_service(handler)
        with patch.object(GeminiService, "extract_image_data_url", side_effect=AttributeError("boom")):
            with pytest.raises(GenerationFailedError) as exc_info:
                await service.edit_image_with_prompt("SRC", "image/png", "p")

        assert not isinstance(exc_info.value, NoImageReturnedError)
        assert "boom" not in exc_info.value.user_message
