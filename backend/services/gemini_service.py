import logging
from typing import Any, Dict, Optional

import httpx

from config.settings import settings
from core.errors import GenerationFailedError, NoImageReturnedError
from models.image_edit import ImageAsset
from services.image_encoder import DEFAULT_MIME_TYPE

logger = logging.getLogger(__name__)


class GeminiService:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.GEMINI_TIMEOUT_SECONDS
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def edit(self, image: ImageAsset, prompt: str) -> str:
        return await self.edit_image_with_prompt(image.base64, image.mime_type, prompt)

    async def edit_image_with_prompt(self, base64_image_data: str, mime_type: str, prompt: str) -> str:
        """
        Send an image and a prompt to Gemini and return the edited image.

        Args:
            base64_image_data: Base64 payload of the image, without data URL prefix
            mime_type: MIME type of the image (e.g. 'image/jpeg')
            prompt: The user's editing instruction

        Returns:
            Data URL of the first image Gemini returned

        Raises:
            NoImageReturnedError: Gemini answered without any inline image
            GenerationFailedError: The call itself failed
        """
        if not self.api_key:
            logger.error("❌ GEMINI_API_KEY is not set, cannot call Gemini")
            raise GenerationFailedError()

        payload = self.build_payload(base64_image_data, mime_type, prompt)

        try:
            data = await self._generate_content(payload)
        except httpx.TimeoutException as error:
            logger.error("❌ Gemini request timed out after %ss: %s", self.timeout, error)
            raise GenerationFailedError() from error
        except httpx.HTTPStatusError as error:
            logger.error(
                "❌ Gemini API returned %s: %s",
                error.response.status_code,
                error.response.text[:500]
            )
            raise GenerationFailedError() from error
        except (httpx.HTTPError, ValueError) as error:
            logger.exception("❌ Error calling Gemini API: %s", error)
            raise GenerationFailedError() from error

        try:
            return self.extract_image_data_url(data)
        except (AttributeError, TypeError, KeyError) as error:
            logger.exception("❌ Could not parse Gemini response: %s", error)
            raise GenerationFailedError() from error

    def build_payload(self, base64_image_data: str, mime_type: str, prompt: str) -> Dict[str, Any]:
        return {
            "contents": [{
                "parts": [
                    {
                        "inlineData": {
                            "data": base64_image_data,
                            "mimeType": mime_type
                        }
                    },
                    {
                        "text": prompt
                    }
                ]
            }],
            "generationConfig": {
                "responseModalities": ["IMAGE"]
            }
        }

    @staticmethod
    def extract_image_data_url(data: Dict[str, Any]) -> str:
        """Build a data URL from the first inline image part of the first candidate"""
        candidates = data.get("candidates") if isinstance(data, dict) else None
        first = candidates[0] if isinstance(candidates, list) and candidates else None
        if not isinstance(first, dict):
            first = {}
        content = first.get("content")
        parts = content.get("parts") if isinstance(content, dict) else None

        for part in parts if isinstance(parts, list) else []:
            if not isinstance(part, dict):
                continue
            inline = part.get("inlineData") or part.get("inline_data")
            # Only a dict with a payload counts as an image part
            if isinstance(inline, dict) and inline.get("data"):
                new_mime_type = inline.get("mimeType") or inline.get("mime_type") or DEFAULT_MIME_TYPE
                return f"data:{new_mime_type};base64,{inline['data']}"

        logger.warning("⚠️ Gemini response had no inline image (finishReason=%s)", first.get("finishReason"))
        raise NoImageReturnedError()

    async def _generate_content(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json"
        }
        url = f"{self.base_url}/models/{self.model}:generateContent"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            return response.json()
