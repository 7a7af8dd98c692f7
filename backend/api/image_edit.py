from fastapi import APIRouter, Depends

from core.errors import ImageEditorError
from models.image_edit import ImageEditRequest, ImageEditResponse
from services.editor_service import edit_once
from services.gemini_service import GeminiService
from services.image_edit_provider import ImageEditProvider
from services.image_encoder import asset_from_data_url

router = APIRouter(prefix="/image-edit", tags=["image-edit"])

def get_gemini_service() -> GeminiService:
    return GeminiService()

def get_image_edit_provider() -> ImageEditProvider:
    return get_gemini_service()

@router.post("/", response_model=ImageEditResponse)
async def edit_image(
    edit_request: ImageEditRequest,
    provider: ImageEditProvider = Depends(get_image_edit_provider)
):
    """Edit an image in one shot: data URL + prompt in, data URL out"""
    image = asset_from_data_url(edit_request.image_data) if edit_request.image_data else None

    try:
        result_image_url = await edit_once(provider, image, edit_request.prompt)
    except ImageEditorError as error:
        return ImageEditResponse(
            success=False,
            error=error.user_message
        )

    return ImageEditResponse(
        success=True,
        image_url=result_image_url,
        error=None
    )

@router.get("/health")
async def check_gemini_config():
    """Check if Gemini is properly configured"""
    gemini_service = get_gemini_service()
    has_key = gemini_service.is_configured

    return {
        "configured": has_key,
        "model": gemini_service.model,
        "message": "Gemini API key configured" if has_key else "Gemini API key not set"
    }
