from pydantic import BaseModel, ConfigDict
from typing import Optional


class ImageAsset(BaseModel):
    """An encoded image: raw base64 payload, its MIME type and the full data URL"""
    model_config = ConfigDict(frozen=True)

    base64: str
    mime_type: str
    data_url: str


class EditRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_image: ImageAsset
    prompt: str


class ImageEditRequest(BaseModel):
    image_data: str  # Data URL of the source image
    prompt: str

class ImageEditResponse(BaseModel):
    success: bool
    image_url: Optional[str] = None  # Data URL of the edited image
    error: Optional[str] = None
