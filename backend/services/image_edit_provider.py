from typing import Protocol, runtime_checkable

from models.image_edit import ImageAsset


@runtime_checkable
class ImageEditProvider(Protocol):
    """Anything that can turn (image, prompt) into the data URL of an edited image.

    Implementations raise GenerationFailedError (or its NoImageReturnedError
    subclass) instead of returning error values.
    """

    async def edit(self, image: ImageAsset, prompt: str) -> str:
        ...
