"""
Error taxonomy for the image editor.

Every error carries a ``user_message`` that is safe to show in the page.
Provider internals are logged where they happen and never copied here.
"""
from typing import Optional


class ImageEditorError(Exception):
    """Base class for every failure surfaced to the user"""

    user_message: str = "An unknown error occurred."

    def __init__(self, user_message: Optional[str] = None):
        if user_message is not None:
            self.user_message = user_message
        super().__init__(self.user_message)


class FileReadError(ImageEditorError):
    user_message = "Could not read the selected file."


class ValidationError(ImageEditorError):
    user_message = "Please upload an image and enter a prompt."


class GenerationFailedError(ImageEditorError):
    user_message = "Failed to generate the image due to an API error. Please try again."


class NoImageReturnedError(GenerationFailedError):
    """The provider answered but none of the parts carried image bytes"""

    user_message = "No image data was found in the API response."


class EditorBusyError(ImageEditorError):
    user_message = "An image is already being generated. Please wait for it to finish."


class SessionNotFoundError(ImageEditorError):
    user_message = "Editor session not found."


class NothingToDownloadError(ImageEditorError):
    user_message = "There is no generated image to download yet."
