import logging
from typing import Any, Optional, Tuple

from config.settings import settings
from core.errors import (
    EditorBusyError,
    FileReadError,
    GenerationFailedError,
    NothingToDownloadError,
    SessionNotFoundError,
    ValidationError,
)
from core.session_store import EditorSession, SessionStore, get_session_store
from models.editor import EditorState
from models.image_edit import EditRequest, ImageAsset
from services.image_edit_provider import ImageEditProvider
from services.image_encoder import decode_data_url, encode_image

logger = logging.getLogger(__name__)


class EditorService:
    """Drives one editor session: Idle -> Loading -> Success | Failure.

    Only one generation per session may be in flight; a second request while
    loading raises EditorBusyError. Selecting a new file or resetting while a
    request is pending makes its eventual outcome be discarded.
    """

    def __init__(self, provider: ImageEditProvider, store: Optional[SessionStore] = None):
        self.provider = provider
        self.store = store or get_session_store()

    def create_session(self) -> EditorSession:
        session = self.store.create()
        logger.info("🆕 Created editor session %s", session.id)
        return session

    def get_session(self, session_id: str) -> EditorSession:
        session = self.store.get(session_id)
        if session is None:
            raise SessionNotFoundError()
        return session

    def get_state(self, session_id: str) -> EditorState:
        return self.get_session(session_id).state

    def delete_session(self, session_id: str) -> None:
        if not self.store.delete(session_id):
            raise SessionNotFoundError()

    def select_file(self, session_id: str, image: ImageAsset) -> EditorState:
        """Replace the source image; the previous result and error are discarded"""
        session = self.get_session(session_id)
        session.revision += 1
        session.state = session.state.with_source(image)
        return session.state

    def record_file_error(self, session_id: str, error: Optional[FileReadError] = None) -> EditorState:
        session = self.get_session(session_id)
        session.revision += 1
        session.state = session.state.failed((error or FileReadError()).user_message)
        return session.state

    async def upload_file(self, session_id: str, file: Any) -> EditorState:
        # Fail fast on an unknown session before reading the upload
        self.get_session(session_id)
        try:
            image = await encode_image(file)
        except FileReadError as error:
            return self.record_file_error(session_id, error)
        return self.select_file(session_id, image)

    def set_prompt(self, session_id: str, prompt: str) -> EditorState:
        session = self.get_session(session_id)
        session.state = session.state.with_prompt(prompt)
        return session.state

    def reset(self, session_id: str) -> EditorState:
        session = self.get_session(session_id)
        session.revision += 1
        session.state = EditorState()
        return session.state

    async def generate(self, session_id: str) -> EditorState:
        """
        Run one edit attempt for the session's current image and prompt.

        Returns:
            The session state after the attempt. Validation and provider
            failures are reported through a failure state, not raised.

        Raises:
            SessionNotFoundError: Unknown or expired session
            EditorBusyError: A generation is already running for this session
        """
        session = self.get_session(session_id)
        state = session.state

        if state.is_loading:
            raise EditorBusyError()

        try:
            request = self.build_request(state)
        except ValidationError as error:
            session.state = state.failed(error.user_message)
            return session.state

        session.revision += 1
        revision = session.revision
        session.state = state.loading()
        logger.info("🎨 Generating edit for session %s", session_id)

        try:
            result_image = await call_provider(self.provider, request.source_image, request.prompt)
            outcome = session.state.succeeded(result_image)
        except GenerationFailedError as error:
            logger.warning("⚠️ Edit failed for session %s: %s", session_id, error.user_message)
            outcome = session.state.failed(error.user_message)

        if session.revision != revision or self.store.get(session_id) is not session:
            logger.info("🗑️ Discarding stale edit result for session %s", session_id)
            return session.state

        session.state = outcome
        return session.state

    def download(self, session_id: str) -> Tuple[bytes, str, str]:
        """
        Get the generated image for saving.

        Returns:
            Tuple of (image bytes, media type, filename). The filename is
            always the configured download name, whatever the media type.
        """
        state = self.get_state(session_id)
        if state.result_image is None:
            raise NothingToDownloadError()
        content, media_type = decode_data_url(state.result_image)
        return content, media_type, settings.DOWNLOAD_FILENAME

    @staticmethod
    def build_request(state: EditorState) -> EditRequest:
        prompt = state.prompt.strip()
        if state.source_image is None or not prompt:
            raise ValidationError()
        return EditRequest(source_image=state.source_image, prompt=prompt)


async def edit_once(provider: ImageEditProvider, image: Optional[ImageAsset], prompt: str) -> str:
    """Stateless single edit, used by the plain image-edit endpoint"""
    prompt = (prompt or "").strip()
    if image is None or not image.base64 or not prompt:
        raise ValidationError()
    return await call_provider(provider, image, prompt)


async def call_provider(provider: ImageEditProvider, image: ImageAsset, prompt: str) -> str:
    """Run one provider call; anything other than a typed failure becomes GenerationFailedError"""
    try:
        return await provider.edit(image, prompt)
    except GenerationFailedError:
        raise
    except Exception as error:
        logger.exception("❌ Unexpected error from image edit provider: %s", error)
        raise GenerationFailedError() from error
