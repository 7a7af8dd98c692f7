from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from models.image_edit import ImageAsset


class EditorStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILURE = "failure"


class EditorState(BaseModel):
    """Everything the page renders for one session.

    Transitions return new instances; the validator rejects combinations the
    page must never show, such as a spinner next to a stale error.
    """
    model_config = ConfigDict(frozen=True)

    status: EditorStatus = EditorStatus.IDLE
    source_image: Optional[ImageAsset] = None
    prompt: str = ""
    result_image: Optional[str] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _check_status_fields(self) -> "EditorState":
        if self.status is EditorStatus.LOADING:
            if self.error is not None or self.result_image is not None:
                raise ValueError("loading state cannot carry a result or an error")
            if self.source_image is None:
                raise ValueError("loading state requires a source image")
        elif self.status is EditorStatus.SUCCESS:
            if self.result_image is None or self.error is not None:
                raise ValueError("success state requires a result and no error")
        elif self.status is EditorStatus.FAILURE:
            if self.error is None or self.result_image is not None:
                raise ValueError("failure state requires an error and no result")
        elif self.error is not None:
            raise ValueError("idle state cannot carry an error")
        return self

    def _evolve(self, **changes: Any) -> "EditorState":
        data = {name: getattr(self, name) for name in type(self).model_fields}
        data.update(changes)
        return type(self)(**data)

    @property
    def is_loading(self) -> bool:
        return self.status is EditorStatus.LOADING

    @property
    def can_generate(self) -> bool:
        return (
            self.source_image is not None
            and bool(self.prompt.strip())
            and not self.is_loading
        )

    def with_source(self, image: ImageAsset) -> "EditorState":
        return self._evolve(
            status=EditorStatus.IDLE,
            source_image=image,
            result_image=None,
            error=None
        )

    def with_prompt(self, prompt: str) -> "EditorState":
        return self._evolve(prompt=prompt)

    def loading(self) -> "EditorState":
        return self._evolve(status=EditorStatus.LOADING, result_image=None, error=None)

    def succeeded(self, result_image: str) -> "EditorState":
        return self._evolve(status=EditorStatus.SUCCESS, result_image=result_image, error=None)

    def failed(self, error: str) -> "EditorState":
        return self._evolve(status=EditorStatus.FAILURE, result_image=None, error=error)


class PromptPayload(BaseModel):
    prompt: str


class EditorSessionResponse(BaseModel):
    success: bool
    session_id: Optional[str] = None
    state: Optional[EditorState] = None
    error: Optional[str] = None
