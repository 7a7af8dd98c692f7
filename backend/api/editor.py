from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import Response

from core.errors import EditorBusyError, NothingToDownloadError, SessionNotFoundError
from models.editor import EditorSessionResponse, PromptPayload
from services.editor_service import EditorService
from api.image_edit import get_image_edit_provider

router = APIRouter(prefix="/editor", tags=["editor"])

_editor_service: Optional[EditorService] = None

def get_editor_service() -> EditorService:
    global _editor_service
    if _editor_service is None:
        _editor_service = EditorService(get_image_edit_provider())
    return _editor_service

def _not_found(error: SessionNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.user_message)

@router.post("/sessions", response_model=EditorSessionResponse)
async def create_session(service: EditorService = Depends(get_editor_service)):
    """Start a new editor session for the page"""
    session = service.create_session()
    return EditorSessionResponse(success=True, session_id=session.id, state=session.state)

@router.get("/sessions/{session_id}", response_model=EditorSessionResponse)
async def get_session(session_id: str, service: EditorService = Depends(get_editor_service)):
    try:
        state = service.get_state(session_id)
    except SessionNotFoundError as error:
        raise _not_found(error)
    return EditorSessionResponse(success=True, session_id=session_id, state=state)

@router.delete("/sessions/{session_id}", response_model=EditorSessionResponse)
async def delete_session(session_id: str, service: EditorService = Depends(get_editor_service)):
    try:
        service.delete_session(session_id)
    except SessionNotFoundError as error:
        raise _not_found(error)
    return EditorSessionResponse(success=True, session_id=session_id)

@router.post("/sessions/{session_id}/image", response_model=EditorSessionResponse)
async def upload_image(
    session_id: str,
    file: UploadFile = File(...),
    service: EditorService = Depends(get_editor_service)
):
    """Select a new source image; clears any previous result and error"""
    try:
        state = await service.upload_file(session_id, file)
    except SessionNotFoundError as error:
        raise _not_found(error)
    finally:
        await file.close()

    return EditorSessionResponse(
        success=state.error is None,
        session_id=session_id,
        state=state,
        error=state.error
    )

@router.put("/sessions/{session_id}/prompt", response_model=EditorSessionResponse)
async def update_prompt(
    session_id: str,
    payload: PromptPayload,
    service: EditorService = Depends(get_editor_service)
):
    try:
        state = service.set_prompt(session_id, payload.prompt)
    except SessionNotFoundError as error:
        raise _not_found(error)
    return EditorSessionResponse(success=True, session_id=session_id, state=state)

@router.post("/sessions/{session_id}/generate", response_model=EditorSessionResponse)
async def generate(session_id: str, service: EditorService = Depends(get_editor_service)):
    """Generate (or regenerate) the edited image for the session"""
    try:
        state = await service.generate(session_id)
    except SessionNotFoundError as error:
        raise _not_found(error)
    except EditorBusyError as error:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=error.user_message)

    return EditorSessionResponse(
        success=state.error is None,
        session_id=session_id,
        state=state,
        error=state.error
    )

@router.post("/sessions/{session_id}/reset", response_model=EditorSessionResponse)
async def reset_session(session_id: str, service: EditorService = Depends(get_editor_service)):
    try:
        state = service.reset(session_id)
    except SessionNotFoundError as error:
        raise _not_found(error)
    return EditorSessionResponse(success=True, session_id=session_id, state=state)

@router.get("/sessions/{session_id}/download")
async def download_result(session_id: str, service: EditorService = Depends(get_editor_service)):
    """Download the generated image under a fixed filename"""
    try:
        content, media_type, filename = service.download(session_id)
    except (SessionNotFoundError, NothingToDownloadError) as error:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.user_message)

    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
