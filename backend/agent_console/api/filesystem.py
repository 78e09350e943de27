# Agent Console - File explorer routes
# Every path is checked against the allow-list before the filesystem is touched.

import errno
import logging
import os
import posixpath
from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlmodel import Session

from agent_console.api.deps import get_broadcaster, get_current_user, get_settings
from agent_console.core import filesystem as fs_ops
from agent_console.core.broadcaster import ActivityBroadcaster
from agent_console.core.config import Settings
from agent_console.core.database import get_session
from agent_console.core.filesystem import PathNotAllowedError, ensure_allowed
from agent_console.models import User
from agent_console.schemas import CreateEntryRequest, DeleteRequest, PermissionChange, WriteFileRequest
from agent_console.services.activity import try_record_activity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/filesystem", tags=["filesystem"])

EXPLORER_AGENT = "file-explorer"


def _child_path(settings: Settings, parent: str, name: str) -> str:
    if "/" in name or name in (".", ".."):
        raise HTTPException(status_code=400, detail="Invalid name")
    return ensure_allowed(posixpath.join(parent, name), settings.allowed_roots)


@router.get("/browse")
async def browse(path: str = "", user: User = Depends(get_current_user), settings: Settings = Depends(get_settings)):
    path = ensure_allowed(path or settings.PROJECTS_DIR, settings.allowed_roots)
    if not os.path.isdir(path):
        raise HTTPException(status_code=404, detail="Directory not found")
    try:
        entries = fs_ops.browse_directory(path)
    except OSError as e:
        logger.error(f"Error browsing {path}: {e}")
        raise HTTPException(status_code=500, detail={"message": "Failed to read directory", "details": str(e)})
    return {"path": path, "entries": entries, "count": len(entries)}


@router.get("/read")
async def read_file(path: str, user: User = Depends(get_current_user), settings: Settings = Depends(get_settings)):
    path = ensure_allowed(path, settings.allowed_roots)
    if not os.path.isfile(path):
        raise HTTPException(status_code=404, detail="File not found")
    try:
        content = fs_ops.read_text(path)
    except (OSError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=500, detail={"message": "Failed to read file", "details": str(e)})
    return {"path": path, "content": content}


@router.post("/write")
async def write_file(
    request: WriteFileRequest,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    path = ensure_allowed(request.path, settings.allowed_roots)
    if os.path.isdir(path):
        raise HTTPException(status_code=400, detail="Path is a directory")
    fs_ops.write_text(path, request.content)
    logger.info(f"File written: {path} ({len(request.content)} chars) by {user.email}")
    return {"success": True, "path": path}


@router.post("/create-file")
async def create_file(
    request: CreateEntryRequest,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
    broadcaster: ActivityBroadcaster = Depends(get_broadcaster),
):
    ensure_allowed(request.path, settings.allowed_roots)
    path = _child_path(settings, request.path, request.name)
    if not fs_ops.create_file(path, request.content):
        raise HTTPException(status_code=409, detail="File already exists")

    await try_record_activity(
        session, broadcaster,
        agent=EXPLORER_AGENT, action="create_file", details=f"Created file: {path}", user_id=user.id,
    )
    return {"success": True, "path": path, "name": request.name}


@router.post("/create-folder")
async def create_folder(
    request: CreateEntryRequest,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
    broadcaster: ActivityBroadcaster = Depends(get_broadcaster),
):
    ensure_allowed(request.path, settings.allowed_roots)
    path = _child_path(settings, request.path, request.name)
    if os.path.exists(path):
        raise HTTPException(status_code=409, detail="Folder already exists")

    is_project = fs_ops.create_folder(path, settings.PROJECTS_DIR)
    if is_project:
        logger.info(f"Created .claude structure for project: {path}")

    await try_record_activity(
        session, broadcaster,
        agent=EXPLORER_AGENT,
        action="create_folder",
        details=f"Created folder: {path}{' (with .claude structure)' if is_project else ''}",
        user_id=user.id,
    )
    return {"success": True, "path": path, "name": request.name, "isProject": is_project}


@router.post("/delete")
async def delete_entry(
    request: DeleteRequest,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
    broadcaster: ActivityBroadcaster = Depends(get_broadcaster),
):
    path = ensure_allowed(request.path, settings.allowed_roots)
    if path in {posixpath.normpath(root) for root in settings.allowed_roots}:
        raise PathNotAllowedError(f"Cannot delete an allowed root directory: {path}")
    if not os.path.lexists(path):
        raise HTTPException(status_code=404, detail="File or folder not found")

    try:
        was_dir = fs_ops.delete_path(path, recursive=request.recursive)
    except OSError as e:
        if e.errno in (errno.ENOTEMPTY, errno.EEXIST):
            raise HTTPException(status_code=400, detail="Directory is not empty")
        raise

    kind = "Directory" if was_dir else "File"
    await try_record_activity(
        session, broadcaster,
        agent=EXPLORER_AGENT,
        action="delete_folder" if was_dir else "delete_file",
        details=f"Deleted {kind.lower()}: {path}",
        level="warning",
        user_id=user.id,
    )
    return {"success": True, "message": f"{kind} deleted successfully"}


@router.post("/upload")
async def upload_files(
    targetPath: str = Form(...),
    files: List[UploadFile] = File(...),
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
    broadcaster: ActivityBroadcaster = Depends(get_broadcaster),
):
    target = ensure_allowed(targetPath, settings.allowed_roots)
    if not files:
        raise HTTPException(status_code=400, detail="No files provided")

    uploaded = []
    failed = []
    for upload in files:
        file_name = os.path.basename(upload.filename or "")
        if not file_name:
            failed.append({"name": upload.filename or "", "error": "Missing file name"})
            continue
        try:
            data = await upload.read()
            existed = fs_ops.save_upload(target, file_name, data)
            uploaded.append(file_name)
            logger.info(f"Uploaded: {posixpath.join(target, file_name)} ({len(data)} bytes){' [overwritten]' if existed else ''}")
        except OSError as e:
            logger.error(f"Failed to upload {file_name}: {e}")
            failed.append({"name": file_name, "error": str(e)})

    if uploaded:
        await try_record_activity(
            session, broadcaster,
            agent=EXPLORER_AGENT,
            action="upload_files",
            details=f"Uploaded {len(uploaded)} file(s) to {target}: {', '.join(uploaded)}",
            user_id=user.id,
        )

    response = {"success": True, "uploaded": uploaded, "uploadedCount": len(uploaded), "targetPath": target}
    if failed:
        response["failed"] = failed
        response["failedCount"] = len(failed)
    return response


@router.get("/permissions")
async def get_permissions(path: str, user: User = Depends(get_current_user), settings: Settings = Depends(get_settings)):
    path = ensure_allowed(path, settings.allowed_roots)
    try:
        return fs_ops.read_permissions(path)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Path not found")


@router.post("/permissions")
async def change_permissions(
    request: PermissionChange,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
    broadcaster: ActivityBroadcaster = Depends(get_broadcaster),
):
    path = ensure_allowed(request.path, settings.allowed_roots)
    try:
        fs_ops.change_permissions(path, request.mode)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Path not found")

    await try_record_activity(
        session, broadcaster,
        agent=EXPLORER_AGENT,
        action="change_permissions",
        details=f"Changed permissions of {path} to {request.mode}",
        user_id=user.id,
    )
    return {"success": True, "mode": request.mode}
