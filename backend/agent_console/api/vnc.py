# Agent Console - VNC displays and clipboard bridge

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from agent_console.api.deps import get_broadcaster, get_current_user
from agent_console.core.broadcaster import ActivityBroadcaster
from agent_console.core.database import get_session
from agent_console.models import User
from agent_console.schemas import VNCCopyRequest, VNCPasteRequest
from agent_console.services import vnc as vnc_service
from agent_console.services.activity import try_record_activity
from agent_console.services.vnc import ClipboardError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vnc", tags=["vnc"])

VNC_AGENT = "vnc-clipboard"


def _check_display(session: Session, display: str) -> str:
    if vnc_service.find_display(session, display) is None:
        known = ", ".join(d.display for d in vnc_service.active_displays(session))
        raise HTTPException(status_code=400, detail=f"Valid display parameter is required ({known})")
    return display


@router.get("/displays")
async def list_displays(user: User = Depends(get_current_user), session: Session = Depends(get_session)):
    displays = [
        {"display": d.display, "port": d.port, "resolution": d.resolution}
        for d in vnc_service.active_displays(session)
    ]
    return {"displays": displays}


@router.post("/copy")
async def copy_from_vnc(
    request: VNCCopyRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    broadcaster: ActivityBroadcaster = Depends(get_broadcaster),
):
    display = _check_display(session, request.display)
    try:
        text = await vnc_service.read_clipboard(display)
    except ClipboardError as e:
        logger.error(f"Error copying from VNC {display}: {e}")
        await try_record_activity(
            session, broadcaster,
            agent=VNC_AGENT, action="copy_from_vnc_error",
            details=f"Failed to copy from VNC: {e}", level="error", user_id=user.id,
        )
        raise HTTPException(status_code=500, detail="Failed to copy from VNC. Ensure xclip is installed and VNC is running.")

    await try_record_activity(
        session, broadcaster,
        agent=VNC_AGENT,
        action="copy_from_vnc",
        details=f"User {user.email} copied {len(text)} characters from VNC display {display}",
        user_id=user.id,
    )
    return {"text": text, "display": display}


@router.post("/paste")
async def paste_to_vnc(
    request: VNCPasteRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    broadcaster: ActivityBroadcaster = Depends(get_broadcaster),
):
    display = _check_display(session, request.display)
    if request.text is None:
        raise HTTPException(status_code=400, detail="Text parameter is required")

    try:
        await vnc_service.paste_text(display, request.text)
    except ClipboardError as e:
        logger.error(f"Error pasting to VNC {display}: {e}")
        await try_record_activity(
            session, broadcaster,
            agent=VNC_AGENT, action="paste_to_vnc_error",
            details=f"Failed to paste to VNC: {e}", level="error", user_id=user.id,
        )
        raise HTTPException(
            status_code=500,
            detail="Failed to paste to VNC. Ensure xclip and xdotool are installed and VNC is running.",
        )

    await try_record_activity(
        session, broadcaster,
        agent=VNC_AGENT,
        action="paste_to_vnc",
        details=f"User {user.email} pasted {len(request.text)} characters to VNC display {display}",
        user_id=user.id,
    )
    return {"success": True, "display": display, "length": len(request.text)}
