# Agent Console - Online presence

from fastapi import APIRouter, Depends, HTTPException

from agent_console.api.deps import get_current_user, get_presence
from agent_console.models import User
from agent_console.services.presence import PresenceTracker

router = APIRouter(prefix="/api/presence", tags=["presence"])


@router.get("")
async def online_users(user: User = Depends(get_current_user), presence: PresenceTracker = Depends(get_presence)):
    users = presence.online_users()
    return {"users": users, "count": len(users)}


@router.post("")
async def heartbeat(user: User = Depends(get_current_user), presence: PresenceTracker = Depends(get_presence)):
    if not user.current_session_token:
        raise HTTPException(status_code=401, detail="No active session")
    presence.heartbeat(user.current_session_token, {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
    })
    return {"success": True}
