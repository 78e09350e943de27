# Agent Console - Clipboard bridge to the VNC X displays
# Copy reads the X clipboard with xclip, paste sets it and types the text with xdotool.

import asyncio
import logging
import os
from typing import Dict, List, Optional, Sequence

from sqlmodel import Session, select

from agent_console.models import VNCDisplay

logger = logging.getLogger(__name__)

COPY_TIMEOUT = 2.0
CLIPBOARD_TIMEOUT = 5.0
TYPE_TIMEOUT = 10.0
EMPTY_CLIPBOARD = "target STRING not available"


class ClipboardError(Exception):
    pass


def active_displays(session: Session) -> List[VNCDisplay]:
    return list(session.exec(
        select(VNCDisplay).where(VNCDisplay.is_active == True).order_by(VNCDisplay.display)  # noqa: E712
    ).all())


def find_display(session: Session, display: str) -> Optional[VNCDisplay]:
    if not display:
        return None
    return session.exec(
        select(VNCDisplay).where(VNCDisplay.display == display, VNCDisplay.is_active == True)  # noqa: E712
    ).first()


async def _run(
    cmd: Sequence[str],
    timeout: float,
    stdin: Optional[bytes] = None,
    env: Optional[dict] = None,
    capture: bool = True,
):
    """
    Run a command and return (returncode, stdout, stderr). Raises ClipboardError on timeout.
    capture=False leaves the output unread, for commands that fork a daemon holding the pipes.
    """
    output = asyncio.subprocess.PIPE if capture else asyncio.subprocess.DEVNULL
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
            stdout=output,
            stderr=output,
            env=env,
        )
    except FileNotFoundError as e:
        raise ClipboardError(f"{cmd[0]} is not installed") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(stdin), timeout=timeout)
    except asyncio.TimeoutError as e:
        proc.kill()
        await proc.wait()
        raise ClipboardError(f"{cmd[0]} timed out after {timeout}s") from e

    return (
        proc.returncode,
        (stdout or b"").decode("utf-8", errors="replace"),
        (stderr or b"").decode("utf-8", errors="replace"),
    )


async def read_clipboard(display: str) -> str:
    """Clipboard text of an X display. An empty clipboard reads as ''."""
    code, stdout, stderr = await _run(
        ["xclip", "-o", "-selection", "clipboard", "-display", display],
        timeout=COPY_TIMEOUT,
    )
    if EMPTY_CLIPBOARD in stderr:
        return ""
    if code != 0:
        raise ClipboardError(stderr.strip() or f"xclip exited with {code}")
    if stderr:
        logger.warning(f"xclip stderr: {stderr.strip()}")
    return stdout


async def paste_text(display: str, text: str):
    """Put text on the display's clipboard, then type it into the focused window."""
    code, _, _ = await _run(
        ["xclip", "-selection", "clipboard", "-display", display],
        timeout=CLIPBOARD_TIMEOUT,
        stdin=text.encode("utf-8"),
        capture=False,
    )
    if code != 0:
        raise ClipboardError(f"xclip exited with {code}")

    env = {**os.environ, "DISPLAY": display}
    code, _, stderr = await _run(
        ["xdotool", "type", "--clearmodifiers", "--", text],
        timeout=TYPE_TIMEOUT,
        env=env,
    )
    if code != 0:
        raise ClipboardError(stderr.strip() or f"xdotool exited with {code}")


def ensure_displays(session: Session, display_map: Dict[str, int]) -> int:
    """Insert configured displays that have no row yet. Returns how many were added."""
    existing = {d.display for d in session.exec(select(VNCDisplay)).all()}
    added = 0
    for display, port in display_map.items():
        if display in existing:
            continue
        session.add(VNCDisplay(display=display, port=port))
        added += 1
    if added:
        session.commit()
        logger.info(f"Registered {added} VNC display(s)")
    return added
