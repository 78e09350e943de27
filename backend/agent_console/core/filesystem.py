# Agent Console - Allow-listed filesystem operations
# Every public path is checked against the allow-list before any I/O happens.

import grp
import os
import posixpath
import pwd
import shutil
import stat as stat_module
from datetime import datetime, timezone
from typing import Dict, List, Optional


class PathNotAllowedError(PermissionError):
    pass


def normalize_path(path: str) -> str:
    """Lexically normalize an absolute POSIX path without touching the disk."""
    if not path or not path.startswith("/"):
        raise PathNotAllowedError(f"Path must be absolute: {path!r}")
    normalized = posixpath.normpath(path)
    # POSIX keeps a leading '//' as implementation defined; collapse it
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


def is_path_allowed(path: str, allowed_roots: List[str]) -> bool:
    """A path is allowed when it equals a root or lies beneath one ('/' only matches itself)."""
    try:
        normalized = normalize_path(path)
    except PathNotAllowedError:
        return False
    for root in allowed_roots:
        root = posixpath.normpath(root)
        if normalized == root:
            return True
        if root != "/" and normalized.startswith(root + "/"):
            return True
    return False


def ensure_allowed(path: str, allowed_roots: List[str]) -> str:
    if not is_path_allowed(path, allowed_roots):
        raise PathNotAllowedError(f"Access to this path is not allowed: {path}")
    return normalize_path(path)


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def browse_directory(path: str) -> List[Dict]:
    """List a directory, directories first then files, alphabetically."""
    entries = []
    for entry in os.scandir(path):
        try:
            st = entry.stat()
            is_dir = entry.is_dir()
        except OSError:
            # Skip files we can't access
            continue
        entries.append({
            "name": entry.name,
            "isDirectory": is_dir,
            "isFile": entry.is_file(),
            "size": st.st_size,
            "modified": _iso(st.st_mtime),
            "path": os.path.join(path, entry.name),
            "hasSkillMd": is_dir and os.path.isfile(os.path.join(entry.path, "SKILL.md")),
        })

    entries.sort(key=lambda e: (not e["isDirectory"], e["name"].lower()))
    return entries


def read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def write_text(path: str, content: str):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)


def create_file(path: str, content: str = "") -> bool:
    """Create a new file. Returns False when it already exists."""
    if os.path.exists(path):
        return False
    write_text(path, content)
    return True


def create_folder(path: str, projects_dir: str) -> bool:
    """
    Create a folder. A direct child of the projects directory is a new project
    and also gets the .claude/agents and .claude/skills layout.
    Returns True when the project layout was created.
    """
    os.makedirs(path, exist_ok=True)

    parent = posixpath.dirname(path)
    is_project = parent == posixpath.normpath(projects_dir)
    if is_project:
        os.makedirs(os.path.join(path, ".claude", "agents"), exist_ok=True)
        os.makedirs(os.path.join(path, ".claude", "skills"), exist_ok=True)
    return is_project


def delete_path(path: str, recursive: bool = False) -> bool:
    """
    Delete a file or directory. Returns True when a directory was removed.
    Non-empty directories require recursive=True (OSError otherwise).
    """
    if os.path.isdir(path) and not os.path.islink(path):
        if recursive:
            shutil.rmtree(path)
        else:
            os.rmdir(path)
        return True
    os.unlink(path)
    return False


def save_upload(target_dir: str, file_name: str, data: bytes) -> bool:
    """Write uploaded bytes. Returns True when an existing file was overwritten."""
    os.makedirs(target_dir, exist_ok=True)
    file_path = os.path.join(target_dir, os.path.basename(file_name))
    existed = os.path.exists(file_path)
    with open(file_path, "wb") as f:
        f.write(data)
    return existed


def _owner_names(st: os.stat_result):
    owner = group = "unknown"
    try:
        owner = pwd.getpwuid(st.st_uid).pw_name
    except KeyError:
        pass
    try:
        group = grp.getgrgid(st.st_gid).gr_name
    except KeyError:
        pass
    return owner, group


def read_permissions(path: str) -> Dict:
    st = os.stat(path)
    owner, group = _owner_names(st)
    return {
        "mode": format(stat_module.S_IMODE(st.st_mode) & 0o777, "03o"),
        "owner": owner,
        "group": group,
        "isDirectory": stat_module.S_ISDIR(st.st_mode),
        "size": st.st_size,
        "modified": _iso(st.st_mtime),
    }


def change_permissions(path: str, mode: str):
    os.chmod(path, int(mode, 8))


def list_subdirectories(path: str, exclude: Optional[List[str]] = None) -> List[str]:
    exclude = exclude or []
    if not os.path.isdir(path):
        return []
    return sorted(
        entry.name for entry in os.scandir(path)
        if entry.is_dir() and not entry.name.startswith(".") and entry.name not in exclude
    )
