# Agent Console - In-memory presence tracking

import time
from typing import Dict, List


class PresenceTracker:
    """Online users keyed by session token, expired after `timeout` seconds without a heartbeat."""

    def __init__(self, timeout: float = 60.0, clock=time.monotonic):
        self.timeout = timeout
        self.clock = clock
        self._seen: Dict[str, dict] = {}

    def heartbeat(self, session_token: str, user: dict):
        self._seen[session_token] = {**user, "lastSeen": self.clock()}

    def prune(self) -> int:
        now = self.clock()
        stale = [token for token, entry in self._seen.items() if now - entry["lastSeen"] > self.timeout]
        for token in stale:
            del self._seen[token]
        return len(stale)

    def online_users(self) -> List[dict]:
        self.prune()
        unique = {}
        for entry in self._seen.values():
            unique[entry["id"]] = {k: v for k, v in entry.items() if k != "lastSeen"}
        return list(unique.values())
