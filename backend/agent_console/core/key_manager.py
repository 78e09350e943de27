# Agent Console - Gemini API Key Manager with Usage Tracking

import logging
from datetime import datetime
from typing import Dict, List, Optional

from google.genai import Client as GeminiClient

logger = logging.getLogger(__name__)


class KeyManager:
    """
    Manages the Gemini API key pool with:
    - Round-robin rotation
    - Exhaustion marking on quota errors
    - Usage tracking per key
    """

    def __init__(self, keys: List[str]):
        self.keys = list(keys)
        self.index = 0
        self.exhausted: set = set()
        self.client: Optional[GeminiClient] = None
        self.key_stats = {
            key: {'calls_made': 0, 'errors': 0, 'last_used': None, 'last_error': None}
            for key in self.keys
        }

    def get_current_key(self) -> str:
        if not self.keys:
            raise ValueError("No Gemini API keys configured (GEMINI_API_KEYS)")
        if self.keys[self.index] in self.exhausted:
            self.rotate_key()
        return self.keys[self.index]

    def get_client(self) -> GeminiClient:
        """Returns the active genai Client."""
        if self.client is None:
            self.client = GeminiClient(api_key=self.get_current_key())
        return self.client

    def mark_exhausted(self, key: str):
        self.exhausted.add(key)
        logger.warning(f"KeyManager: key ...{key[-4:]} marked exhausted")

    def rotate_key(self) -> GeminiClient:
        """Switches to the next non-exhausted key and refreshes the client."""
        if not self.keys or len(self.exhausted) >= len(self.keys):
            raise RuntimeError("All API keys have been exhausted")

        prev = self.index
        for _ in range(len(self.keys)):
            self.index = (self.index + 1) % len(self.keys)
            if self.keys[self.index] not in self.exhausted:
                break

        logger.info(f"KeyManager: Rotated Key from ...{self.keys[prev][-4:]} to ...{self.keys[self.index][-4:]}")
        self.client = GeminiClient(api_key=self.keys[self.index])
        return self.client

    def track_usage(self, success: bool = True, error_msg: str = None):
        """Track API call usage for current key."""
        if not self.keys:
            return
        stats = self.key_stats[self.keys[self.index]]
        stats['calls_made'] += 1
        stats['last_used'] = datetime.now().isoformat()
        if not success:
            stats['errors'] += 1
            stats['last_error'] = error_msg

    def get_status(self) -> Dict:
        """Get health status of all API keys."""
        return {
            'keys': [
                {
                    'key_id': f"key_{i+1}",
                    'masked': f"...{key[-4:]}",
                    'status': 'exhausted' if key in self.exhausted else 'active',
                    'calls_made': self.key_stats[key]['calls_made'],
                    'errors': self.key_stats[key]['errors'],
                    'last_used': self.key_stats[key]['last_used'],
                }
                for i, key in enumerate(self.keys)
            ],
            'active_keys': len(self.keys) - len(self.exhausted),
            'exhausted_keys': len(self.exhausted),
            'current_key_index': self.index,
        }
