"""
File-backed persistence for sync state and cached genre profiles.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from likes_router.models.profile import CachedProfileEntry
from likes_router.models.sync_state import SyncState
from likes_router.utils.cache_manager import CacheManager, write_json_atomic

logger = logging.getLogger(__name__)

STATE_FILENAME = "state.json"
PROFILES_FILENAME = "playlist_profiles.json"

class StateStore:
    """
    Persistence adapter for the sync orchestrator.

    The state file holds the watermark and rebuild timestamps and is replaced
    atomically on every write. Profiles go through a CacheManager keyed by
    playlist id and content version.

    Not safe for two processes sharing one data directory.
    """

    def __init__(self, data_dir: Path, cache_manager: Optional[CacheManager] = None):
        self.data_dir = Path(data_dir)
        self.state_path = self.data_dir / STATE_FILENAME
        self.cache_manager = cache_manager or CacheManager(self.data_dir / PROFILES_FILENAME)

    async def __aenter__(self):
        await self.cache_manager.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cache_manager.close()

    async def read_state(self) -> SyncState:
        """Load the sync state. Missing or unreadable state yields a fresh one."""
        if not self.state_path.exists():
            return SyncState()
        try:
            with open(self.state_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return SyncState.from_dict(data)
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"Could not read {self.state_path}, starting from empty state: {e}")
            return SyncState()

    async def write_state(self, state: SyncState) -> None:
        write_json_atomic(self.state_path, state.to_dict())
        logger.debug(f"Wrote sync state to {self.state_path}")

    def _profile_key(self, playlist_id: str, content_version: str) -> str:
        return self.cache_manager.get_cache_key("profile", playlist_id, content_version)

    async def get_cached_profile(self, playlist_id: str, content_version: str) -> Optional[CachedProfileEntry]:
        data = await self.cache_manager.get(self._profile_key(playlist_id, content_version))
        if not data:
            return None
        return CachedProfileEntry.from_dict(data)

    async def put_cached_profile(self, entry: CachedProfileEntry) -> None:
        await self.cache_manager.set(
            self._profile_key(entry.playlist_id, entry.content_version),
            entry.to_dict()
        )
