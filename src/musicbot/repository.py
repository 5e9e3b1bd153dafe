"""Storage collaborators used by the handlers.

Cached-track persistence lives outside this package; handlers depend only on
these signatures.
"""

from __future__ import annotations

from typing import Protocol

from .platform.quality import Quality


class SongRepository(Protocol):
    async def count(self) -> int: ...

    async def count_by_chat_id(self, chat_id: int) -> int: ...

    async def count_by_user_id(self, user_id: int) -> int: ...

    async def count_by_platform(self) -> dict[str, int]: ...

    async def get_send_count(self) -> int: ...

    async def delete_all_qualities_by_platform_track_id(
        self, platform: str, track_id: str
    ) -> None: ...


class QualityPreferences(Protocol):
    async def get_quality(self, user_id: int) -> Quality | None: ...

    async def set_quality(self, user_id: int, quality: Quality) -> None: ...
