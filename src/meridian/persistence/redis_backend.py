"""Redis progress channel implementing IProgressChannel."""

from __future__ import annotations

import json
from typing import Any, AsyncIterator

import redis.asyncio as redis

from meridian.core.exceptions import CacheError
from meridian.models.progress import IMPORT_PROGRESS_EVENT


class RedisProgressChannel:
    """Production IProgressChannel backed by Redis.

    The current snapshot lives under ``<prefix>:progress:<user>`` with a TTL;
    every publish is also fanned out on ``<prefix>:events:<user>`` as
    ``{"event": ..., "payload": ...}``.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        key_prefix: str = "meridian:import",
        ttl_seconds: int = 86400,
        client: redis.Redis | None = None,
    ) -> None:
        self._key_prefix = key_prefix
        self._ttl_seconds = ttl_seconds
        self._client = client or redis.Redis(
            host=host, port=port, db=db, decode_responses=True,
        )

    def _key(self, user_id: str) -> str:
        return f"{self._key_prefix}:progress:{user_id}"

    def _channel(self, user_id: str) -> str:
        return f"{self._key_prefix}:events:{user_id}"

    async def publish(self, user_id: str, event: str, payload: dict[str, Any]) -> None:
        snapshot = json.dumps(payload)
        message = json.dumps({"event": event, "payload": payload})
        try:
            await self._client.set(self._key(user_id), snapshot, ex=self._ttl_seconds)
            await self._client.publish(self._channel(user_id), message)
        except Exception as exc:
            raise CacheError(f"Redis publish failed for user={user_id!r}: {exc}") from exc

    async def get_current(self, user_id: str) -> dict[str, Any] | None:
        try:
            raw = await self._client.get(self._key(user_id))
        except Exception as exc:
            raise CacheError(f"Redis GET failed for user={user_id!r}: {exc}") from exc
        return json.loads(raw) if raw is not None else None

    async def clear(self, user_id: str) -> None:
        try:
            await self._client.delete(self._key(user_id))
        except Exception as exc:
            raise CacheError(f"Redis DELETE failed for user={user_id!r}: {exc}") from exc

    async def subscribe(self, user_id: str) -> AsyncIterator[tuple[str, dict[str, Any]]]:
        pubsub = self._client.pubsub()
        try:
            await pubsub.subscribe(self._channel(user_id))
        except Exception as exc:
            raise CacheError(f"Redis SUBSCRIBE failed for user={user_id!r}: {exc}") from exc
        try:
            # read after SUBSCRIBE so no event between the two is missed
            snapshot = await self.get_current(user_id)
            if snapshot is not None:
                yield IMPORT_PROGRESS_EVENT, snapshot
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                data = json.loads(message["data"])
                yield data["event"], data["payload"]
        finally:
            await pubsub.unsubscribe(self._channel(user_id))
            await pubsub.aclose()

    async def close(self) -> None:
        await self._client.aclose()
