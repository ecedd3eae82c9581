"""
Fire-and-forget notifications over Redis pub/sub.

Delivery failures are logged and swallowed: a notification never changes the
outcome of the scoring operation that triggered it.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from horizon_risk.core.clock import utc_now
from horizon_risk.core.config import settings
from horizon_risk.core.database import get_redis_client
from horizon_risk.core.logging import get_logger

if TYPE_CHECKING:
    import redis.asyncio as redis

    from horizon_risk.schemas.moderation import ModerationResult
    from horizon_risk.schemas.trust import TrustResult

logger = get_logger(__name__)


class NotificationDispatcher:
    """Publishes owner notifications and trust score broadcasts."""

    def __init__(self, redis_client: redis.Redis | None = None):
        self._redis_client = redis_client

    @property
    def redis_client(self) -> redis.Redis | None:
        if self._redis_client is not None:
            return self._redis_client
        return get_redis_client()

    async def publish(self, channel: str, message: dict) -> bool:
        """
        Publish a JSON message to a channel.

        Returns True when the message was handed to Redis.
        """
        client = self.redis_client
        if client is None:
            logger.warning(f"Redis not available, dropping message for {channel}")
            return False

        try:
            await client.publish(channel, json.dumps(message, default=str))
            return True
        except Exception as e:
            logger.exception(f"Redis publish failed on {channel}: {e}")
            return False

    async def notify_user(
        self,
        user_id: str,
        notification_type: str,
        title: str,
        message: str,
        metadata: dict | None = None,
    ) -> bool:
        """Send a notification to one user's channel."""
        payload = {
            "type": notification_type,
            "user_id": user_id,
            "title": title,
            "message": message,
            "metadata": metadata or {},
            "timestamp": utc_now().isoformat(),
        }
        return await self.publish(
            f"{settings.NOTIFICATION_CHANNEL_PREFIX}:{user_id}", payload
        )

    async def dispatch_review_notification(
        self, owner_id: str, campaign_title: str, result: ModerationResult
    ) -> bool:
        """Tell a campaign owner their campaign went to manual review."""
        return await self.notify_user(
            owner_id,
            "campaign_review",
            "Campaign Under Review",
            f'Your campaign "{campaign_title}" is under review. '
            "We'll notify you once the review is complete.",
            metadata={
                "campaign_id": result.campaign_id,
                "moderation_score": result.scores.overall,
                "flags": result.flags,
            },
        )

    async def broadcast_trust_score_update(self, result: TrustResult) -> bool:
        """Broadcast a recalculated trust score."""
        message = {
            "type": "trust_score_update",
            "user_id": result.user_id,
            "trust_score": result.trust_score,
            "trust_tier": result.trust_tier.value,
            "timestamp": result.computed_at.isoformat(),
        }
        return await self.publish(settings.TRUST_BROADCAST_CHANNEL, message)


# Global dispatcher instance
notification_dispatcher = NotificationDispatcher()
