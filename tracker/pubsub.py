import logging
from typing import Optional

import redis

from .events import Event

logger = logging.getLogger(__name__)


def tournament_channel(tournament_id: str) -> str:
    return f"tournament:{tournament_id}:events"


class EventPublisher:
    """
    Publishes tournament events to Redis so open dashboards can refresh.
    Without a Redis client every publish is a no-op.
    """
    
    def __init__(self, redis_client: Optional[redis.Redis] = None):
        self.redis = redis_client
    
    @classmethod
    def from_url(cls, redis_url: Optional[str]) -> 'EventPublisher':
        if not redis_url:
            logger.info("EventPublisher running without Redis (events disabled)")
            return cls(None)
        return cls(redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5
        ))
    
    @property
    def enabled(self) -> bool:
        return self.redis is not None
    
    def publish(self, channel: str, event: Event) -> bool:
        if not self.redis:
            return False
        try:
            self.redis.publish(channel, event.to_json())
            return True
        except redis.RedisError as e:
            logger.warning(f"Failed to publish {event.type} on {channel}: {e}")
            return False
    
    def publish_tournament_event(self, event: Event) -> bool:
        return self.publish(tournament_channel(event.tournament_id), event)
