from enum import Enum
from dataclasses import dataclass
from datetime import datetime
import json


class EventType(str, Enum):
    # Tournament events
    TOURNAMENT_CREATED = "tournament.created"
    TOURNAMENT_DELETED = "tournament.deleted"
    
    # Team events
    TEAM_CREATED = "team.created"
    TEAM_DELETED = "team.deleted"
    
    # Screenshot events
    SCREENSHOT_CREATED = "screenshot.created"
    SCREENSHOT_UPDATED = "screenshot.updated"
    SCREENSHOT_DELETED = "screenshot.deleted"


@dataclass
class Event:
    type: EventType
    tournament_id: str
    timestamp: str = None
    data: dict = None
    
    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.utcnow().isoformat() + "Z"
        if self.data is None:
            self.data = {}
    
    def to_dict(self) -> dict:
        return {
            "type": self.type.value if isinstance(self.type, EventType) else self.type,
            "tournament_id": self.tournament_id,
            "timestamp": self.timestamp,
            "data": self.data
        }
    
    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def tournament_event(event_type: EventType, tournament_id: str, name: str) -> Event:
    return Event(
        type=event_type,
        tournament_id=tournament_id,
        data={"name": name}
    )


def team_event(event_type: EventType, tournament_id: str, team_id: str, name: str) -> Event:
    return Event(
        type=event_type,
        tournament_id=tournament_id,
        data={
            "team_id": team_id,
            "name": name
        }
    )


def screenshot_event(event_type: EventType, tournament_id: str, screenshot: dict) -> Event:
    return Event(
        type=event_type,
        tournament_id=tournament_id,
        data={
            "screenshot_id": screenshot.get("screenshot_id"),
            "team_id": screenshot.get("team_id"),
            "day": screenshot.get("day"),
            "placement": screenshot.get("placement"),
            "kills": screenshot.get("kills"),
            "points": screenshot.get("points")
        }
    )
