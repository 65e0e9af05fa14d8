from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum

class ActivityType(str, Enum):
    ROUTE_CREATED = "route_created"
    EVENT_CREATED = "event_created"
    EXERCISE_COMPLETED = "exercise_completed"
    LEARNING_PATH_COMPLETED = "learning_path_completed"

class FeedMode(str, Enum):
    ALL = "all"
    FOLLOWING = "following"

class FeedStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    ERROR = "error"

class ActivityUser(BaseModel):
    id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None

class ActivityItem(BaseModel):
    id: str
    type: ActivityType
    user: ActivityUser
    created_at: datetime
    data: Dict[str, Any] = Field(default_factory=dict)

class PathCompletionAggregate(BaseModel):
    """Completions of one learning path by one user, rebuilt on every load"""
    learning_path_id: str
    user: ActivityUser
    learning_path: Dict[str, Any]
    completions: List[Dict[str, Any]] = Field(default_factory=list)
    total_exercise_count: int = 0

    @property
    def is_complete(self) -> bool:
        return self.total_exercise_count > 0 and len(self.completions) >= self.total_exercise_count

class FeedResult(BaseModel):
    mode: FeedMode
    status: FeedStatus
    items: List[ActivityItem] = Field(default_factory=list)
    failed_sources: List[str] = Field(default_factory=list)
    generation: Optional[int] = None
