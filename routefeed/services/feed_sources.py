"""
Feed sources: one fetcher per activity table.

Each source asks the store for its own most recent rows, newest first, capped
at its own limit. The caps are applied before the global sort, so a busy
source can push older rows out of its window while a quieter source still
contributes rows older than those. The merged feed is therefore "recent
activity per source", not an exact global top-N; this truncation is accepted.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Set

from datetime import datetime

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from routefeed.core.exceptions import SourceUnavailableError
from routefeed.schemas.feed import ActivityItem, ActivityType, ActivityUser, FeedMode

logger = logging.getLogger(__name__)

parse_timestamp = TypeAdapter(datetime).validate_python

class SourceResult(BaseModel):
    source: str
    items: List[Any] = Field(default_factory=list)
    failed: bool = False

class FeedSource:
    name: str = ""

    def __init__(self, queries, limit: int):
        self.queries = queries
        self.limit = limit

    async def fetch(self, mode: FeedMode, follow_ids: Set[str]) -> SourceResult:
        """
        Fetch this source's recent activity for the given filter mode.

        In following mode the scope is pushed down into the query; an empty
        follow set scopes to nobody and returns without querying.

        Args:
            mode (FeedMode): Whether to show everyone's activity or only followed users'.
            follow_ids (Set[str]): The IDs of the users the viewer follows.

        Returns:
            SourceResult: The converted rows, or an empty failed result if the fetch raised.
        """
        scope: Optional[List[str]] = None
        if mode == FeedMode.FOLLOWING:
            if not follow_ids:
                return SourceResult(source=self.name)
            scope = sorted(follow_ids)

        try:
            items = await self._load(scope)
        except SourceUnavailableError as e:
            logger.warning("Feed source %s unavailable: %s", self.name, e.message)
            return SourceResult(source=self.name, failed=True)

        return SourceResult(source=self.name, items=items)

    async def _load(self, scope: Optional[List[str]]) -> List[Any]:
        try:
            return self.convert(await self.query(scope))
        except Exception as e:
            raise SourceUnavailableError(self.name, f"Error loading {self.name}: {e}") from e

    async def query(self, scope: Optional[List[str]]) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def convert(self, rows: Iterable[Dict[str, Any]]) -> List[Any]:
        items = []
        for row in rows:
            try:
                item = self.to_item(row)
            except ValidationError as e:
                logger.warning("Dropping malformed %s row %s: %s", self.name, row.get("id"), e)
                continue
            if item is not None:
                items.append(item)
        return items

    def to_item(self, row: Dict[str, Any]) -> Optional[Any]:
        raise NotImplementedError

def acting_user(profile: Optional[Dict[str, Any]]) -> Optional[ActivityUser]:
    """Public identity of the acting user, or None when the account no longer resolves"""
    if not profile or not profile.get("id"):
        return None
    return ActivityUser(
        id=profile["id"],
        full_name=profile.get("full_name"),
        avatar_url=profile.get("avatar_url"),
    )

class RouteSource(FeedSource):
    name = "routes"

    async def query(self, scope):
        return await self.queries.list_routes(creator_in=scope, limit=self.limit)

    def to_item(self, row):
        user = acting_user(row.get("creator"))
        if user is None or not row.get("created_at"):
            return None
        return ActivityItem(
            id=f"route_{row['id']}",
            type=ActivityType.ROUTE_CREATED,
            user=user,
            created_at=row["created_at"],
            data=row,
        )

class EventSource(FeedSource):
    name = "events"

    async def query(self, scope):
        return await self.queries.list_events(creator_in=scope, limit=self.limit)

    def to_item(self, row):
        user = acting_user(row.get("creator"))
        if user is None or not row.get("created_at"):
            return None
        return ActivityItem(
            id=f"event_{row['id']}",
            type=ActivityType.EVENT_CREATED,
            user=user,
            created_at=row["created_at"],
            data=row,
        )

class ExerciseCompletionSource(FeedSource):
    name = "exercise_completions"

    async def query(self, scope):
        return await self.queries.list_exercise_completions(completer_in=scope, limit=self.limit)

    def to_item(self, row):
        user = acting_user(row.get("user"))
        exercise = row.get("learning_path_exercises")
        completed_at = row.get("completed_at") or row.get("created_at")
        if user is None or not exercise or not completed_at:
            return None
        return ActivityItem(
            id=f"completion_{row['id']}",
            type=ActivityType.EXERCISE_COMPLETED,
            user=user,
            created_at=completed_at,
            data={
                "exercise": exercise,
                "completion": row,
            },
        )

class PathExerciseCompletionSource(FeedSource):
    """
    Raw learning path exercise completions.

    These rows are not feed items themselves; they are handed to the path
    completion detector. Rows whose user or parent path can't be resolved are
    dropped here.
    """
    name = "path_exercise_completions"

    async def query(self, scope):
        return await self.queries.list_path_exercise_completions(completer_in=scope, limit=self.limit)

    def to_item(self, row):
        exercise = row.get("learning_path_exercises") or {}
        if acting_user(row.get("user")) is None or not row.get("completed_at"):
            return None
        if not exercise.get("learning_path_id"):
            return None
        parse_timestamp(row["completed_at"])
        return row
