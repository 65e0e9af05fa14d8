import asyncio
import logging
from typing import Iterable, List, Optional

from routefeed.core.config import settings
from routefeed.schemas.feed import ActivityItem, ActivityType, FeedMode, FeedResult, FeedStatus
from routefeed.services.feed_sources import (
    EventSource,
    ExerciseCompletionSource,
    PathExerciseCompletionSource,
    RouteSource,
)
from routefeed.services.follow_service import FollowGraphResolver
from routefeed.services.path_completion import PathCompletionDetector

logger = logging.getLogger(__name__)

TYPE_ORDER = {
    ActivityType.ROUTE_CREATED: 0,
    ActivityType.EVENT_CREATED: 1,
    ActivityType.EXERCISE_COMPLETED: 2,
    ActivityType.LEARNING_PATH_COMPLETED: 3,
}

def merge_items(*sources: Iterable[ActivityItem]) -> List[ActivityItem]:
    merged = []
    for items in sources:
        merged.extend(items)
    return merged

def sort_feed(items: List[ActivityItem]) -> List[ActivityItem]:
    """
    Order activities newest first.

    Identical timestamps fall back to source type order, then item id.

    Args:
        items (List[ActivityItem]): The merged activities.

    Returns:
        List[ActivityItem]: A new, sorted list.
    """
    ordered = sorted(items, key=lambda item: (TYPE_ORDER[item.type], item.id))
    return sorted(ordered, key=lambda item: item.created_at, reverse=True)

class FeedService:
    """Builds the community activity feed for one viewer"""

    def __init__(self, queries, route_limit: Optional[int] = None, event_limit: Optional[int] = None, exercise_completion_limit: Optional[int] = None, path_completion_limit: Optional[int] = None):
        self.follows = FollowGraphResolver(queries)
        self.routes = RouteSource(queries, settings.feed_route_limit if route_limit is None else route_limit)
        self.events = EventSource(queries, settings.feed_event_limit if event_limit is None else event_limit)
        self.exercise_completions = ExerciseCompletionSource(
            queries, settings.feed_exercise_completion_limit if exercise_completion_limit is None else exercise_completion_limit
        )
        self.path_completions = PathExerciseCompletionSource(
            queries, settings.feed_path_completion_limit if path_completion_limit is None else path_completion_limit
        )
        self.detector = PathCompletionDetector(queries)

    async def build_feed(self, viewer_id: Optional[str], mode: FeedMode = FeedMode.ALL) -> FeedResult:
        """
        Build the viewer's activity feed.

        In following mode an empty follow set scopes every source to nobody,
        so the feed is empty rather than falling back to everyone's activity.

        Args:
            viewer_id (Optional[str]): The ID of the viewing user.
            mode (FeedMode): Show everyone's activity or only followed users'.

        Returns:
            FeedResult: The sorted activities, with an error status when every source failed.
        """
        follow_ids = set()
        if mode == FeedMode.FOLLOWING:
            follow_ids = await self.follows.resolve(viewer_id)

        results = await asyncio.gather(
            self.routes.fetch(mode, follow_ids),
            self.events.fetch(mode, follow_ids),
            self.exercise_completions.fetch(mode, follow_ids),
            self.path_completions.fetch(mode, follow_ids),
        )
        routes, events, exercise_completions, path_completions = results

        path_items = await self.detector.detect(path_completions.items)

        items = sort_feed(merge_items(
            routes.items,
            events.items,
            exercise_completions.items,
            path_items,
        ))

        failed_sources = [result.source for result in results if result.failed]
        if len(failed_sources) == len(results):
            logger.error("Every feed source failed for viewer %s", viewer_id)
            status = FeedStatus.ERROR
        elif items:
            status = FeedStatus.OK
        else:
            status = FeedStatus.EMPTY

        return FeedResult(mode=mode, status=status, items=items, failed_sources=failed_sources)

class FeedController:
    """
    Visible feed state for one consumer.

    Every refresh takes a new generation token; a result is applied only if
    its token is still the latest when it resolves, so a slow load can't
    overwrite a newer one.
    """

    def __init__(self, service: FeedService, viewer_id: Optional[str], mode: FeedMode = FeedMode.ALL):
        self.service = service
        self.viewer_id = viewer_id
        self._mode = mode
        self._generation = 0
        self.result: Optional[FeedResult] = None

    @property
    def mode(self) -> FeedMode:
        return self._mode

    @mode.setter
    def mode(self, value: FeedMode) -> None:
        self._mode = FeedMode(value)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def items(self) -> List[ActivityItem]:
        return self.result.items if self.result else []

    @property
    def status(self) -> Optional[FeedStatus]:
        return self.result.status if self.result else None

    @property
    def loading(self) -> bool:
        return self.result is None or self.result.generation != self._generation

    async def refresh(self) -> Optional[FeedResult]:
        """
        Reload the feed for the current mode.

        Returns:
            Optional[FeedResult]: The applied result, or None if a newer refresh superseded this one.
        """
        self._generation += 1
        token = self._generation

        result = await self.service.build_feed(self.viewer_id, self._mode)

        if token != self._generation:
            logger.debug("Discarding stale feed result %s (latest is %s)", token, self._generation)
            return None

        result.generation = token
        self.result = result
        return result
