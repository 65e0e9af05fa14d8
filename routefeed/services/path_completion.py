import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from routefeed.core.exceptions import PathMetadataMissingError
from routefeed.schemas.feed import ActivityItem, ActivityType, PathCompletionAggregate
from routefeed.services.feed_sources import acting_user, parse_timestamp

logger = logging.getLogger(__name__)

def completed_at(record: Dict[str, Any]) -> datetime:
    return parse_timestamp(record["completed_at"])

def group_completions(records: List[Dict[str, Any]]) -> List[PathCompletionAggregate]:
    """
    Group learning path exercise completions by (learning path, user).

    Completions of a path that is gone or deactivated are skipped. Within a
    group each exercise counts once, keeping its latest completion.

    Args:
        records (List[Dict[str, Any]]): Completion rows with embedded exercise and path.

    Returns:
        List[PathCompletionAggregate]: One aggregate per pair, in first-seen order, completions oldest first.
    """
    aggregates: Dict[Tuple[str, str], PathCompletionAggregate] = {}
    latest: Dict[Tuple[str, str], Dict[str, Dict[str, Any]]] = {}

    for record in records:
        exercise = record.get("learning_path_exercises") or {}
        learning_path = exercise.get("learning_paths")
        user = acting_user(record.get("user"))
        if user is None or not learning_path or learning_path.get("active") is False:
            continue

        key = (exercise["learning_path_id"], user.id)
        if key not in aggregates:
            aggregates[key] = PathCompletionAggregate(
                learning_path_id=key[0],
                user=user,
                learning_path=learning_path,
            )
            latest[key] = {}

        exercise_id = record.get("exercise_id") or exercise.get("id") or record["id"]
        seen = latest[key].get(exercise_id)
        if seen is None or completed_at(record) > completed_at(seen):
            latest[key][exercise_id] = record

    for key, aggregate in aggregates.items():
        aggregate.completions = sorted(latest[key].values(), key=completed_at)

    return list(aggregates.values())

class PathCompletionDetector:
    """Derives "learning path completed" activities from per-exercise completions"""

    def __init__(self, queries):
        self.queries = queries

    async def _count_exercises(self, learning_path_id: str) -> int:
        try:
            return await self.queries.count_path_exercises(learning_path_id)
        except Exception as e:
            raise PathMetadataMissingError(learning_path_id, f"Error counting exercises: {e}") from e

    async def _lookup_total(self, learning_path_id: str) -> Optional[int]:
        try:
            return await self._count_exercises(learning_path_id)
        except PathMetadataMissingError as e:
            logger.warning("Skipping learning path %s: %s", learning_path_id, e.message)
            return None

    async def detect(self, records: List[Dict[str, Any]]) -> List[ActivityItem]:
        """
        Build one synthetic completion activity per (path, user) pair that has
        completed every exercise of the path.

        Args:
            records (List[Dict[str, Any]]): Learning path exercise completion rows.

        Returns:
            List[ActivityItem]: The synthetic learning path completed activities.
        """
        aggregates = group_completions(records)
        if not aggregates:
            return []

        path_ids = list(dict.fromkeys(aggregate.learning_path_id for aggregate in aggregates))
        totals = dict(zip(path_ids, await asyncio.gather(*(self._lookup_total(path_id) for path_id in path_ids))))

        items = []
        for aggregate in aggregates:
            total = totals.get(aggregate.learning_path_id)
            if total is None:
                continue
            aggregate.total_exercise_count = total
            if not aggregate.is_complete:
                continue

            last_completion = aggregate.completions[-1]
            items.append(ActivityItem(
                id=f"path_completion_{aggregate.learning_path_id}_{aggregate.user.id}",
                type=ActivityType.LEARNING_PATH_COMPLETED,
                user=aggregate.user,
                created_at=completed_at(last_completion),
                data={
                    "learning_path": aggregate.learning_path,
                    "completed_exercises": len(aggregate.completions),
                    "total_exercises": total,
                    "completion": last_completion,
                },
            ))

        return items
