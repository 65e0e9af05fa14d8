import logging
from typing import Optional, Set

logger = logging.getLogger(__name__)

class FollowGraphResolver:
    def __init__(self, queries):
        self.queries = queries

    async def resolve(self, viewer_id: Optional[str]) -> Set[str]:
        """
        Get the set of users the viewer follows

        Fails closed: a missing viewer or a failed lookup yields an empty set,
        so callers treat "no graph" and "empty graph" the same way.

        Args:
            viewer_id (Optional[str]): The ID of the viewing user.

        Returns:
            Set[str]: The IDs of the users the viewer follows.
        """
        if not viewer_id:
            return set()

        try:
            following_ids = await self.queries.list_following(viewer_id)
        except Exception as e:
            logger.warning("Error loading following users for %s: %s", viewer_id, e)
            return set()

        return set(following_ids)
