import asyncio
from typing import List, Optional, Dict, Any
from supabase import Client
from routefeed.core.supabase import get_supabase_client

PROFILE_COLUMNS = "id, full_name, avatar_url"

class SupabaseQueryService:
    """
    Row fetches for the activity feed, one method per source table.

    The supabase client is synchronous; every query is executed in a worker
    thread so callers can gather independent fetches.
    """

    def __init__(self, client: Client):
        self.client = client

    async def _execute(self, query) -> List[Dict[str, Any]]:
        response = await asyncio.to_thread(query.execute)
        return response.data or []

    async def list_routes(self, creator_in: Optional[List[str]] = None, limit: int = 30) -> List[Dict[str, Any]]:
        """
        Get recent non-private routes with their creator's profile

        Args:
            creator_in (Optional[List[str]]): Restrict to routes created by these users.
            limit (int): The maximum number of routes to return.

        Returns:
            List[Dict[str, Any]]: Route rows, newest first, each with a `creator` profile or None.
        """
        query = self.client.table("routes").select(
            f"*, creator:profiles!routes_creator_id_fkey({PROFILE_COLUMNS})"
        ).neq("visibility", "private").order("created_at", desc=True).limit(limit)

        if creator_in is not None:
            query = query.in_("creator_id", creator_in)

        return await self._execute(query)

    async def list_events(self, creator_in: Optional[List[str]] = None, limit: int = 30) -> List[Dict[str, Any]]:
        """
        Get recent non-private events with their creator's profile

        Args:
            creator_in (Optional[List[str]]): Restrict to events created by these users.
            limit (int): The maximum number of events to return.

        Returns:
            List[Dict[str, Any]]: Event rows, newest first, each with a `creator` profile or None.
        """
        query = self.client.table("events").select(
            f"*, creator:profiles!events_created_by_fkey({PROFILE_COLUMNS})"
        ).neq("visibility", "private").order("created_at", desc=True).limit(limit)

        if creator_in is not None:
            query = query.in_("created_by", creator_in)

        return await self._execute(query)

    async def list_exercise_completions(self, completer_in: Optional[List[str]] = None, limit: int = 50) -> List[Dict[str, Any]]:
        """
        Get recent single exercise completions with the completing user and the exercise

        Args:
            completer_in (Optional[List[str]]): Restrict to completions by these users.
            limit (int): The maximum number of completions to return.

        Returns:
            List[Dict[str, Any]]: Completion rows, newest first.
        """
        query = self.client.table("virtual_repeat_completions").select(
            f"*, user:profiles!virtual_repeat_completions_user_id_fkey({PROFILE_COLUMNS}), "
            "learning_path_exercises(id, title, description, icon, image)"
        ).order("created_at", desc=True).limit(limit)

        if completer_in is not None:
            query = query.in_("user_id", completer_in)

        return await self._execute(query)

    async def list_path_exercise_completions(self, completer_in: Optional[List[str]] = None, limit: int = 100) -> List[Dict[str, Any]]:
        """
        Get recent learning path exercise completions with the exercise's parent path

        Args:
            completer_in (Optional[List[str]]): Restrict to completions by these users.
            limit (int): The maximum number of completion rows to return.

        Returns:
            List[Dict[str, Any]]: Completion rows, newest first.
        """
        query = self.client.table("learning_path_exercise_completions").select(
            f"*, user:profiles!learning_path_exercise_completions_user_id_fkey({PROFILE_COLUMNS}), "
            "learning_path_exercises!inner(id, title, description, icon, learning_path_id, "
            "learning_paths!inner(id, title, description, icon, active))"
        ).order("completed_at", desc=True).limit(limit)

        if completer_in is not None:
            query = query.in_("user_id", completer_in)

        return await self._execute(query)

    async def count_path_exercises(self, learning_path_id: str) -> int:
        """
        Count the exercises that make up a learning path

        Args:
            learning_path_id (str): The ID of the learning path.

        Returns:
            int: The number of exercises in the path.
        """
        query = self.client.table("learning_path_exercises").select(
            "id", count="exact", head=True
        ).eq("learning_path_id", learning_path_id)

        response = await asyncio.to_thread(query.execute)
        return response.count or 0

    async def list_following(self, user_id: str) -> List[str]:
        """
        Get the IDs of the users a user follows

        Args:
            user_id (str): The ID of the follower.

        Returns:
            List[str]: The IDs of the followed users.
        """
        query = self.client.table("user_follows").select("following_id").eq("follower_id", user_id)
        rows = await self._execute(query)
        return [row["following_id"] for row in rows]

def get_query_service() -> SupabaseQueryService:
    """Get a query service bound to the shared Supabase client"""
    return SupabaseQueryService(get_supabase_client())
