from fastapi import APIRouter, Depends, Query
from routefeed.core.exceptions import FeedUnavailableError
from routefeed.core.security import get_current_user
from routefeed.schemas.feed import FeedMode, FeedResult, FeedStatus
from routefeed.services.feed_service import FeedService
from routefeed.services.query_service import get_query_service

router = APIRouter()

def get_feed_service(queries = Depends(get_query_service)) -> FeedService:
    return FeedService(queries)

@router.get("", response_model=FeedResult)
async def get_community_feed(mode: FeedMode = Query(FeedMode.ALL), current_user: dict = Depends(get_current_user), feed_service: FeedService = Depends(get_feed_service)) -> FeedResult:
    """
    Get the community activity feed for the current user.

    Args:
        mode (FeedMode): "all" for everyone's public activity, "following" for followed users only.
        current_user (dict): The current authenticated user.
        feed_service (FeedService): The feed builder.

    Returns:
        FeedResult: The activities, newest first, with a status telling an empty feed from a failed one.
    """
    result = await feed_service.build_feed(current_user["id"], mode)

    if result.status == FeedStatus.ERROR:
        raise FeedUnavailableError(details={"failed_sources": result.failed_sources})

    return result
