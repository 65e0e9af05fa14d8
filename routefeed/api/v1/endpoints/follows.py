from fastapi import APIRouter, Depends
from routefeed.core.security import get_current_user
from routefeed.schemas.social import Following
from routefeed.services.follow_service import FollowGraphResolver
from routefeed.services.query_service import get_query_service

router = APIRouter()

@router.get("/following", response_model=Following)
async def get_following(current_user: dict = Depends(get_current_user), queries = Depends(get_query_service)) -> Following:
    """
    Get the users the current user follows

    Args:
        current_user (dict): The current authenticated user.

    Returns:
        Following: The current user's ID and the IDs they follow.
    """
    following_ids = await FollowGraphResolver(queries).resolve(current_user["id"])
    return Following(user_id=current_user["id"], following_ids=sorted(following_ids))
