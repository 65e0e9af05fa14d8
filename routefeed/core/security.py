import logging
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from routefeed.core.supabase import get_supabase_client

logger = logging.getLogger(__name__)

security = HTTPBearer()

async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    """
    Get current authenticated user
    
    Args:
        credentials (HTTPAuthorizationCredentials): The HTTP authorization credentials containing the Bearer token.

    Returns:
        dict: The user information extracted from the token.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    
    try:
        response = get_supabase_client().auth.get_user(credentials.credentials)
    except Exception as e:
        logger.info("Authentication error: %s", e)
        raise credentials_exception

    if not response or not response.user:
        logger.info("No user found in Supabase auth response")
        raise credentials_exception

    return {"id": response.user.id}
