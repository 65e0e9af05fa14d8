import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from routefeed.core.config import settings
from routefeed.core.exceptions import FeedError, feed_error_handler
from routefeed.api.v1.endpoints import feed, follows

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(FeedError, feed_error_handler)

# Include routers
app.include_router(feed.router, prefix="/api/v1/feed", tags=["feed"])
app.include_router(follows.router, prefix="/api/v1/follows", tags=["follows"])

@app.get("/")
async def root():
    return {"message": settings.app_name, "version": "1.0.0"}

@app.get("/health")
async def health_check():
    return {"status": "healthy"}
