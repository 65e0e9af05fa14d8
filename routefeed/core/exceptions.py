from fastapi import Request
from fastapi.responses import JSONResponse


class FeedError(Exception):
    """Base exception for activity feed errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status: int = 500,
        details: dict | None = None,
    ):
        self.code = code
        self.message = message
        self.status = status
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        result = {
            "error": {
                "code": self.code,
                "message": self.message,
                "status": self.status,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result


class SourceUnavailableError(FeedError):
    """A single feed source could not be fetched."""

    def __init__(self, source: str, message: str | None = None):
        self.source = source
        super().__init__(
            code="source_unavailable",
            message=message or f"Feed source '{source}' is unavailable.",
            status=502,
            details={"source": source},
        )


class PathMetadataMissingError(FeedError):
    """A learning path's size could not be resolved."""

    def __init__(self, learning_path_id: str, message: str | None = None):
        self.learning_path_id = learning_path_id
        super().__init__(
            code="path_metadata_missing",
            message=message or f"Learning path '{learning_path_id}' could not be resolved.",
            status=404,
            details={"learning_path_id": learning_path_id},
        )


class FeedUnavailableError(FeedError):
    def __init__(self, message: str = "Activity feed is unavailable.", details: dict | None = None):
        super().__init__(
            code="feed_unavailable",
            message=message,
            status=503,
            details=details or {"suggestion": "Every feed source failed. Try again shortly."},
        )


async def feed_error_handler(request: Request, exc: FeedError) -> JSONResponse:
    """Global exception handler for FeedError and subclasses."""
    return JSONResponse(status_code=exc.status, content=exc.to_dict())
