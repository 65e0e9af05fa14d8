from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Supabase
    supabase_url: str
    supabase_key: str

    # Feed source limits, applied per source before the global sort
    feed_route_limit: int = 30
    feed_event_limit: int = 30
    feed_exercise_completion_limit: int = 50
    feed_path_completion_limit: int = 100

    # App
    app_name: str = "RouteFeed API"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
