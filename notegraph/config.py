from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Notes settings
    notes_dir: Path = Path("notes")

    # Cache settings
    cache_ttl_seconds: float = 300.0  # 5 minutes
    io_concurrency: int = 10
    watch_notes: bool = True  # invalidate cached results as soon as a note changes
    watch_debounce_seconds: float = 0.3

    # Analysis settings
    context_length: int = 50
    similarity_threshold: float = 0.7
    max_cluster_results: int = 50
    max_cluster_input: int = 1000  # caps the O(n^2) pairwise pass

    # Web server settings
    cors_origins: list[str] = ["*"]

    log_level: str = "INFO"  # Can be DEBUG, INFO, WARNING, ERROR, CRITICAL


settings = Settings()
