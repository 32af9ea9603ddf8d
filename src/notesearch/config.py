"""Service configuration loaded from environment variables."""
from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service configuration loaded from environment variables.

    Attributes:
        host: Bind address for the API server.
        port: Port number for the API server.
        debug: Enable debug logging and API documentation.
        cors_origins_raw: Raw comma-separated CORS origins string.
        admin_key: API key guarding the sync/admin endpoints. Empty disables the guard.
        meilisearch_host: Base URL of the search engine.
        meilisearch_api_key: Admin API key for the search engine.
        notes_index: Name of the search index holding note documents.
        max_total_hits: Pagination cap declared on the index.
        search_timeout: Seconds before a search engine request times out.
        supabase_url: Base URL of the record source project.
        supabase_key: Service key for the record source.
        notes_table: Table holding canonical note rows.
        sync_page_size: Rows fetched per page during a full sync.
        sync_interval_seconds: Seconds between background full syncs. 0 disables.
        webhook_secret: Shared secret used to sign change notifications.
        log_json: Emit JSON log lines instead of console output.
    """

    model_config = SettingsConfigDict(
        env_prefix="NOTESEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    cors_origins_raw: str = "http://localhost:3000"
    admin_key: str = ""

    meilisearch_host: str = "http://localhost:7700"
    meilisearch_api_key: str
    notes_index: str = "notes"
    max_total_hits: int = 1000
    search_timeout: float = 10.0

    supabase_url: str
    supabase_key: str
    notes_table: str = "notes"
    sync_page_size: int = 500
    sync_interval_seconds: float = 0.0

    webhook_secret: str = ""
    log_json: bool = True

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string.

        Returns:
            List of allowed origin URLs.
        """
        return [
            origin.strip()
            for origin in self.cors_origins_raw.split(",")
            if origin.strip()
        ]
