"""
Settings

Explicit configuration passed to the CLI, the API client and the app.
"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_FUNCTIONS_URL = "http://localhost:54321/functions/v1"
DEFAULT_MIGRATIONS_DIR = "supabase/migrations"
DEFAULT_HTTP_TIMEOUT = 30.0


@dataclass(frozen=True)
class Settings:
    """
    Connection details for one supacontent project.

    Built once at the edge (CLI, app startup) and handed down explicitly.
    """
    functions_url: str = DEFAULT_FUNCTIONS_URL
    access_token: Optional[str] = None
    api_key: Optional[str] = None
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    migrations_dir: str = DEFAULT_MIGRATIONS_DIR
    database_url: Optional[str] = None

    @classmethod
    def from_env(cls, env_file: str = None) -> "Settings":
        load_dotenv(env_file)

        timeout = os.getenv("SUPACONTENT_HTTP_TIMEOUT")
        return cls(
            functions_url=os.getenv("SUPACONTENT_FUNCTIONS_URL", DEFAULT_FUNCTIONS_URL).rstrip("/"),
            access_token=os.getenv("SUPACONTENT_ACCESS_TOKEN"),
            api_key=os.getenv("SUPACONTENT_API_KEY"),
            http_timeout=float(timeout) if timeout else DEFAULT_HTTP_TIMEOUT,
            migrations_dir=os.getenv("SUPACONTENT_MIGRATIONS_DIR", DEFAULT_MIGRATIONS_DIR),
            database_url=os.getenv("DATABASE_URL"),
        )

    def auth_headers(self) -> dict:
        headers = {}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        if self.api_key:
            headers["apikey"] = self.api_key
        return headers
