from pydantic_settings import BaseSettings
from typing import Dict, List
import os

class DatabaseSettings(BaseSettings):
    URL: str = os.getenv("DATABASE_URL", "postgresql://search_user:search_password@db:5432/search_db")
    TABLE_NAME: str = "documents"
    AUTO_CREATE_SCHEMA: bool = True  # create the documents table on startup when missing

class ServerSettings(BaseSettings):
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

class SearchSettings(BaseSettings):
    DEFAULT_COLLECTION: str = "posts"
    DEFAULT_FIELDS: List[str] = ["title", "content"]
    DEFAULT_FUZZY_LEVEL: str = "NORMAL"

    # Pagination
    DEFAULT_PAGE_LIMIT: int = 10
    MAX_PAGE_LIMIT: int = 100
    DEFAULT_SORT: Dict[str, int] = {"createdAt": -1}

    # Suggestions
    SUGGESTION_LIMIT: int = 5
    SUGGESTION_CANDIDATE_FACTOR: int = 3  # fetch limit * factor candidates to harvest from

    # Pattern building
    CASE_SENSITIVE: bool = False
    FOLD_ACCENTS: bool = True
    ACCENT_CLASS_PATTERNS: bool = False  # "a" -> "[aàá...]" so unaccented queries reach accented values

class AppSettings(BaseSettings):
    DB: DatabaseSettings = DatabaseSettings()
    SERVER: ServerSettings = ServerSettings()
    SEARCH: SearchSettings = SearchSettings()

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = AppSettings()
