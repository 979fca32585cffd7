"""Configuration management."""
import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Application configuration."""
    
    # Remote key-value store
    REMOTE_URL = os.getenv("JOURNAL_REMOTE_URL", "http://localhost:3000/api/books")
    COLLECTION_KEY = os.getenv("JOURNAL_COLLECTION_KEY", "reading-journal-books")
    
    # Local cache
    CACHE_BACKEND = os.getenv("JOURNAL_CACHE_BACKEND", "file")
    CACHE_DIR = os.path.expanduser(os.getenv("JOURNAL_CACHE_DIR", "~/.reading-journal"))
    
    # Database (postgres cache backend)
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME", "journaldb")
    DB_USER = os.getenv("DB_USER", "postgres")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "")
    
    @property
    def DATABASE_URL(self):
        """Build PostgreSQL connection string."""
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
    
    # Cover lookup
    COVER_SEARCH_URL = os.getenv("COVER_SEARCH_URL", "https://openlibrary.org/search.json")
    COVER_IMAGE_TEMPLATE = os.getenv(
        "COVER_IMAGE_TEMPLATE",
        "https://covers.openlibrary.org/b/id/{cover_id}-M.jpg"
    )
    COVER_MAX_CONCURRENT = int(os.getenv("COVER_MAX_CONCURRENT", "5"))
    COVER_REMEMBER_MISSES = _flag("JOURNAL_COVER_REMEMBER_MISSES")
    
    # Behaviour
    STRICT_IDS = _flag("JOURNAL_STRICT_IDS")
    
    # Defaults
    DEFAULT_TIMEOUT = int(os.getenv("DEFAULT_TIMEOUT", "10"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def setup_logging(level: str = None):
    """Configure root logging in the application's format."""
    level_name = (level or Config.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )
