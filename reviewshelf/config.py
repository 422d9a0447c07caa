"""Configuration management."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration."""

    # Data source: a local directory or an http(s) base URL
    DATA_URL = os.getenv("REVIEWSHELF_DATA_URL", "data/")

    # HTTP
    DEFAULT_TIMEOUT = int(os.getenv("REVIEWSHELF_TIMEOUT", "10"))
    DEFAULT_MAX_RETRIES = int(os.getenv("REVIEWSHELF_MAX_RETRIES", "3"))
    DEFAULT_BACKOFF = float(os.getenv("REVIEWSHELF_BACKOFF", "1.0"))
    MAX_CONCURRENT = int(os.getenv("REVIEWSHELF_MAX_CONCURRENT", "5"))

    # Cache failed loads until invalidated instead of retrying on next access
    CACHE_FAILED_LOADS = _env_flag("REVIEWSHELF_CACHE_FAILED_LOADS")

    LOG_LEVEL = os.getenv("REVIEWSHELF_LOG_LEVEL", "INFO")
