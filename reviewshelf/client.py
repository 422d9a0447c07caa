"""Client for catalog JSON documents with resilience patterns."""
import json
import time
import random
import requests
from pathlib import Path
from typing import Any, Optional
import logging

from reviewshelf.errors import LoadFailure

logger = logging.getLogger(__name__)


def is_remote(base_url: str) -> bool:
    """True when the data location is an http(s) URL rather than a directory."""
    return base_url.startswith(("http://", "https://"))


def join_url(base_url: str, name: str) -> str:
    return base_url.rstrip("/") + "/" + name


def read_local_document(base_url: str, name: str) -> Any:
    """
    Read and decode a JSON document from a local directory.

    Raises:
        LoadFailure: the file is missing, unreadable or not valid JSON
    """
    path = Path(base_url) / name
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        raise LoadFailure(name, f"{path} not found")
    except OSError as e:
        raise LoadFailure(name, f"cannot read {path}: {e}")
    except json.JSONDecodeError as e:
        raise LoadFailure(name, f"invalid JSON: {e}")


class DataClient:
    """Fetches catalog documents with timeouts, retries, and backoff."""

    def __init__(
        self,
        base_url: str = "data/",
        timeout: int = 10,
        max_retries: int = 3,
        base_backoff: float = 1.0
    ):
        """
        Initialize the document client.

        Args:
            base_url: Directory path or http(s) URL holding the JSON documents
            timeout: Request timeout in seconds
            max_retries: Maximum number of attempts for remote documents
            base_backoff: Base delay for exponential backoff
        """
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_backoff = base_backoff

        # Create session for connection pooling
        self.session = requests.Session()

    def fetch(self, name: str) -> Any:
        """
        Fetch and decode one JSON document.

        Args:
            name: Document file name, e.g. ``books.json``

        Returns:
            The decoded JSON value

        Raises:
            LoadFailure: the document is unreachable or not valid JSON
        """
        if not is_remote(self.base_url):
            logger.info(f"Reading {name} from {self.base_url}")
            return read_local_document(self.base_url, name)

        return self._make_request_with_retry(name, join_url(self.base_url, name))

    def _make_request_with_retry(self, name: str, url: str) -> Any:
        """
        Make HTTP request with retry logic.

        Args:
            name: Document name used in error reports
            url: Request URL

        Returns:
            Decoded response JSON

        Raises:
            LoadFailure: a client error, bad JSON, or all retries exhausted
        """
        last_reason: Optional[str] = None

        for attempt in range(self.max_retries):
            try:
                logger.info(f"Request attempt {attempt + 1}/{self.max_retries}: {url}")

                response = self.session.get(url, timeout=self.timeout)

                # Handle different status codes
                if response.status_code == 200:
                    logger.info(f"Success: {response.status_code}")
                    try:
                        return response.json()
                    except ValueError as e:
                        raise LoadFailure(name, f"invalid JSON: {e}")

                elif response.status_code == 429 or response.status_code >= 500:
                    # Rate limited or server error - retryable
                    last_reason = f"HTTP {response.status_code}"
                    logger.warning(f"{last_reason} on attempt {attempt + 1}")

                else:
                    # Client error - don't retry
                    logger.error(f"Client error ({response.status_code}) for {url}")
                    raise LoadFailure(name, f"HTTP {response.status_code}")

            except requests.exceptions.Timeout:
                last_reason = "timeout"
                logger.warning(f"Timeout on attempt {attempt + 1}")

            except requests.exceptions.ConnectionError as e:
                last_reason = f"connection error: {e}"
                logger.warning(f"Connection error on attempt {attempt + 1}: {e}")

            except requests.exceptions.RequestException as e:
                logger.error(f"Unexpected error: {e}")
                raise LoadFailure(name, str(e))

            if attempt < self.max_retries - 1:
                self._backoff(attempt)

        logger.error(f"All {self.max_retries} attempts failed")
        raise LoadFailure(name, last_reason or "no attempts made")

    def _backoff(self, attempt: int):
        """
        Sleep with exponential backoff and jitter.

        Args:
            attempt: Current attempt number (0-indexed)
        """
        # Exponential backoff: base * 2^attempt
        delay = self.base_backoff * (2 ** attempt)

        # Add jitter: random value between 0 and delay
        jitter = random.uniform(0, delay)
        total_delay = delay + jitter

        logger.info(f"Backing off for {total_delay:.2f} seconds")
        time.sleep(total_delay)

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
