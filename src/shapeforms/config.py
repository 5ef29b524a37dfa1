"""Runtime settings loaded from the environment or a .env file."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from shapeforms.codec import DEFAULT_NAMESPACE

logger = logging.getLogger(__name__)

DEFAULT_QUERY_ENDPOINT = "http://localhost:7200/repositories/shapeforms"


def _flag(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    query_endpoint: str = DEFAULT_QUERY_ENDPOINT
    update_endpoint: Optional[str] = None
    entity_namespace: str = DEFAULT_NAMESPACE
    max_nested_depth: int = 3
    instance_page_size: int = 100
    row_fetch_concurrency: int = 8
    request_timeout: int = 30
    atomic_updates: bool = True
    log_level: str = "INFO"

    @property
    def effective_update_endpoint(self) -> str:
        """GraphDB-style update endpoint unless one is configured."""
        return self.update_endpoint or f"{self.query_endpoint.rstrip('/')}/statements"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> Settings:
        """Build settings from environment variables.

        ``env_file`` (or a ``.env`` in the working directory) is loaded first
        without overriding variables that are already set.
        """
        if env_file:
            if os.path.exists(env_file):
                logger.info(f"Loading configuration from {env_file}")
                load_dotenv(env_file)
            else:
                logger.warning(f"Specified env file not found: {env_file}")
        else:
            load_dotenv()

        env = os.environ
        query_endpoint = env.get("SPARQL_QUERY_ENDPOINT")
        if not query_endpoint and env.get("GRAPHDB_URL"):
            repository = env.get("GRAPHDB_REPOSITORY", "shapeforms")
            query_endpoint = f"{env['GRAPHDB_URL'].rstrip('/')}/repositories/{repository}"

        return cls(
            query_endpoint=query_endpoint or DEFAULT_QUERY_ENDPOINT,
            update_endpoint=env.get("SPARQL_UPDATE_ENDPOINT") or None,
            entity_namespace=env.get("ENTITY_NAMESPACE", DEFAULT_NAMESPACE),
            max_nested_depth=int(env.get("MAX_NESTED_DEPTH", "3")),
            instance_page_size=int(env.get("INSTANCE_PAGE_SIZE", "100")),
            row_fetch_concurrency=int(env.get("ROW_FETCH_CONCURRENCY", "8")),
            request_timeout=int(env.get("REQUEST_TIMEOUT", "30")),
            atomic_updates=_flag(env.get("ATOMIC_UPDATES"), True),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )
