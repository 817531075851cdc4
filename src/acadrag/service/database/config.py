"""Configuration for RavenDB connection."""

import os

from dotenv import load_dotenv

from acadrag.constants import (
    DEFAULT_CHUNK_COLLECTION,
    DEFAULT_RAVENDB_DATABASE,
    DEFAULT_RAVENDB_URL,
)

# Load environment variables
load_dotenv()


class RavenDBConfig:
    """Configuration class for RavenDB connection details."""

    @staticmethod
    def get_url() -> str:
        """Get the RavenDB server URL from environment variables.

        Returns:
            str: RavenDB server URL (default: http://localhost:8080)
        """
        return os.getenv("RAVENDB_URL", DEFAULT_RAVENDB_URL)

    @staticmethod
    def get_database_name() -> str:
        """Get the RavenDB database name from environment variables.

        Returns:
            str: Database name (default: acadrag)
        """
        return os.getenv("RAVENDB_DATABASE", DEFAULT_RAVENDB_DATABASE)

    @staticmethod
    def get_collection() -> str:
        """Get the chunk collection name from environment variables.

        Returns:
            str: Collection name (default: DocumentChunks)
        """
        return os.getenv("RAVENDB_COLLECTION", DEFAULT_CHUNK_COLLECTION)

    @classmethod
    def resolve(cls, url: str | None = None, database: str | None = None) -> tuple[str, str]:
        """Fill in whichever of ``url`` and ``database`` was not given."""
        return url or cls.get_url(), database or cls.get_database_name()
