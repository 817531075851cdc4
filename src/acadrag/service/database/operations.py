"""RavenDB administration: connections, the chunk vector index and database lifecycle.

Every function takes an optional server URL and database name; missing values
come from :class:`RavenDBConfig`.
"""

import logging
import os

import requests
from ravendb import DocumentStore
from ravendb.documents.indexes.definitions import (
    FieldIndexing,
    FieldStorage,
    IndexDefinition,
    IndexFieldOptions,
)
from ravendb.documents.indexes.vector.options import VectorOptions
from ravendb.documents.operations.indexes import GetIndexNamesOperation, PutIndexesOperation
from ravendb.serverwide.operations.common import DeleteDatabaseOperation

from acadrag.constants import DEFAULT_EMBEDDING_DIMENSIONS
from acadrag.service.database.config import RavenDBConfig

logger = logging.getLogger(__name__)

CHUNK_INDEX_NAME = "DocumentChunks/ByEmbedding"
ADMIN_REQUEST_TIMEOUT = 30  # seconds

# Filterable fields mirror SearchFilters; the embedding is stored for vector search only
CHUNK_INDEX_MAP = """from chunk in docs
where chunk.embedding != null
select new {
    document_id = chunk.document_id,
    chunk_index = chunk.chunk_index,
    course_code = chunk.metadata.course_code,
    topic = chunk.metadata.topic,
    level = chunk.metadata.level,
    professor = chunk.metadata.professor,
    embedding = CreateField("embedding", chunk.embedding, new CreateFieldOptions { Storage = FieldStorage.Yes, Indexing = FieldIndexing.No })
}"""


def create_document_store(url: str | None = None, database: str | None = None) -> DocumentStore:
    """Open an initialized DocumentStore for the chunk database."""
    url, database = RavenDBConfig.resolve(url, database)
    store = DocumentStore([url], database)
    store.initialize()
    logger.debug(f"🔌 Connected to RavenDB {url} / {database}")
    return store


def ensure_index_exists(store: DocumentStore) -> None:
    """Create the chunk vector index unless the server already has it.

    The vector field is sized by ``EMBEDDING_DIMENSIONS`` and must match the
    embedding model used at indexing time.
    """
    existing_indexes = store.maintenance.send(GetIndexNamesOperation(0, 100))
    if CHUNK_INDEX_NAME in existing_indexes:
        return

    dimensions = int(os.getenv("EMBEDDING_DIMENSIONS", str(DEFAULT_EMBEDDING_DIMENSIONS)))
    index_definition = IndexDefinition()
    index_definition.name = CHUNK_INDEX_NAME
    index_definition.maps = {CHUNK_INDEX_MAP}
    index_definition.fields = {
        "embedding": IndexFieldOptions(
            storage=FieldStorage.YES,
            indexing=FieldIndexing.NO,
            vector=VectorOptions(dimensions=dimensions),
        )
    }

    store.maintenance.send(PutIndexesOperation(index_definition))
    logger.info(f"📐 Created index {CHUNK_INDEX_NAME} ({dimensions} dimensions)")


def database_exists(url: str | None = None, database: str | None = None) -> bool:
    """Return True when the database answers a trivial query.

    Connection failures count as "does not exist"; they are logged at debug level.
    """
    url, database = RavenDBConfig.resolve(url, database)
    store = DocumentStore([url], database)
    try:
        store.initialize()
        with store.open_session() as session:
            list(session.query().take(0))
        return True
    except Exception as e:
        logger.debug(f"Database check failed for '{database}': {e}")
        return False
    finally:
        store.close()


def create_database(url: str | None = None, database: str | None = None) -> None:
    """Create the database through the RavenDB admin REST endpoint.

    Raises:
        requests.HTTPError: If the server rejects the request
    """
    url, database = RavenDBConfig.resolve(url, database)
    response = requests.put(
        f"{url}/admin/databases",
        json={"DatabaseName": database, "Settings": {}, "Disabled": False},
        timeout=ADMIN_REQUEST_TIMEOUT,
    )
    response.raise_for_status()
    logger.info(f"🗄️ Created database '{database}' on {url}")


def delete_database(url: str | None = None, database: str | None = None) -> None:
    """Hard-delete the database and every chunk in it. Irreversible."""
    url, database = RavenDBConfig.resolve(url, database)
    store = DocumentStore([url], database)
    try:
        store.initialize()
        store.maintenance.server.send(
            DeleteDatabaseOperation(database_name=database, hard_delete=True)
        )
        logger.warning(f"🗑️ Deleted database '{database}' on {url}")
    finally:
        store.close()
