"""FastMCP server exposing course-material search and indexing tools."""

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any

from dotenv import load_dotenv
from fastmcp import FastMCP

from acadrag.constants import DEFAULT_MCP_HOST, DEFAULT_MCP_PORT, EMBEDDING_HEALTH_TTL
from acadrag.exceptions import AcadragError
from acadrag.retrieval.embedding import EmbeddingClient, TTLCache
from acadrag.retrieval.pipeline import RetrievalPipeline
from acadrag.service.components import create_embedding_client, create_pipeline
from acadrag.service.database import (
    RavenDBChunkStore,
    SearchFilters,
    SourceDocument,
    index_document,
)

# Configure logging
log_level = os.getenv("LOG_LEVEL", "INFO")
logging.basicConfig(
    level=getattr(logging, log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()
logger.debug("Environment variables loaded for MCP server")

# Create FastMCP instance
mcp = FastMCP("acadrag Course Material")

SEARCH_MODES = ("search", "chat", "quiz")

@dataclass
class ServerServices:
    """Objects shared by the MCP tools."""

    store: RavenDBChunkStore
    embedder: EmbeddingClient
    pipeline: RetrievalPipeline

_services: ServerServices | None = None

def get_services() -> ServerServices:
    """Build the shared services on first use."""
    global _services
    if _services is None:
        store = RavenDBChunkStore()
        embedder = create_embedding_client(health_cache=TTLCache(EMBEDDING_HEALTH_TTL))
        _services = ServerServices(
            store=store, embedder=embedder, pipeline=create_pipeline(store, embedder)
        )
    return _services

def set_services(services: ServerServices | None) -> None:
    """Replace the shared services (used by tests)."""
    global _services
    _services = services

async def search_course_material_impl(
    query: str,
    course_code: str | None = None,
    topic: str | None = None,
    level: str | None = None,
    author: str | None = None,
    max_chunks: int | None = None,
    diversity_lambda: float | None = None,
    mode: str = "search",
) -> dict[str, Any]:
    """
    Searches indexed course material for chunks relevant to the query and
    returns a diversified selection across sources. Use this tool to find
    lecture notes and course documents for answering a student's question.

    Args:
        query: The search query text
        course_code: Optional course code filter (e.g. "CHEM101")
        topic: Optional topic filter
        level: Optional academic level filter
        author: Optional professor name (case-insensitive substring)
        max_chunks: Maximum number of chunks to return
        diversity_lambda: Relevance weight in [0, 1]; lower values favour variety
        mode: "search" (expanded queries), "chat" (single query) or "quiz" (broad pool)
    """
    logger.debug(f"MCP Tool: search_course_material query='{query[:100]}', mode={mode}")
    if mode not in SEARCH_MODES:
        raise ValueError(f"mode must be one of {', '.join(SEARCH_MODES)}")

    try:
        filters = SearchFilters(
            course_code=course_code,
            topic=topic,
            level=level,
            author=author,
            max_chunks=max_chunks,
            diversity_lambda=diversity_lambda,
        )
        pipeline = get_services().pipeline
        if mode == "chat":
            response = await pipeline.search_for_chat(query, filters)
        elif mode == "quiz":
            response = await pipeline.search_for_quiz(query, filters)
        else:
            response = await pipeline.search(query, filters)
    except AcadragError as e:
        logger.error(f"❌ MCP Tool: {e}")
        raise ValueError(str(e)) from e

    logger.info(f"✅ MCP Tool: Returning {len(response.results)} chunks ({response.search_type})")
    return response.to_dict()

async def index_course_document_impl(
    document_id: str,
    title: str,
    content: str,
    course_code: str = "",
    course_title: str = "",
    professor: str = "",
    topic: str = "",
    level: str = "",
    document_type: str = "notes",
) -> dict[str, Any]:
    """
    Chunks, embeds and stores a course document, replacing any chunks
    previously indexed for the same document id.

    Args:
        document_id: Stable id of the document
        title: Document title
        content: Full text of the document
        course_code: Course code the document belongs to
        course_title: Course title
        professor: Author of the material
        topic: Topic area
        level: Academic level
        document_type: Kind of material (notes, slides, ...)

    Returns:
        dict with success, documentId, chunksCreated and error
    """
    logger.info(f"📥 MCP Tool index_course_document: {document_id} ({len(content)} chars)")
    document = SourceDocument(
        id=document_id,
        title=title,
        content=content,
        course_code=course_code,
        course_title=course_title,
        professor=professor,
        topic=topic,
        level=level,
        document_type=document_type,
    )
    services = get_services()
    result = await asyncio.to_thread(index_document, document, services.store, services.embedder)
    return result.to_dict()

async def count_chunks_impl() -> dict[str, Any]:
    """
    Returns the number of indexed course-material chunks.
    """
    try:
        total = await asyncio.to_thread(get_services().store.count)
    except AcadragError as e:
        logger.error(f"❌ MCP Tool: Error counting chunks: {e}", exc_info=True)
        return {"success": False, "count": 0, "message": str(e)}
    return {"success": True, "count": total}


# Register tools
mcp.tool(name="search_course_material")(search_course_material_impl)
mcp.tool(name="index_course_document")(index_course_document_impl)
mcp.tool(name="count_chunks")(count_chunks_impl)

def main() -> None:
    """Entry point for the MCP server command-line interface."""
    host = os.getenv("MCP_HOST", DEFAULT_MCP_HOST)
    port = int(os.getenv("MCP_PORT", str(DEFAULT_MCP_PORT)))
    logger.info(f"🚀 Starting acadrag MCP Server on {host}:{port}...")
    mcp.run(transport="sse", host=host, port=port)

if __name__ == "__main__":
    main()
