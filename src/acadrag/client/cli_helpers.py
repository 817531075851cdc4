"""Helper functions for CLI commands."""

import click

from acadrag.constants import CONTENT_PREVIEW_LENGTH
from acadrag.retrieval.models import SearchResult
from acadrag.service.database import (
    RavenDBChunkStore,
    RavenDBConfig,
    create_database,
    database_exists,
)


def ensure_database_exists(
    create_if_missing: bool = False,
    directory: str | None = None,
) -> bool:
    """Check if database exists, optionally create it.

    Args:
        create_if_missing: If True, attempt to create the database
        directory: Directory path for error message context

    Returns:
        True if database exists (or was created)

    Raises:
        click.Abort: If database doesn't exist and can't be created
    """
    if database_exists():
        return True

    if create_if_missing:
        click.echo("Database does not exist. Creating database...")
        try:
            create_database()
            click.echo("✓ Database created successfully!")
            return True
        except Exception as e:
            click.echo(f"✗ Failed to create database: {e}", err=True)
            click.echo("\nPlease ensure RavenDB is running and accessible.", err=True)
            raise click.Abort()

    click.echo("✗ Error: Database does not exist!", err=True)
    click.echo("\nPlease create the database first using:", err=True)
    click.echo(f"  acadrag-index {directory or '<directory>'} --create-database", err=True)
    raise click.Abort()


def format_search_result(index: int, result: SearchResult, max_length: int = CONTENT_PREVIEW_LENGTH) -> str:
    """Format a search result for display.

    Args:
        index: Result number (1-based)
        result: The search result
        max_length: Maximum content length before truncation

    Returns:
        Formatted string for display
    """
    metadata = result.chunk.metadata
    content = result.chunk.text
    display_content = content[:max_length] + "..." if len(content) > max_length else content
    course = f" {metadata.course_code}" if metadata.course_code else ""

    lines = [
        f"{index}. [{result.source_label}{course} - chunk #{metadata.chunk_index}] "
        f"(score: {result.score:.4f}, query #{result.query_index})",
        f"   {display_content}",
        "",
    ]
    return "\n".join(lines)


def get_database_info(store: RavenDBChunkStore | None = None) -> tuple[str, str, int | None]:
    """Get database connection info and chunk count.

    Returns:
        Tuple of (url, database_name, chunk_count or None if it cannot be read)
    """
    url = RavenDBConfig.get_url()
    db_name = RavenDBConfig.get_database_name()

    store = store or RavenDBChunkStore(url=url, database=db_name)
    try:
        chunk_count = store.count()
    except Exception as e:
        click.echo(f"⚠️  Could not count chunks: {e}", err=True)
        chunk_count = None
    finally:
        store.close()

    return url, db_name, chunk_count
