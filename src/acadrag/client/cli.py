"""Command-line interface for acadrag using Click."""

import asyncio
from pathlib import Path

import click
from dotenv import load_dotenv

from acadrag.client.cli_helpers import (
    ensure_database_exists,
    format_search_result,
    get_database_info,
)
from acadrag.client.ingest import SUPPORTED_EXTENSIONS, extract_document_from_file
from acadrag.constants import get_embedding_model
from acadrag.exceptions import AcadragError
from acadrag.service.components import create_embedding_client, create_pipeline
from acadrag.service.database import (
    RavenDBChunkStore,
    SearchFilters,
    database_exists,
    delete_database,
    index_document,
)

# Load environment variables
load_dotenv()


@click.command()
@click.argument(
    "directory",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
)
@click.option("--course-code", type=str, required=True, help="Course code, e.g. CHEM101")
@click.option("--course-title", type=str, default="", help="Course title")
@click.option("--professor", type=str, default="", help="Author of the material")
@click.option("--topic", type=str, default="", help="Topic area of the documents")
@click.option("--level", type=str, default="", help="Academic level, e.g. 100")
@click.option(
    "--document-type",
    type=str,
    default="notes",
    help="Kind of material: notes, slides, handout... (default: 'notes')",
)
@click.option(
    "--create-database",
    "create_database_flag",
    is_flag=True,
    default=False,
    help="Create the RavenDB database if it doesn't exist",
)
def index(
    directory: Path,
    course_code: str,
    course_title: str,
    professor: str,
    topic: str,
    level: str,
    document_type: str,
    create_database_flag: bool,
) -> None:
    """Index PDF, text and markdown files from DIRECTORY as course material.

    Re-indexing a file replaces the chunks stored for it.

    Example:
        acadrag-index notes/ --course-code CHEM101 --professor "Dr. Ada"
        acadrag-index notes/ --course-code CHEM101 --create-database
    """
    ensure_database_exists(create_if_missing=create_database_flag, directory=str(directory))

    files = sorted(
        path for path in directory.iterdir() if path.suffix.lower() in SUPPORTED_EXTENSIONS
    )
    if not files:
        click.echo(f"No supported files found in '{directory}'")
        return

    click.echo(f"Found {len(files)} file(s)")
    click.echo(f"Using embedding model: {get_embedding_model()}")
    click.echo(f"Course: {course_code}\n")

    metadata = {
        "course_code": course_code,
        "course_title": course_title,
        "professor": professor,
        "topic": topic,
        "level": level,
        "document_type": document_type,
    }
    store = RavenDBChunkStore()
    embedder = create_embedding_client()
    total_chunks = 0
    failures = 0
    try:
        for path in files:
            try:
                document = extract_document_from_file(path, metadata)
            except Exception as e:
                click.echo(f"  ✗ Error reading {path.name}: {e}", err=True)
                failures += 1
                continue

            result = index_document(document, store, embedder)
            if result.success:
                total_chunks += result.chunks_created
                click.echo(f"  ✓ Indexed {result.chunks_created} chunks from {path.name}")
            else:
                failures += 1
                click.echo(f"  ✗ Error indexing {path.name}: {result.error}", err=True)
    finally:
        store.close()

    click.echo(f"\n✓ Indexing complete! Stored {total_chunks} chunks.")
    if failures:
        click.echo(f"✗ {failures} file(s) failed", err=True)
        raise click.Abort()


@click.command()
def count() -> None:
    """Show the number of chunks in the database.

    Example:
        acadrag-count
    """
    ensure_database_exists()
    _, _, chunk_count = get_database_info()
    if chunk_count is not None:
        click.echo(f"📊 Database contains {chunk_count} chunk(s)")
    else:
        click.echo("✗ Error counting chunks", err=True)
        raise click.Abort()


@click.command()
@click.argument("query", type=str)
@click.option("--max-chunks", type=int, default=None, help="Number of results to return")
@click.option("--course-code", type=str, default=None, help="Only search this course")
@click.option("--topic", type=str, default=None, help="Only search this topic")
@click.option("--level", type=str, default=None, help="Only search this level")
@click.option("--author", type=str, default=None, help="Only search material by this professor")
@click.option(
    "--lambda",
    "diversity_lambda",
    type=click.FloatRange(0.0, 1.0),
    default=None,
    help="Relevance weight for diversification (0 = most diverse, 1 = plain top-k)",
)
@click.option(
    "--mode",
    type=click.Choice(["search", "chat", "quiz"]),
    default="search",
    help="Search flavour (default: search)",
)
def search(
    query: str,
    max_chunks: int | None,
    course_code: str | None,
    topic: str | None,
    level: str | None,
    author: str | None,
    diversity_lambda: float | None,
    mode: str,
) -> None:
    """Search course material with diversified vector search.

    QUERY is the text to search for.

    Example:
        acadrag-search "acid base titration"
        acadrag-search "enzyme kinetics" --course-code BIO201 --max-chunks 5 --lambda 0.7
    """
    ensure_database_exists()

    store = RavenDBChunkStore()
    try:
        filters = SearchFilters(
            course_code=course_code,
            topic=topic,
            level=level,
            author=author,
            max_chunks=max_chunks,
            diversity_lambda=diversity_lambda,
        )
        pipeline = create_pipeline(store=store)
        click.echo(f"🔍 Searching for: '{query}'\n")
        if mode == "chat":
            response = asyncio.run(pipeline.search_for_chat(query, filters))
        elif mode == "quiz":
            response = asyncio.run(pipeline.search_for_quiz(query, filters))
        else:
            response = asyncio.run(pipeline.search(query, filters))
    except AcadragError as e:
        click.echo(f"✗ Error: {e}", err=True)
        raise click.Abort()
    finally:
        store.close()

    if not response.results:
        click.echo("No results found.")
        return

    click.echo(f"✅ Found {len(response.results)} result(s) ({response.search_type} search):\n")
    for i, result in enumerate(response.results, 1):
        click.echo(format_search_result(i, result))
    click.echo(f"Sources: {', '.join(response.sources)}")


@click.command()
@click.option("--yes", "-y", is_flag=True, default=False, help="Skip confirmation prompt")
def delete_db(yes: bool) -> None:
    """Delete the RavenDB database and all its contents.

    WARNING: This is irreversible and deletes all chunks, embeddings, and indexes.

    Example:
        acadrag-delete-db          # Will prompt for confirmation
        acadrag-delete-db --yes    # Skip confirmation
    """
    if not database_exists():
        click.echo("✓ Database does not exist")
        return

    url, db_name, chunk_count = get_database_info()

    if not yes:
        click.echo(f"⚠️  WARNING: You are about to delete the database '{db_name}'")
        click.echo(f"   Location: {url}\n")
        if chunk_count is not None:
            click.echo(f"📊 Current database contains: {chunk_count} chunk(s)\n")

        if not click.confirm("Are you sure you want to proceed?", default=False):
            click.echo("Deletion cancelled.")
            return

    click.echo(f"🗑️  Deleting database '{db_name}'...")
    try:
        delete_database()
        click.echo(f"✓ Database '{db_name}' successfully deleted!")
    except Exception as e:
        click.echo(f"✗ Error deleting database: {e}", err=True)
        raise click.Abort()


if __name__ == "__main__":
    index()
