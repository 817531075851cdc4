"""Query expansion into a small set of search variants."""

from acadrag.constants import QUERY_EXPANSION_SUFFIX
from acadrag.exceptions import InvalidQueryError


def expand_query(query: str, topic: str | None = None, course_code: str | None = None) -> list[str]:
    """Expand a user query into search variants.

    The first variant is always the query itself; the second broadens it with
    the topic (when given) and conceptual terms.

    Args:
        query: The user's query text
        topic: Optional topic to fold into the broadened variant
        course_code: Accepted for call-site symmetry; does not change the output

    Returns:
        list[str]: The query variants, original first

    Raises:
        InvalidQueryError: If the query is empty or blank
    """
    if query is None or not query.strip():
        raise InvalidQueryError("Query must not be empty")

    query = query.strip()
    topic = topic.strip() if topic else None
    if topic:
        return [query, f"{query} {topic} {QUERY_EXPANSION_SUFFIX}"]
    return [query, f"{query} {QUERY_EXPANSION_SUFFIX}"]
