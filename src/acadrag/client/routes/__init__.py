"""Flask route blueprints for the acadrag client application."""

from acadrag.client.routes.chat import chat_bp
from acadrag.client.routes.config import get_config, init_config
from acadrag.client.routes.health import health_bp
from acadrag.client.routes.quiz import quiz_bp
from acadrag.client.routes.search import search_bp

__all__ = [
    "chat_bp",
    "health_bp",
    "quiz_bp",
    "search_bp",
    "init_config",
    "get_config",
]
