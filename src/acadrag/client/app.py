"""Flask web application serving retrieval, chat and quiz endpoints.

This module is the composition root of the web service: it builds the chunk
store, embedding client, retrieval pipeline, LLM service and quiz generator
once and hands them to the route blueprints.
"""

import logging
import os

from dotenv import load_dotenv
from flask import Flask

from acadrag.client.routes import (
    chat_bp,
    health_bp,
    init_config,
    quiz_bp,
    search_bp,
)
from acadrag.config import QuizConfig, RetrievalConfig
from acadrag.constants import EMBEDDING_HEALTH_TTL
from acadrag.llm import get_llm_service
from acadrag.quiz.generator import QuizGenerator
from acadrag.retrieval.embedding import TTLCache
from acadrag.service.components import create_embedding_client, create_pipeline
from acadrag.service.database import RavenDBChunkStore

# Configure logging
log_level = os.getenv("LOG_LEVEL", "INFO")
logging.basicConfig(
    level=getattr(logging, log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()
logger.debug("Environment variables loaded")

# Create Flask app
app = Flask(__name__)
logger.debug("Flask app created")

# Register blueprints
app.register_blueprint(search_bp)
app.register_blueprint(chat_bp)
app.register_blueprint(quiz_bp)
app.register_blueprint(health_bp)


def initialize_services() -> None:
    """Build the shared services and hand them to the routes."""
    logger.info("🔧 Initializing services...")

    retrieval_config = RetrievalConfig.from_env()
    llm_service = get_llm_service()
    logger.info("✅ LLM service initialized successfully")

    embedder = create_embedding_client(
        llm_service=llm_service,
        health_cache=TTLCache(EMBEDDING_HEALTH_TTL),
        config=retrieval_config,
    )
    store = RavenDBChunkStore()
    pipeline = create_pipeline(store=store, embedder=embedder, config=retrieval_config)
    logger.info(f"✅ Retrieval pipeline initialized (collection: {store.collection})")

    quiz_generator = QuizGenerator(pipeline, llm_service, QuizConfig.from_env())

    init_config(
        pipeline=pipeline,
        llm_service=llm_service,
        quiz_generator=quiz_generator,
        embedder=embedder,
        context_max_chars=retrieval_config.context_max_chars,
    )


def create_app():
    """Factory function for creating the Flask application.

    This function is used by WSGI servers like gunicorn to create the app.
    It initializes services before returning the app instance.

    Returns:
        Flask: The configured Flask application instance
    """
    initialize_services()
    return app


def main() -> None:
    """Entry point for the Flask application command-line interface."""
    print("🚀 Starting acadrag Flask application...")

    print("📦 Initializing services...")
    initialize_services()
    print("✅ Services initialized successfully")

    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", "5000"))
    debug = os.getenv("FLASK_ENV", "development") == "development"

    print(f"🌐 Starting Flask server on http://{host}:{port}")
    print(f"🔧 Debug mode: {debug}")
    print("📝 Press CTRL+C to quit")

    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    main()
