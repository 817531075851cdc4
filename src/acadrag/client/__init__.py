"""Client layer: Flask web application, CLI and document ingestion."""
