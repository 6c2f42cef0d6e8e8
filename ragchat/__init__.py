"""RAG chat context service."""
