"""
Services layer - core business logic for the news ingestion backend.

1. Ingestion engine (ingestion/):
   - Pagination driver with per-cursor retry
   - Concurrent, URL-deduplicated batch persistence
   - Progress and error accounting

2. News ingestion (news_ingestion.py):
   - Wires a source, a store and the engine for one request
   - Always answers with a structured payload
"""
