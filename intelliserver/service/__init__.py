"""HTTP service layer (FastAPI application, model routes, SSE streaming)."""
