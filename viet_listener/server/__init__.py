"""HTTP API package — FastAPI app and pydantic schemas."""
