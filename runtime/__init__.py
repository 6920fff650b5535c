"""
Runtime package for the MOODi server.

This package contains:
- API layer (FastAPI server + routes)
- Models (Pydantic request/response schemas)
"""
