"""API - HTTP surface over the defense controls.

Run with:
    uvicorn authshield.api.gateway:app
"""

from authshield.api.gateway import app
from authshield.api.schemas import ErrorResponse
from authshield.api.service import DefenseService

__all__ = ["app", "DefenseService", "ErrorResponse"]
