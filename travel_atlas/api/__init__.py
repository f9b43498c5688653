"""HTTP API for the travel atlas backend."""
from .routes import router

__all__ = ["router"]
