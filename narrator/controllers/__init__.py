"""FastAPI routers acting as controllers in the MVC architecture."""

from . import narration

__all__ = ["narration"]
