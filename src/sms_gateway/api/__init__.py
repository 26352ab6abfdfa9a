"""HTTP surface of the SMS gateway."""

from .send import router as send_router

__all__ = ["send_router"]
