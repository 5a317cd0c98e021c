"""
API Package - HTTP surface for the movement pipeline.

Run with ``python -m api`` or any ASGI server pointed at the
``api.app:create_app`` factory.
"""

from api.app import create_app
from api.service import MovementService, MovementsResult

__all__ = [
    "create_app",
    "MovementService",
    "MovementsResult",
]
