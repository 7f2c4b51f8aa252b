"""
ORM models for the live odds mirror.

Usage:
    from app.models import Game, LiveOdd
"""
from app.models.models import Base, Game, LiveOdd

__all__ = ["Base", "Game", "LiveOdd"]
