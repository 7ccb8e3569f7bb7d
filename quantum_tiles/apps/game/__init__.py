"""
Game application package.

Contains the high-level play service and the CLI entrypoint for the
quantum tiles puzzle.
"""

from .game_service import GameService

__all__ = ['GameService']
