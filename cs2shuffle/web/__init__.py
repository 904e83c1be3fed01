"""
Web interface module for CS2 shuffle tournaments.

Provides a FastAPI-based admin API for:
- Creating tournaments and registering players
- Generating and advancing rounds
- Recording results and reading standings
"""
