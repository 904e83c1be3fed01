"""
cs2shuffle: shuffle-tournament orchestration for Counter-Strike events.

Re-forms skill-balanced teams every round from a shared player pool,
schedules the round's matches, advances the competition and ranks players.
"""

__version__ = "1.0.0"
