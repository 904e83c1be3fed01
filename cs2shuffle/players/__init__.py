"""
Player directory: identity, skill score and lifetime match count.
"""
from cs2shuffle.players.directory import PlayerDirectory, PlayerRecord

__all__ = ['PlayerDirectory', 'PlayerRecord']
