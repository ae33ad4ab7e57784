"""
Dinostroids API

Games-played counter and top-10 leaderboard for the Dinostroids browser game,
backed by a Redis-compatible key-value store.
"""

__version__ = "1.0.0"
