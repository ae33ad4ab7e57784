from dinostroids_api.services.counter_service import CounterService
from dinostroids_api.services.leaderboard_service import LeaderboardService

__all__ = ["CounterService", "LeaderboardService"]
