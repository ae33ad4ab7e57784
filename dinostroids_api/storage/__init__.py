from dinostroids_api.storage.base import InMemoryStore, KeyValueStore
from dinostroids_api.storage.redis_client import RedisStore, redis_store

__all__ = ["InMemoryStore", "KeyValueStore", "RedisStore", "redis_store"]
