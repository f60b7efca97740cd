from .items_repo import ItemsRepo
from .username_cache_repo import UsernameCacheRepo

__all__ = ["ItemsRepo", "UsernameCacheRepo"]
