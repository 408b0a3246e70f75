from functools import lru_cache

from ..config import get_settings
from ..service import IndexService


@lru_cache
def get_index_service() -> IndexService:
    return IndexService.from_settings(get_settings())
