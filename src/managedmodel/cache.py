"""
Process-lifetime cache of extracted schemas.

Entries live until clear() is called; there is no eviction policy.

Thread safety: Not thread-safe. Single-writer usage is expected; callers
sharing a cache across threads must synchronize get_schema/clean_up calls.
"""

import logging
from typing import Dict, Optional

from managedmodel.model_type import ModelType
from managedmodel.schema import ModelSchema

logger = logging.getLogger(__name__)


class ModelSchemaCache:
    """Mapping from ModelType to its extracted ModelSchema.

    Example:
        cache = ModelSchemaCache()
        schema = cache.get(model_type)
        if schema is None:
            schema = extract(model_type)
            cache.put(model_type, schema)
    """

    def __init__(self):
        self._cache: Dict[ModelType, ModelSchema] = {}

    def get(self, model_type: ModelType) -> Optional[ModelSchema]:
        """
        Get cached schema.

        Args:
            model_type: Cache key

        Returns:
            Cached schema or None if not extracted yet
        """
        return self._cache.get(model_type)

    def put(self, model_type: ModelType, schema: ModelSchema) -> None:
        """
        Put schema in cache.

        Args:
            model_type: Cache key
            schema: Fully built schema
        """
        self._cache[model_type] = schema
        logger.debug(f"Cached schema for {model_type.display_name} (size={len(self._cache)})")

    def clear(self) -> None:
        """Remove every cached schema."""
        count = len(self._cache)
        self._cache.clear()
        logger.debug(f"Cleared {count} cached schema(s)")

    clean_up = clear

    def size(self) -> int:
        return len(self._cache)

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, model_type: ModelType) -> bool:
        return model_type in self._cache
