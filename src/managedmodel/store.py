"""
Schema store - the facade for schema lookup.

The store runs its type normalizers over a requested type, then asks the
extractor for the schema, which is memoized in the store's cache.

A process-wide default store (no normalizers) is created lazily on first
use and lives for the rest of the process.

Thread safety: Not thread-safe. Callers sharing a store across threads must
synchronize get_schema/clean_up themselves.
"""

import logging
import threading
from typing import Any, Callable, Iterable, Optional, Tuple

from managedmodel.cache import ModelSchemaCache
from managedmodel.extractor import ModelSchemaExtractor
from managedmodel.model_type import ModelType
from managedmodel.schema import ModelSchema
from managedmodel.state import ManagedInstance

logger = logging.getLogger(__name__)

# A normalizer receives the current ModelType and returns a (possibly identical) replacement
TypeNormalizer = Callable[[ModelType], ModelType]

# Attribute set on generated implementation classes, holding the contract ModelType
MANAGED_TYPE_ATTRIBUTE = '__managed_type__'


def managed_impl_type_normalizer(model_type: ModelType) -> ModelType:
    """Map a generated implementation class back to the contract it implements."""
    raw = model_type.raw_class
    if raw is None:
        return model_type
    contract_type = raw.__dict__.get(MANAGED_TYPE_ATTRIBUTE)
    return contract_type if contract_type is not None else model_type


class ModelSchemaStore:
    """Looks up (extracting on first use) the schema of model types."""

    _instance: Optional['ModelSchemaStore'] = None
    _instance_lock = threading.Lock()

    def __init__(self, extractor: Optional[ModelSchemaExtractor] = None,
                 normalizers: Iterable[TypeNormalizer] = ()):
        self.cache = ModelSchemaCache()
        self.extractor = extractor or ModelSchemaExtractor()
        self._normalizers: Tuple[TypeNormalizer, ...] = tuple(normalizers)

    @classmethod
    def get_instance(cls) -> 'ModelSchemaStore':
        """Process-wide default store, created once on first call."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
                    logger.debug("Created default ModelSchemaStore")
        return cls._instance

    @property
    def normalizers(self) -> Tuple[TypeNormalizer, ...]:
        return self._normalizers

    def normalize(self, model_type: Any) -> ModelType:
        """Apply the normalizers, in registration order."""
        schema_type = ModelType.of(model_type)
        for normalizer in self._normalizers:
            schema_type = normalizer(schema_type)
        return schema_type

    def get_schema(self, model_type: Any) -> ModelSchema:
        """
        Get the schema of a type.

        Args:
            model_type: A ModelType, a class, or any typing annotation

        Returns:
            The (cached) schema of the normalized type
        """
        return self.extractor.extract(self.normalize(model_type), self, self.cache)

    def get_instance_schema(self, instance: Any) -> ModelSchema:
        """Get the schema of an instance's self-reported model type."""
        if isinstance(instance, ManagedInstance):
            model_type = instance.managed_type
        else:
            model_type = ModelType.of(type(instance))
        return self.get_schema(model_type)

    def clean_up(self) -> None:
        self.cache.clear()

    def size(self) -> int:
        return self.cache.size()


def get_default_store() -> ModelSchemaStore:
    """Get the process-wide default schema store."""
    return ModelSchemaStore.get_instance()
