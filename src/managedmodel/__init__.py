"""
Managed model framework: schema extraction and generated implementations.

Contracts are abstract classes declaring abstract properties. The framework
extracts a schema from each contract once, classifies its properties by how
their values are stored, and generates implementation classes whose
properties read and write through a host-supplied state object.

Key Features:
- Memoized schema extraction keyed on (possibly parameterized) ModelType
- Managed, unmanaged and delegated property classification
- Generated classes preserving accessor annotations, including generics
- Identity taken from the state's backing node
- Error messages that name the contract, never the generated class

Quick Start:
    >>> from abc import ABC, abstractmethod
    >>> from managedmodel import managed, ManagedProxyFactory
    >>>
    >>> @managed
    ... class Point(ABC):
    ...     @property
    ...     @abstractmethod
    ...     def x(self) -> int: ...
    ...
    ...     @x.setter
    ...     @abstractmethod
    ...     def x(self, value: int) -> None: ...
    >>>
    >>> point = ManagedProxyFactory().create_instance(state, Point)
    >>> point.x = 1          # state.set('x', 1)

Modules:
    - model_type: ModelType descriptors (raw type plus type arguments)
    - schema: ModelSchema, ModelProperty and classification enums
    - cache: ModelSchemaCache
    - extractor: ModelSchemaExtractor and ClassificationPolicy
    - store: ModelSchemaStore facade and the process default store
    - proxy_generator: ManagedProxyClassGenerator
    - proxy_factory: ManagedProxyFactory (caller-level class cache)
    - contract: @managed registration
    - state: ModelElementState and ManagedInstance
    - config: Generator configuration
"""

# Model types
from managedmodel.model_type import ModelType

# Schema
from managedmodel.schema import (
    ModelSchema,
    ModelSchemaKind,
    ModelProperty,
    ModelPropertyExtractionResult,
    PropertyAccessor,
    StateManagementType,
)

# Registration
from managedmodel.contract import managed, is_managed_type, get_delegate_type

# Collaborators
from managedmodel.state import ModelElementState, ManagedInstance

# Extraction
from managedmodel.cache import ModelSchemaCache
from managedmodel.extractor import ModelSchemaExtractor, ClassificationPolicy
from managedmodel.store import (
    ModelSchemaStore,
    TypeNormalizer,
    get_default_store,
    managed_impl_type_normalizer,
)

# Generation
from managedmodel.proxy_generator import ManagedProxyClassGenerator
from managedmodel.proxy_factory import ManagedProxyFactory

# Configuration
from managedmodel.config import (
    GeneratorConfig,
    set_generator_config,
    get_generator_config,
    reset_generator_config,
)

# Errors
from managedmodel.errors import (
    ManagedModelError,
    SchemaExtractionError,
    OrphanSetterError,
    PropertyTypeMismatchError,
    DuplicatePropertyError,
    UnsupportedAccessorError,
    ProxyGenerationError,
    MissingPropertyError,
    ReadOnlyPropertyError,
    PropertyValueTypeError,
    MethodSignatureError,
)

__all__ = [
    # Model types
    'ModelType',
    # Schema
    'ModelSchema',
    'ModelSchemaKind',
    'ModelProperty',
    'ModelPropertyExtractionResult',
    'PropertyAccessor',
    'StateManagementType',
    # Registration
    'managed',
    'is_managed_type',
    'get_delegate_type',
    # Collaborators
    'ModelElementState',
    'ManagedInstance',
    # Extraction
    'ModelSchemaCache',
    'ModelSchemaExtractor',
    'ClassificationPolicy',
    'ModelSchemaStore',
    'TypeNormalizer',
    'get_default_store',
    'managed_impl_type_normalizer',
    # Generation
    'ManagedProxyClassGenerator',
    'ManagedProxyFactory',
    # Configuration
    'GeneratorConfig',
    'set_generator_config',
    'get_generator_config',
    'reset_generator_config',
    # Errors
    'ManagedModelError',
    'SchemaExtractionError',
    'OrphanSetterError',
    'PropertyTypeMismatchError',
    'DuplicatePropertyError',
    'UnsupportedAccessorError',
    'ProxyGenerationError',
    'MissingPropertyError',
    'ReadOnlyPropertyError',
    'PropertyValueTypeError',
    'MethodSignatureError',
]

__version__ = '0.1.0'
