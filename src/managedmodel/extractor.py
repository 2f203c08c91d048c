"""
Schema extraction for contract types.

The extractor walks the property objects reachable from a contract's MRO,
pairs getters with setters, checks their annotations and classifies each
property by how its value is managed. Extraction is memoized through a
ModelSchemaCache and is all-or-nothing: a failure caches nothing.

Classification (ClassificationPolicy):
    concrete getter                                  -> UNMANAGED
    abstract, declaring type covered by the delegate -> DELEGATED
    abstract, declared on the contract or a @managed -> MANAGED
    anything else                                    -> UNMANAGED
"""

import inspect
import logging
from typing import (Any, Dict, Generic, Iterator, List, Mapping, Optional, Set, Tuple, Type,
                    get_args, get_origin, get_type_hints)

from managedmodel.contract import get_delegate_type, is_managed_type
from managedmodel.errors import (DuplicatePropertyError, OrphanSetterError,
                                 PropertyTypeMismatchError, UnsupportedAccessorError)
from managedmodel.model_type import ModelType
from managedmodel.schema import (ModelProperty, ModelPropertyExtractionResult, ModelSchema,
                                 ModelSchemaKind, PropertyAccessor, StateManagementType)
from managedmodel.state import ManagedInstance

logger = logging.getLogger(__name__)

# Bases whose properties never belong to a contract
_IGNORED_BASES = (object, ManagedInstance, Generic)

PROPERTY_EXTRACTION_DEBUG_TEMPLATE = "SCHEMA PROPERTY: {contract}.{name} - type={type}, kind={kind}, writable={writable}"


def _is_abstract(function: Any) -> bool:
    return bool(getattr(function, '__isabstractmethod__', False))


def _positional_parameter_count(function: Any) -> int:
    """Count parameters that must be supplied positionally."""
    signature = inspect.signature(function)
    return sum(
        1 for p in signature.parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty
    )


class ClassificationPolicy:
    """Decides the StateManagementType of each extracted property.

    Delegate types come from the @managed registration of the contract, or
    from the ``delegates`` mapping given here, which takes precedence.
    """

    def __init__(self, delegates: Optional[Mapping[type, type]] = None):
        self._delegates: Dict[type, type] = dict(delegates or {})

    def delegate_type_for(self, contract: type) -> Optional[type]:
        if contract in self._delegates:
            return self._delegates[contract]
        return get_delegate_type(contract)

    def classify(self, contract: type, declaring_type: type, getter: PropertyAccessor) -> StateManagementType:
        if not getter.is_abstract:
            return StateManagementType.UNMANAGED

        delegate_type = self.delegate_type_for(contract)
        if (delegate_type is not None and declaring_type is not contract
                and issubclass(delegate_type, declaring_type)):
            return StateManagementType.DELEGATED

        if declaring_type is contract or is_managed_type(declaring_type):
            return StateManagementType.MANAGED
        return StateManagementType.UNMANAGED


class ModelSchemaExtractor:
    """Produces (or retrieves from cache) the ModelSchema of a ModelType."""

    def __init__(self, policy: Optional[ClassificationPolicy] = None):
        self.policy = policy or ClassificationPolicy()
        self._in_progress: Set[ModelType] = set()

    def extract(self, model_type: Any, store: Any, cache: Any) -> ModelSchema:
        """
        Extract the schema of a type, using and filling ``cache``.

        Args:
            model_type: ModelType (or annotation) to extract
            store: Schema store used to resolve nested managed types
            cache: ModelSchemaCache holding already extracted schemas

        Returns:
            The cached or freshly extracted schema

        Raises:
            SchemaExtractionError: If the type declares invalid accessors
        """
        model_type = ModelType.of(model_type)
        cached = cache.get(model_type)
        if cached is not None:
            return cached

        kind = self._kind_of(model_type)
        if kind in (ModelSchemaKind.STRUCT, ModelSchemaKind.UNMANAGED) and model_type.raw_class is not None:
            results = self.extract_property_results(model_type)
        else:
            results = ()

        schema = ModelSchema(model_type, kind, tuple(r.property for r in results))

        self._in_progress.add(model_type)
        try:
            for nested in self._nested_managed_types(model_type, schema):
                if nested not in self._in_progress:
                    store.get_schema(nested)
        finally:
            self._in_progress.discard(model_type)

        cache.put(model_type, schema)
        logger.debug(f"Extracted schema for {model_type.display_name}: kind={kind.name}, "
                     f"properties={list(schema.property_names)}")
        return schema

    def extract_property_results(self, model_type: Any) -> Tuple[ModelPropertyExtractionResult, ...]:
        """
        Extract and classify the properties of a contract type, uncached.

        Args:
            model_type: ModelType (or class) of the contract

        Returns:
            Extraction results sorted by property name

        Raises:
            SchemaExtractionError: If the type declares invalid accessors
        """
        model_type = ModelType.of(model_type)
        contract = model_type.raw_class
        if contract is None:
            raise UnsupportedAccessorError(model_type, None, "is not a class")

        bindings = self._type_bindings(model_type)
        results: List[ModelPropertyExtractionResult] = []

        for name, declaring_type, prop in self._walk_properties(contract):
            if prop.fget is None:
                raise OrphanSetterError(model_type, name)

            getter = PropertyAccessor(declaring_type, prop.fget, _is_abstract(prop.fget))
            setter = None
            if prop.fset is not None:
                setter = PropertyAccessor(declaring_type, prop.fset, _is_abstract(prop.fset))

            property_type = self._property_type(model_type, name, getter, setter, bindings)
            self._check_conflicting_declarations(model_type, contract, name, declaring_type, property_type, bindings)

            state_management_type = self.policy.classify(contract, declaring_type, getter)
            model_property = ModelProperty(
                name=name,
                type=property_type,
                state_management_type=state_management_type,
                writable=setter is not None,
                getter=getter,
                setter=setter,
            )
            logger.debug(PROPERTY_EXTRACTION_DEBUG_TEMPLATE.format(
                contract=model_type.display_name,
                name=name,
                type=property_type.display_name,
                kind=state_management_type.name,
                writable=model_property.writable,
            ))
            results.append(ModelPropertyExtractionResult(model_property, getter, setter))

        return tuple(sorted(results, key=lambda r: r.name))

    # =========================================================================
    # ACCESSOR DISCOVERY
    # =========================================================================

    @staticmethod
    def _walk_properties(contract: type) -> Iterator[Tuple[str, type, property]]:
        """Yield (name, declaring type, property) for the most-derived definition of each name."""
        seen: Set[str] = set()
        for klass in contract.__mro__:
            if klass in _IGNORED_BASES:
                continue
            for name, attr in klass.__dict__.items():
                if name in seen:
                    continue
                seen.add(name)
                if isinstance(attr, property) and not name.startswith('_'):
                    yield name, klass, attr

    def _property_type(self, model_type: ModelType, name: str, getter: PropertyAccessor,
                       setter: Optional[PropertyAccessor], bindings: Dict[Any, ModelType]) -> ModelType:
        if _positional_parameter_count(getter.function) != 1:
            raise UnsupportedAccessorError(model_type, name, "getter must take no arguments")

        getter_hints = self._hints(model_type, name, getter)
        if 'return' in getter_hints:
            getter_type = ModelType.of(getter_hints['return']).substitute(bindings)
        elif getter.is_abstract:
            raise UnsupportedAccessorError(model_type, name, "getter must declare a return type")
        else:
            getter_type = ModelType.of(Any)

        if setter is None:
            return getter_type

        if _positional_parameter_count(setter.function) != 2:
            raise UnsupportedAccessorError(model_type, name, "setter must take exactly one value argument")

        setter_hints = self._hints(model_type, name, setter)
        value_parameter = list(inspect.signature(setter.function).parameters)[1]
        if value_parameter in setter_hints:
            setter_type = ModelType.of(setter_hints[value_parameter]).substitute(bindings)
            if setter_type != getter_type:
                raise PropertyTypeMismatchError(model_type, name, getter_type, setter_type)
        return getter_type

    def _check_conflicting_declarations(self, model_type: ModelType, contract: type, name: str,
                                        declaring_type: type, property_type: ModelType,
                                        bindings: Dict[Any, ModelType]) -> None:
        """Reject a name declared with different types by unrelated bases."""
        for klass in contract.__mro__:
            if klass in _IGNORED_BASES or klass is declaring_type or issubclass(declaring_type, klass):
                continue
            other = klass.__dict__.get(name)
            if not isinstance(other, property) or other.fget is None:
                continue
            hints = self._hints(model_type, name, PropertyAccessor(klass, other.fget))
            if 'return' not in hints:
                continue
            other_type = ModelType.of(hints['return']).substitute(bindings)
            if other_type != property_type:
                raise DuplicatePropertyError(
                    model_type, name,
                    f"is declared by both {declaring_type.__qualname__} ({property_type.display_name}) "
                    f"and {klass.__qualname__} ({other_type.display_name})",
                )

    @staticmethod
    def _hints(model_type: ModelType, name: str, accessor: PropertyAccessor) -> Dict[str, Any]:
        try:
            return get_type_hints(accessor.function)
        except (NameError, TypeError) as e:
            raise UnsupportedAccessorError(model_type, name, f"has unresolvable annotations: {e}") from e

    # =========================================================================
    # GENERICS
    # =========================================================================

    @staticmethod
    def _type_bindings(model_type: ModelType) -> Dict[Any, ModelType]:
        """Map the type variables of a generic contract (and its bases) to arguments."""
        contract = model_type.raw_class
        bindings: Dict[Any, ModelType] = {}
        parameters = contract.__dict__.get('__parameters__', ())
        for parameter, argument in zip(parameters, model_type.type_arguments):
            bindings[parameter] = argument

        def bind_bases(klass: type) -> None:
            for base in klass.__dict__.get('__orig_bases__', ()):
                origin = get_origin(base)
                if origin is None or origin is Generic or not isinstance(origin, type):
                    continue
                for parameter, argument in zip(origin.__dict__.get('__parameters__', ()), get_args(base)):
                    if parameter not in bindings:
                        bindings[parameter] = ModelType.of(argument).substitute(bindings)
                bind_bases(origin)

        bind_bases(contract)
        return bindings

    # =========================================================================
    # CLASSIFICATION OF TYPES
    # =========================================================================

    @staticmethod
    def _kind_of(model_type: ModelType) -> ModelSchemaKind:
        if model_type.is_scalar:
            return ModelSchemaKind.VALUE
        if model_type.is_collection:
            return ModelSchemaKind.COLLECTION
        raw = model_type.raw_class
        if raw is not None and (is_managed_type(raw) or inspect.isabstract(raw)):
            return ModelSchemaKind.STRUCT
        return ModelSchemaKind.UNMANAGED

    @staticmethod
    def _nested_managed_types(model_type: ModelType, schema: ModelSchema) -> Iterator[ModelType]:
        """Managed contract types reachable from the schema's properties or type arguments."""
        def managed_in(t: ModelType) -> Iterator[ModelType]:
            if is_managed_type(t.raw_class):
                yield t
            for argument in t.type_arguments:
                yield from managed_in(argument)

        if schema.kind is ModelSchemaKind.COLLECTION:
            for argument in model_type.type_arguments:
                yield from managed_in(argument)
        for prop in schema.properties:
            yield from managed_in(prop.type)
