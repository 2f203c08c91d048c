"""
ModelType - immutable descriptor of a (possibly parameterized) model type.

A ModelType pairs a raw type with its ordered type arguments, so that
``List[str]`` and ``List[int]`` are distinct keys even though both erase to
``list`` at runtime. It is used as the schema cache key and as the declared
type of every property.

Core concepts:
- Structural identity: equal raw type and equal arguments (recursively)
- The original annotation rides along uncompared, so generated accessors can
  report ``List[str]`` exactly as the contract declared it
- Type variable substitution for generic contracts (``Box[int]``)

Usage:
    from managedmodel.model_type import ModelType

    ModelType.of(List[str]) == ModelType.of(List[str])   # True
    ModelType.of(List[str]) == ModelType.of(List[int])   # False
    ModelType.of(Optional[bool]) == ModelType.of(bool | None)  # True
    ModelType.of(List[str]).type_arguments                # (ModelType(str),)
"""

import enum
import types
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Tuple, TypeVar, Union, get_args, get_origin

# Python 3.10+ spells unions `X | Y`; normalized to typing.Union below
_UnionType = getattr(types, 'UnionType', None)

NoneType = type(None)

# Types whose values are stored as-is and never get a struct schema
SCALAR_TYPES = frozenset({int, bool, float, complex, str, bytes, bytearray, NoneType})

# Raw types treated as collections when parameterized
COLLECTION_TYPES = frozenset({list, set, frozenset, tuple, dict})

# Numeric tower accepted by managed setters (PEP 484: int is acceptable for float)
_NUMERIC_PROMOTIONS: Dict[type, Tuple[type, ...]] = {
    float: (int, float),
    complex: (int, float, complex),
}


def _raw_name(raw: Any) -> str:
    if isinstance(raw, TypeVar):
        return f"~{raw.__name__}"
    if raw is Union:
        return 'Union'
    if raw is Literal:
        return 'Literal'
    if raw is NoneType:
        return 'None'
    if isinstance(raw, type):
        if raw.__module__ == 'builtins':
            return raw.__qualname__
        return f"{raw.__module__}.{raw.__qualname__}"
    return repr(raw)


@dataclass(frozen=True, repr=False)
class ModelType:
    """Immutable descriptor of a raw type plus its type arguments."""
    raw_type: Any
    type_arguments: Tuple['ModelType', ...] = ()
    annotation: Any = field(default=None, compare=False, hash=False)

    def __post_init__(self):
        if not isinstance(self.type_arguments, tuple):
            object.__setattr__(self, 'type_arguments', tuple(self.type_arguments))
        if self.annotation is None and not self.type_arguments:
            object.__setattr__(self, 'annotation', self.raw_type)

    @classmethod
    def of(cls, annotation: Any) -> 'ModelType':
        """Build a ModelType from a class or any typing annotation."""
        if isinstance(annotation, ModelType):
            return annotation
        if annotation is None:
            annotation = NoneType

        origin = get_origin(annotation)
        if origin is None:
            return cls(annotation, (), annotation)

        if _UnionType is not None and origin is _UnionType:
            origin = Union
        if origin is Literal:
            # Literal arguments are values, not types
            return cls(Literal, tuple(cls(value, (), value) for value in get_args(annotation)), annotation)

        arguments = []
        for arg in get_args(annotation):
            if isinstance(arg, list):
                # Callable[[int, str], bool] - the parameter list renders as a tuple
                arguments.append(cls(tuple, tuple(cls.of(a) for a in arg), None))
            else:
                arguments.append(cls.of(arg))
        return cls(origin, tuple(arguments), annotation)

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    @property
    def display_name(self) -> str:
        name = _raw_name(self.raw_type)
        if not self.type_arguments:
            return name
        return f"{name}[{', '.join(arg.display_name for arg in self.type_arguments)}]"

    @property
    def raw_class(self) -> Any:
        """The raw type when it is a real class, else None."""
        return self.raw_type if isinstance(self.raw_type, type) else None

    @property
    def is_generic(self) -> bool:
        return bool(self.type_arguments)

    @property
    def is_type_variable(self) -> bool:
        return isinstance(self.raw_type, TypeVar)

    @property
    def is_scalar(self) -> bool:
        raw = self.raw_type
        if raw in SCALAR_TYPES:
            return True
        return isinstance(raw, type) and issubclass(raw, enum.Enum)

    @property
    def is_collection(self) -> bool:
        return self.raw_type in COLLECTION_TYPES

    @property
    def is_optional(self) -> bool:
        return self.raw_type is Union and any(arg.raw_type is NoneType for arg in self.type_arguments)

    def to_annotation(self) -> Any:
        """Return the typing annotation this ModelType describes."""
        if self.annotation is not None:
            return self.annotation
        if not self.type_arguments:
            return self.raw_type
        args = tuple(arg.to_annotation() for arg in self.type_arguments)
        if self.raw_type is Union:
            return Union[args]
        if hasattr(self.raw_type, '__class_getitem__'):
            return self.raw_type[args if len(args) > 1 else args[0]]
        return self.raw_type

    # =========================================================================
    # TYPE VARIABLES
    # =========================================================================

    def substitute(self, bindings: Dict[Any, 'ModelType']) -> 'ModelType':
        """Replace type variables using ``bindings`` (TypeVar -> ModelType)."""
        if not bindings:
            return self
        if self.is_type_variable:
            return bindings.get(self.raw_type, self)
        if not self.type_arguments:
            return self

        arguments = tuple(arg.substitute(bindings) for arg in self.type_arguments)
        if arguments == self.type_arguments:
            return self

        annotation = self.annotation
        parameters = getattr(annotation, '__parameters__', ())
        if parameters:
            replacements = tuple(
                bindings[p].to_annotation() if p in bindings else p
                for p in parameters
            )
            annotation = annotation[replacements if len(replacements) > 1 else replacements[0]]
        else:
            annotation = None
        return ModelType(self.raw_type, arguments, annotation)

    # =========================================================================
    # VALUE CHECKS
    # =========================================================================

    def accepts(self, value: Any) -> bool:
        """Check whether ``value`` may be stored in a property of this type.

        Only the raw type is checked; element types of collections are not
        inspected.
        """
        raw = self.raw_type
        if raw is Any or self.is_type_variable:
            return True
        if raw is Union:
            return any(arg.accepts(value) for arg in self.type_arguments)
        if raw is Literal:
            return any(value == arg.raw_type for arg in self.type_arguments)
        if not isinstance(raw, type):
            return True
        if value is None:
            return raw is NoneType
        try:
            return isinstance(value, _NUMERIC_PROMOTIONS.get(raw, raw))
        except TypeError:
            # Non runtime-checkable protocols cannot be verified
            return True

    def __str__(self) -> str:
        return self.display_name

    def __repr__(self) -> str:
        return f"ModelType({self.display_name})"
