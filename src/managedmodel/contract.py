"""
Registration of managed contract types.

A contract is an abstract class declaring abstract properties. Marking it
with @managed tells the extractor that its properties are stored in the
element state, and optionally names the delegate type whose instance will
provide the properties and methods of an unmanaged supertype.

Usage:
    @managed
    class Point(ABC):
        @property
        @abstractmethod
        def x(self) -> int: ...

        @x.setter
        @abstractmethod
        def x(self, value: int) -> None: ...

    @managed(delegate=InternalNamed)
    class Person(Named):
        ...
"""

from typing import Any, Optional, Type

MANAGED_MARKER = '__managed__'
DELEGATE_MARKER = '__managed_delegate__'


def managed(cls: Optional[Type] = None, *, delegate: Optional[Type] = None):
    """
    Mark a class as a managed contract.

    Can be applied bare (``@managed``) or with arguments
    (``@managed(delegate=SomeType)``).

    Args:
        cls: The contract class (when used bare)
        delegate: Type whose instances back unmanaged supertype properties

    Returns:
        The class itself, marked
    """
    def decorator(target: Type) -> Type:
        if not isinstance(target, type):
            raise TypeError(f"@managed can only decorate classes, got {target!r}")
        if delegate is not None and not isinstance(delegate, type):
            raise TypeError(f"delegate must be a class, got {delegate!r}")
        # Set in the class __dict__ so subclasses do not inherit the delegate
        setattr(target, MANAGED_MARKER, True)
        setattr(target, DELEGATE_MARKER, delegate)
        return target

    if cls is not None:
        return decorator(cls)
    return decorator


def is_managed_type(t: Any) -> bool:
    """Check if a class is a managed contract (declared with @managed)."""
    return isinstance(t, type) and bool(t.__dict__.get(MANAGED_MARKER, False))


def get_delegate_type(t: Any) -> Optional[Type]:
    """Get the delegate type registered for a managed contract."""
    if not isinstance(t, type):
        return None
    return t.__dict__.get(DELEGATE_MARKER)
