"""Declarative markers and the strategies that turn them into injected values.

Markers are plain objects. They reach the container in two ways:

- as ``typing.Annotated`` metadata on a field or parameter annotation::

      class Service:
          repository: Annotated[Repository, Inject(RepositoryBox)]

- stamped on a class or function by a decorator, like :func:`inject` or
  :func:`mark`::

      class Service:
          @inject
          def use(self, clock: Clock): ...

Each injection marker kind is registered in :data:`MARKER_RESOLVERS` with a
function mapping the marker and the declared type of the annotated member to a
:data:`~beanbox.domain.ValueSpec`. The resolver only ever consumes that mapping;
new marker kinds can be added with :func:`marker_resolver`.
"""

import copy
import inspect
import types
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union, get_args, get_origin

from beanbox.constants import CONSTRUCTOR_ATTRIBUTE, MARKERS_ATTRIBUTE
from beanbox.descriptor import BeanDescriptor, to_descriptor
from beanbox.domain import BeanRef, Value, ValueSpec
from beanbox.errors import ResolutionError

__all__ = [
    "Inject",
    "inject",
    "mark",
    "constructor",
    "set_markers",
    "markers_of",
    "get_marker",
    "find_marker",
    "marker_resolver",
    "injection_source",
    "injection_marker",
    "MARKER_RESOLVERS",
]

MarkerResolver = Callable[[Any, Optional[Any]], ValueSpec]

MARKER_RESOLVERS: dict[type, MarkerResolver] = {}
"""Injection marker type to the function deciding where its value comes from."""


@dataclass(frozen=True)
class Inject:
    """Requests container-managed injection of a field, parameter or method.

    Attributes:
        target: What to inject: a descriptor, a descriptor subclass, a class, or
            (with ``constant``) a literal. None injects the declared type.
        constant: Inject ``target`` itself as a literal value.
        prototype: Resolve a fresh instance even when the target is a singleton.
    """

    target: Any = None
    constant: bool = False
    prototype: bool = False


def set_markers(target: Any, *markers) -> Any:
    """Attach ``markers`` to a class or function, after any it already carries."""
    existing = tuple(getattr(target, MARKERS_ATTRIBUTE, ()))
    setattr(target, MARKERS_ATTRIBUTE, existing + markers)
    return target


def mark(*markers) -> Callable:
    """Decorator attaching markers to a class or method.

    Example:
        >>> @mark(Transactional())
        ... class AccountService:
        ...     ...
    """

    def decorator(target: Any) -> Any:
        return set_markers(target, *markers)

    return decorator


def inject(func: Callable) -> Callable:
    """Mark a constructor or method for injection.

    Every parameter is resolved from its own ``Inject`` marker, or from its
    declared type when it has none.
    """
    return set_markers(func, Inject())


def constructor(func: Any) -> classmethod:
    """Declare a classmethod as an alternative constructor.

    Can be applied to a plain function (which becomes a classmethod) or on top
    of ``@classmethod``.
    """
    if isinstance(func, classmethod):
        setattr(func.__func__, CONSTRUCTOR_ATTRIBUTE, True)
        return func
    setattr(func, CONSTRUCTOR_ATTRIBUTE, True)
    return classmethod(func)


def markers_of(target: Any) -> tuple:
    return tuple(getattr(target, MARKERS_ATTRIBUTE, ()))


def find_marker(markers, marker_type: type) -> Optional[Any]:
    """The first marker of ``marker_type`` among ``markers``.

    A bare marker class (``Annotated[Clock, Inject]``) counts as a default instance.
    """
    for marker in markers:
        if marker is marker_type:
            return marker_type()
        if isinstance(marker, marker_type):
            return marker
    return None


def get_marker(member: Any, marker_type: type) -> Optional[Any]:
    """The first marker of ``marker_type`` stamped on a class or function."""
    return find_marker(markers_of(member), marker_type)


def marker_resolver(marker_type: type) -> Callable:
    """Register the function deciding the value source for ``marker_type``."""

    def decorator(func: MarkerResolver) -> MarkerResolver:
        MARKER_RESOLVERS[marker_type] = func
        return func

    return decorator


def injection_marker(markers) -> Optional[Any]:
    """The first registered injection marker among ``markers``, instantiated if given as a class."""
    for marker in markers:
        kind = _marker_kind(marker)
        if kind in MARKER_RESOLVERS:
            return kind() if marker is kind else marker
    return None


def injection_source(markers, declared_type: Optional[Any], default: Optional[Any] = None) -> Optional[ValueSpec]:
    """Decide where the value for an annotated member comes from.

    Args:
        markers: Markers found on the member.
        declared_type: The member's declared type, if annotated.
        default: Marker applied when none of ``markers`` is an injection marker.

    Returns:
        The value spec, or None when no injection marker applies.
    """
    marker = injection_marker(markers)
    if marker is None:
        marker = default
    if marker is None:
        return None
    return MARKER_RESOLVERS[type(marker)](marker, declared_type)


def _marker_kind(marker: Any) -> type:
    return marker if inspect.isclass(marker) else type(marker)


@marker_resolver(Inject)
def _inject_source(marker: Inject, declared_type: Optional[Any]) -> ValueSpec:
    if marker.constant:
        return Value(marker.target)

    target = marker.target if marker.target is not None else _concrete_type(declared_type)
    if target is None:
        raise ResolutionError("Inject marker has no target and the injected member has no declared type")
    if not (isinstance(target, BeanDescriptor) or inspect.isclass(target)):
        return Value(target)

    descriptor = to_descriptor(target)
    if marker.prototype:
        descriptor = copy.copy(descriptor).set_prototype()
    return BeanRef(descriptor)


def _concrete_type(declared_type: Optional[Any]) -> Optional[Any]:
    """Unwrap ``Optional[X]`` to ``X``."""
    if get_origin(declared_type) in (Union, types.UnionType):
        candidates = [arg for arg in get_args(declared_type) if arg is not type(None)]
        if len(candidates) == 1:
            return candidates[0]
    return declared_type
