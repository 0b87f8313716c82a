"""Selection of constructors and factory methods by argument types.

Argument types are guessed from configured arguments before anything is
resolved, then compared structurally with declared parameter types. The first
constructor (in declaration order) whose parameters all accept the guessed
types wins; there is no ranking beyond declaration order. Finding nothing is
not an error here: callers decide how to proceed.
"""

import inspect
import types
from typing import Any, Optional, Sequence, Union, get_args, get_origin

from beanbox.descriptor import to_descriptor, to_value_spec
from beanbox.domain import BeanRef, InstanceFactory, StaticFactory, Value
from beanbox.introspection import (
    Constructor,
    Member,
    callable_parameters,
    find_member,
    list_constructors,
    return_type,
)

__all__ = [
    "guess_argument_types",
    "is_assignable",
    "find_constructor",
    "find_method",
]

_NUMERIC_PROMOTIONS = {float: (int,), complex: (int, float)}


def guess_argument_types(args: Sequence[Any]) -> tuple:
    """Guess the type each configured argument will have once resolved.

    Example:
        >>> guess_argument_types([2, Value(Foo), FooBox, Foo])
        >>> # (int, type, <type produced by FooBox>, Foo)
    """
    return tuple(_guess_type(to_value_spec(arg)) for arg in args)


def _guess_type(spec) -> Any:
    if isinstance(spec, Value):
        return type(spec.value)
    if isinstance(spec, BeanRef):
        return spec.descriptor.produced_type()
    if isinstance(spec, StaticFactory):
        return _declared_result(find_member(spec.factory, spec.member_name))
    if isinstance(spec, InstanceFactory):
        owner = to_descriptor(spec.descriptor).produced_type()
        return _declared_result(find_member(owner, spec.member_name))
    return object


def _declared_result(member) -> Any:
    if member is None:
        return object
    declared = return_type(member)
    return declared if declared is not None else object


def is_assignable(param_type: Any, arg_type: Any) -> bool:
    """Whether a value of ``arg_type`` may be passed to a parameter declared as ``param_type``.

    Example:
        >>> is_assignable(Optional[Printer], MockPrinter)  # True
        >>> is_assignable(float, int)                      # True
        >>> is_assignable(str, int)                        # False
    """
    if param_type is None or param_type is Any or param_type is object:
        return True
    if arg_type is Any:
        return True

    origin = get_origin(param_type)
    if origin in (Union, types.UnionType):
        return any(is_assignable(member, arg_type) for member in get_args(param_type))
    if origin is not None:
        param_type = origin

    if not inspect.isclass(param_type) or not inspect.isclass(arg_type):
        return param_type == arg_type
    if arg_type in _NUMERIC_PROMOTIONS.get(param_type, ()):
        return True
    try:
        return issubclass(arg_type, param_type)
    except TypeError:
        # protocols that are not runtime checkable
        return False


def _accepts(member: Member, arg_types: Sequence[Any]) -> bool:
    if not member.accepts(len(arg_types)):
        return False
    positional = [p for p in member.parameters if p.positional]
    return all(
        is_assignable(parameter.declared_type, arg_type)
        for parameter, arg_type in zip(positional, arg_types)
    )


def find_constructor(cls: type, arg_types: Sequence[Any]) -> Optional[Constructor]:
    """The first public constructor of ``cls`` accepting ``arg_types``, or None."""
    for candidate in list_constructors(cls):
        if _accepts(candidate, arg_types):
            return candidate
    return None


def find_method(owner: Any, name: str, arg_types: Sequence[Any]) -> Optional[Any]:
    """The callable ``name`` on ``owner`` if its signature accepts ``arg_types``, or None.

    Args:
        owner: A class (for static and class methods), a module or an instance.
        name: The member name.
        arg_types: Guessed types of the arguments it will be called with.
    """
    member = find_member(owner, name)
    if member is None:
        return None
    parameters, variadic = callable_parameters(member)
    if not _accepts(Member(name, member, parameters, variadic), arg_types):
        return None
    return member
