"""Domain models used throughout the container."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class Scope(Enum):
    """How many instances a descriptor produces within one context."""

    SINGLETON = "singleton"
    PROTOTYPE = "prototype"


@dataclass(frozen=True)
class Value:
    """A ready-made value injected as is.

    Attributes:
        value: The value to inject.
    """

    value: Any


@dataclass(frozen=True)
class BeanRef:
    """A reference to another descriptor, resolved in the current context.

    Attributes:
        descriptor: The :class:`~beanbox.descriptor.BeanDescriptor` to resolve.
    """

    descriptor: Any


@dataclass(frozen=True)
class StaticFactory:
    """The result of calling a member of a class (or module) with resolved arguments.

    Attributes:
        factory: The class, module or other object owning the member.
        member_name: Name of the static or class method to call.
        args: Arguments, classified and resolved like constructor arguments.
    """

    factory: Any
    member_name: str
    args: tuple = ()


@dataclass(frozen=True)
class InstanceFactory:
    """The result of calling a member of another bean with resolved arguments.

    Attributes:
        descriptor: Descriptor of the bean owning the member.
        member_name: Name of the method to call on the resolved bean.
        args: Arguments, classified and resolved like constructor arguments.
    """

    descriptor: Any
    member_name: str
    args: tuple = ()


ValueSpec = Union[Value, BeanRef, StaticFactory, InstanceFactory]
"""The source of one injected value."""

VALUE_SPEC_TYPES = (Value, BeanRef, StaticFactory, InstanceFactory)


@dataclass(frozen=True)
class MethodInjection:
    """A method invoked once on a new bean with resolved arguments.

    Attributes:
        member_name: Name of the method.
        args: Arguments, classified and resolved like constructor arguments.
    """

    member_name: str
    args: tuple
