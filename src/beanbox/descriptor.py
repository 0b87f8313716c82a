"""Bean descriptors: fluent templates describing how to produce one bean.

A descriptor is configured either fluently::

    box = (
        BeanDescriptor(Service)
        .set_property("repository", RepositoryBox)
        .set_post_construct("start")
        .set_pre_destroy("stop")
    )

or by subclassing, where class attributes act as defaults and two optional
members customise construction::

    class ServiceBox(BeanDescriptor):
        target = Service
        scope = Scope.PROTOTYPE

        def create(self) -> Service:      # custom factory, replaces construction
            return Service(url="sqlite://")

        def config(self, service):        # called with every new bean
            service.timeout = 5

A descriptor must not be changed once it has been resolved.
"""

import inspect
from typing import Any, Optional

from beanbox.constants import CREATE_METHOD
from beanbox.domain import (
    VALUE_SPEC_TYPES,
    BeanRef,
    InstanceFactory,
    MethodInjection,
    Scope,
    StaticFactory,
    Value,
    ValueSpec,
)
from beanbox.errors import ResolutionError
from beanbox.introspection import describe, return_type

__all__ = ["BeanDescriptor", "to_descriptor", "to_value_spec", "render_arguments"]


class BeanDescriptor:
    """Describes how to produce one bean.

    Attributes:
        target: The class to construct, or a ready-made literal value.
        literal: Forces (True) or suppresses (False) literal handling of ``target``.
            None means a non-class target is a literal.
        scope: Singleton (default) or prototype.
        constructor_args: Arguments used to select and call a constructor.
        constructor_arg_types: Explicit argument types for constructor selection.
        properties: Property name to :data:`~beanbox.domain.ValueSpec`.
        method_injections: Methods called once with resolved arguments after
            property injection.
        post_construct: Name of a zero-argument member called on each new bean.
        pre_destroy: Name of a zero-argument member called on reset, singletons only.
    """

    target: Any = None
    literal: Optional[bool] = None
    scope: Scope = Scope.SINGLETON
    constructor_args: Optional[tuple] = None
    constructor_arg_types: Optional[tuple] = None
    post_construct: Optional[str] = None
    pre_destroy: Optional[str] = None

    def __init__(self, target: Any = None, *constructor_args):
        self.properties: dict[str, ValueSpec] = {}
        self.method_injections: list[MethodInjection] = []
        if target is not None:
            self.set_target(target)
        if constructor_args:
            self.constructor_args = constructor_args

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.target!r})"

    @property
    def is_literal(self) -> bool:
        if self.literal is not None:
            return self.literal
        return self.target is not None and not inspect.isclass(self.target)

    def set_target(self, target: Any) -> "BeanDescriptor":
        """Set the class to construct or, for anything but a class, the literal value."""
        self.target = target
        self.literal = None
        return self

    def set_literal(self, literal: bool = True) -> "BeanDescriptor":
        """Treat the target as a ready-made value, even when it is a class."""
        self.literal = literal
        return self

    def set_scope(self, scope: Scope) -> "BeanDescriptor":
        self.scope = scope
        return self

    def set_prototype(self, prototype: bool = True) -> "BeanDescriptor":
        """Produce a new bean on every resolution (or, with False, a shared singleton)."""
        self.scope = Scope.PROTOTYPE if prototype else Scope.SINGLETON
        return self

    def set_constructor(self, target: type, *args) -> "BeanDescriptor":
        """Construct ``target`` with the constructor matching ``args``."""
        self.set_target(target)
        self.constructor_args = args
        return self

    def set_constructor_args(self, *args) -> "BeanDescriptor":
        self.constructor_args = args
        return self

    def set_constructor_types(self, *types) -> "BeanDescriptor":
        """Give the argument types explicitly when they cannot be guessed from the arguments."""
        self.constructor_arg_types = types
        return self

    def set_property(self, name: str, value: Any) -> "BeanDescriptor":
        """Inject ``value`` into the property ``name``.

        The value is classified by :func:`to_value_spec`: descriptors and classes
        become bean references, value specs are kept, anything else is injected
        as is. Wrap a class in :class:`~beanbox.domain.Value` to inject the
        class itself.
        """
        self.properties[name] = to_value_spec(value)
        return self

    def set_static_factory(self, name: str, factory: Any, member_name: str, *args) -> "BeanDescriptor":
        """Inject the result of ``factory.member_name(*args)`` into the property ``name``."""
        self.properties[name] = StaticFactory(factory, member_name, args)
        return self

    def set_bean_factory(self, name: str, descriptor: Any, member_name: str, *args) -> "BeanDescriptor":
        """Inject the result of calling ``member_name(*args)`` on another bean."""
        self.properties[name] = InstanceFactory(to_descriptor(descriptor), member_name, args)
        return self

    def inject_method(self, member_name: str, *args) -> "BeanDescriptor":
        """Call ``member_name`` once on each new bean with the resolved ``args``."""
        self.method_injections.append(MethodInjection(member_name, args))
        return self

    def set_post_construct(self, member_name: Optional[str]) -> "BeanDescriptor":
        self.post_construct = member_name
        return self

    def set_pre_destroy(self, member_name: Optional[str]) -> "BeanDescriptor":
        self.pre_destroy = member_name
        return self

    def identity(self, enclosing: frozenset = frozenset()) -> str:
        """The key of this descriptor's singleton in a context's cache.

        Descriptor subclasses are identified by their qualified name. A plain
        descriptor is identified by its target class plus its constructor
        arguments, so two plain descriptors for the same class share a singleton.
        A descriptor nested in its own constructor arguments is rendered by its
        target and object id instead of recursively.

        Args:
            enclosing: Ids of the descriptors whose identities are being rendered
                around this one.

        Raises:
            ResolutionError: If a plain descriptor's target is not a class.
        """
        descriptor_type = type(self)
        if descriptor_type is not BeanDescriptor:
            return describe(descriptor_type)
        if not inspect.isclass(self.target):
            raise ResolutionError(
                f"Cannot determine the identity of a descriptor whose target {self.target!r} is not a class"
            )
        if self.constructor_args is None:
            return describe(self.target)
        return describe(self.target) + render_arguments(self.constructor_args, enclosing | {id(self)})

    def produced_type(self) -> Any:
        """The type of the bean this descriptor produces, as far as it can be known up front."""
        create = getattr(type(self), CREATE_METHOD, None)
        if create is not None:
            declared = return_type(create)
            if declared is not None:
                return declared
        if self.is_literal:
            return type(self.target)
        return self.target if self.target is not None else object


def to_descriptor(obj: Any) -> BeanDescriptor:
    """Coerce a descriptor, descriptor subclass, class or value into a descriptor."""
    if isinstance(obj, BeanDescriptor):
        return obj
    if inspect.isclass(obj):
        return obj() if issubclass(obj, BeanDescriptor) else BeanDescriptor(obj)
    return BeanDescriptor().set_target(obj).set_literal()


def to_value_spec(obj: Any) -> ValueSpec:
    """Classify a configured value into the source it will be injected from.

    Example:
        >>> to_value_spec(Value(Foo))        # Value(Foo), kept as is
        >>> to_value_spec(FooBox)            # BeanRef(FooBox())
        >>> to_value_spec(Foo)               # BeanRef(BeanDescriptor(Foo))
        >>> to_value_spec("hello")           # Value("hello")
    """
    if isinstance(obj, VALUE_SPEC_TYPES):
        return obj
    if isinstance(obj, BeanDescriptor) or inspect.isclass(obj):
        return BeanRef(to_descriptor(obj))
    return Value(obj)


def render_arguments(args: tuple, enclosing: frozenset = frozenset()) -> str:
    """Render constructor arguments stably, for use in a singleton identity.

    Args:
        args: The constructor arguments.
        enclosing: Ids of the descriptors whose identity is being rendered.
    """
    return "(" + ", ".join(_render_argument(arg, enclosing) for arg in args) + ")"


def _render_argument(arg: Any, enclosing: frozenset) -> str:
    spec = to_value_spec(arg)
    if isinstance(spec, BeanRef):
        descriptor = spec.descriptor
        if descriptor.is_literal:
            return repr(descriptor.target)
        if id(descriptor) in enclosing:
            return f"<{describe(descriptor.target)}@{id(descriptor):x}>"
        return f"<{descriptor.identity(enclosing)}>"
    if isinstance(spec, Value):
        return repr(spec.value)
    return repr(spec)
