"""The resolution engine: turning a bean descriptor into a ready bean.

Resolution runs in a fixed order. Structural construction always comes before
behavioural configuration, and singletons are cached (with their teardown hook)
before any injection runs:

1. literal descriptors return their value untouched;
2. the recursion depth is checked against the context's ceiling;
3. singletons are looked up in the context's cache;
4. a raw instance is created by the descriptor's ``create`` member, an
   interception proxy, a matched constructor, the zero-argument constructor or
   a marker-driven constructor, in that order of preference;
5. singletons are cached together with their pre-destroy hook;
6. marked fields and methods are injected;
7. the descriptor's ``config`` member is called;
8. properties and method injections are applied;
9. the post-construct hook runs.

Recursion depth is threaded explicitly through nested resolutions instead of
being kept per thread. Exceeding the ceiling is not an error: it is logged and
resolves to None, leaving the caller to decide whether that is fatal.
"""

import inspect
import logging
from typing import TYPE_CHECKING, Any, Optional, Sequence

from beanbox.advice import collect_advice
from beanbox.constants import CONFIG_METHOD, CREATE_METHOD, INJECTABLE_PARAMETER_COUNTS, SETTER_PREFIX
from beanbox.descriptor import BeanDescriptor, to_descriptor, to_value_spec
from beanbox.domain import BeanRef, InstanceFactory, Scope, StaticFactory, Value, ValueSpec
from beanbox.errors import NoSettableMemberError, ResolutionError
from beanbox.introspection import (
    Constructor,
    Member,
    callable_parameters,
    describe,
    describe_member,
    find_member,
    invoke,
    list_constructors,
    list_declared_fields,
    list_declared_methods,
    return_type,
)
from beanbox.markers import Inject, injection_marker, injection_source, markers_of
from beanbox.matcher import find_constructor, find_method, guess_argument_types
from beanbox.proxy import AdviceChain, create_intercepted_instance

if TYPE_CHECKING:
    from beanbox.context import BeanContext

__all__ = ["resolve", "resolve_spec", "resolve_arguments"]

logger = logging.getLogger(__name__)


def resolve(
    descriptor: BeanDescriptor,
    context: "BeanContext",
    scope: Optional[Scope] = None,
    depth: int = 0,
) -> Any:
    """Produce the bean described by ``descriptor`` in ``context``.

    Args:
        descriptor: The descriptor to resolve.
        context: The context holding singletons, hooks and advice registrations.
        scope: Overrides the descriptor's scope for this resolution only.
        depth: Number of resolutions already in progress on this call stack.

    Returns:
        The constructed and injected bean, or None when the recursion ceiling
        was exceeded or a custom ``create`` member returned None.

    Raises:
        ResolutionError: If the bean cannot be constructed, injected or configured.
    """
    if descriptor.is_literal:
        return descriptor.target

    depth += 1
    if depth > context.max_depth:
        logger.error(
            "Resolution depth exceeded %d while resolving %r, probably a circular dependency; resolving to None",
            context.max_depth,
            descriptor,
        )
        return None

    scope = scope or descriptor.scope
    if scope is Scope.SINGLETON:
        with context.lock:
            identity = descriptor.identity()
            if identity in context.singleton_cache:
                logger.debug("Returning cached singleton %s", identity)
                return context.singleton_cache[identity]
            instance, bean_type = _construct(descriptor, context, depth)
            if instance is not None:
                _register_singleton(descriptor, identity, instance, context)
    else:
        instance, bean_type = _construct(descriptor, context, depth)

    if instance is None:
        return None

    if not context.ignore_markers:
        _inject_marked_fields(bean_type, instance, context, depth)
        _inject_marked_methods(bean_type, instance, context, depth)
    _call_config(descriptor, instance)
    _inject_properties(descriptor, instance, context, depth)
    _inject_methods(descriptor, instance, context, depth)
    if descriptor.post_construct:
        invoke(_find_hook(instance, descriptor.post_construct))
    return instance


def resolve_spec(spec: ValueSpec, context: "BeanContext", depth: int = 0) -> Any:
    """Produce the value described by a property or argument spec."""
    if isinstance(spec, Value):
        return spec.value
    if isinstance(spec, BeanRef):
        return resolve(spec.descriptor, context, depth=depth)
    if isinstance(spec, StaticFactory):
        return _call_factory(spec.factory, spec, context, depth)
    if isinstance(spec, InstanceFactory):
        owner = resolve(spec.descriptor, context, depth=depth)
        return _call_factory(owner, spec, context, depth)
    raise ResolutionError(f"Unknown value source {spec!r}")


def resolve_arguments(args: Sequence[Any], context: "BeanContext", depth: int = 0) -> tuple:
    """Resolve configured arguments to the values passed to a constructor or method."""
    values = []
    for arg in args:
        values.append(resolve_spec(to_value_spec(arg), context, depth))
    return tuple(values)


def _construct(descriptor: BeanDescriptor, context: "BeanContext", depth: int) -> tuple[Any, Any]:
    """Create the raw instance and report the type it should be injected as."""
    create = _custom_factory(descriptor)
    if create is not None:
        instance = invoke(create)
        declared = return_type(create)
        logger.debug("Created %s with %s", describe(type(instance)), describe(create))
        return instance, declared if inspect.isclass(declared) else type(instance)

    target = descriptor.target
    if not inspect.isclass(target):
        raise ResolutionError(f"Cannot create a bean from {descriptor!r}: its target is neither a class nor a literal")

    sources = collect_advice(target, context.advice_bindings, context.advisors)
    chain = sources.map(lambda source: resolve(to_descriptor(source), context, depth=depth)) if sources else None
    if chain is not None and any(advice is None for advice in chain):
        raise ResolutionError(f"Advice for {describe(target)} resolved to None")

    constructor, args, kwargs = _select_constructor(descriptor, target, context, depth)
    instance = _instantiate(constructor, target, args, kwargs, chain)
    logger.debug("Created %s%s", describe(target), " behind an interception proxy" if chain else "")
    return instance, target


def _custom_factory(descriptor: BeanDescriptor) -> Optional[Any]:
    if getattr(type(descriptor), CREATE_METHOD, None) is None:
        return None
    create = getattr(descriptor, CREATE_METHOD)
    parameters, _ = callable_parameters(create)
    if any(parameter.required for parameter in parameters):
        return None
    return create


def _select_constructor(
    descriptor: BeanDescriptor, target: type, context: "BeanContext", depth: int
) -> tuple[Constructor, tuple, dict]:
    if descriptor.constructor_args is not None:
        arg_types = descriptor.constructor_arg_types or guess_argument_types(descriptor.constructor_args)
        constructor = find_constructor(target, arg_types)
        if constructor is None:
            raise ResolutionError(
                f"No public constructor of {describe(target)} accepts argument types {_type_names(arg_types)}"
            )
        return constructor, resolve_arguments(descriptor.constructor_args, context, depth), {}

    constructor = find_constructor(target, ())
    if constructor is not None:
        return constructor, (), {}

    if not context.ignore_markers:
        constructor = _marked_constructor(target)
        if constructor is not None:
            _check_parameter_count(constructor, target)
            default = injection_marker(markers_of(constructor.function))
            return constructor, (), _resolve_parameters(constructor, context, depth, default)

    raise ResolutionError(f"No available constructor found for {describe(target)}")


def _marked_constructor(target: type) -> Optional[Constructor]:
    for candidate in list_constructors(target):
        if injection_marker(markers_of(candidate.function)) is not None or any(
            injection_marker(parameter.markers) is not None for parameter in candidate.parameters
        ):
            return candidate
    return None


def _instantiate(
    constructor: Constructor, target: type, args: tuple, kwargs: dict, chain: Optional[AdviceChain]
) -> Any:
    try:
        if chain:
            return create_intercepted_instance(target, chain, constructor, args, kwargs)
        return constructor.instantiate(target, *args, **kwargs)
    except ResolutionError:
        raise
    except Exception as e:
        raise ResolutionError(
            f"Constructing {describe(target)} with {constructor.name} failed for args={args!r} kwargs={kwargs!r}: {e!r}"
        ) from e


def _register_singleton(
    descriptor: BeanDescriptor, identity: str, instance: Any, context: "BeanContext"
):
    context.singleton_cache[identity] = instance
    if descriptor.pre_destroy:
        context.pre_destroy_hooks[identity] = _find_hook(instance, descriptor.pre_destroy)
    logger.debug("Cached singleton %s", identity)


def _find_hook(instance: Any, name: str) -> Any:
    hook = find_member(instance, name)
    if hook is None:
        raise ResolutionError(f"Lifecycle member '{name}' not found on {describe(type(instance))}")
    return hook


def _check_parameter_count(member: Member, owner: type):
    count = len(member.parameters)
    if count not in INJECTABLE_PARAMETER_COUNTS:
        raise ResolutionError(
            f"Injected member {describe(owner)}.{member.name} has {count} parameters; "
            f"only {INJECTABLE_PARAMETER_COUNTS.start} to {INJECTABLE_PARAMETER_COUNTS.stop - 1} are supported"
        )


def _resolve_parameters(
    member: Member, context: "BeanContext", depth: int, default: Optional[Any] = None
) -> dict[str, Any]:
    """Resolve each parameter from its own marker, else from ``default``.

    Without a default, unmarked parameters are resolved by declared type when
    required and left to their default value otherwise.
    """
    kwargs = {}
    for parameter in member.parameters:
        fallback = default if default is not None else (Inject() if parameter.required else None)
        spec = injection_source(parameter.markers, parameter.declared_type, fallback)
        if spec is not None:
            kwargs[parameter.name] = resolve_spec(spec, context, depth)
    return kwargs


def _inject_marked_fields(bean_type: Any, instance: Any, context: "BeanContext", depth: int):
    if not inspect.isclass(bean_type):
        return
    for field in list_declared_fields(bean_type):
        spec = injection_source(field.markers, field.declared_type)
        if spec is None:
            continue
        value = resolve_spec(spec, context, depth)
        if value is not None:
            _assign(instance, field.name, value)


def _inject_marked_methods(bean_type: Any, instance: Any, context: "BeanContext", depth: int):
    if not inspect.isclass(bean_type):
        return
    for method in list_declared_methods(bean_type):
        default = injection_marker(markers_of(method.function))
        if default is None:
            continue
        member = describe_member(method.name, method.function, skip_first=not method.static)
        _check_parameter_count(member, bean_type)
        kwargs = _resolve_parameters(member, context, depth, default)
        invoke(getattr(instance, method.name), **kwargs)


def _call_config(descriptor: BeanDescriptor, instance: Any):
    try:
        config = getattr(descriptor, CONFIG_METHOD)
    except AttributeError:
        logger.debug("%r has no %s member", descriptor, CONFIG_METHOD)
        return
    invoke(config, instance)


def _inject_properties(descriptor: BeanDescriptor, instance: Any, context: "BeanContext", depth: int):
    for name, spec in descriptor.properties.items():
        setter = find_member(instance, SETTER_PREFIX + name)
        if setter is None and not _has_field(instance, name):
            raise NoSettableMemberError(
                f"No setter '{SETTER_PREFIX}{name}' or field '{name}' found on {describe(type(instance))} "
                f"for property '{name}' of {descriptor!r}; intercepted proxies only accept "
                "properties declared on the proxied class"
            )
        value = resolve_spec(spec, context, depth)
        if setter is not None:
            invoke(setter, value)
        else:
            _assign(instance, name, value)


def _inject_methods(descriptor: BeanDescriptor, instance: Any, context: "BeanContext", depth: int):
    for injection in descriptor.method_injections:
        arg_types = guess_argument_types(injection.args)
        method = find_method(instance, injection.member_name, arg_types)
        if method is None:
            raise ResolutionError(
                f"No method '{injection.member_name}' of {describe(type(instance))} "
                f"accepts argument types {_type_names(arg_types)}"
            )
        invoke(method, *resolve_arguments(injection.args, context, depth))


def _call_factory(owner: Any, spec, context: "BeanContext", depth: int) -> Any:
    arg_types = guess_argument_types(spec.args)
    method = find_method(owner, spec.member_name, arg_types)
    if method is None:
        raise ResolutionError(
            f"No member '{spec.member_name}' of {owner!r} accepts argument types {_type_names(arg_types)}"
        )
    return invoke(method, *resolve_arguments(spec.args, context, depth))


def _has_field(instance: Any, name: str) -> bool:
    if name in getattr(instance, "__dict__", {}):
        return True
    for klass in type(instance).__mro__:
        if name in inspect.get_annotations(klass):
            return True
        if name in klass.__dict__ and not inspect.isroutine(klass.__dict__[name]):
            return True
    return False


def _assign(instance: Any, name: str, value: Any):
    try:
        setattr(instance, name, value)
    except Exception as e:
        raise ResolutionError(f"Cannot assign '{name}' on {describe(type(instance))}: {e!r}") from e


def _type_names(types: Sequence[Any]) -> str:
    return "(" + ", ".join(getattr(t, "__name__", repr(t)) for t in types) + ")"
