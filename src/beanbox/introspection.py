"""Introspection of classes and callables for construction and injection.

Everything the resolver knows about a class comes from this module: its
constructors in declaration order, its declared methods and fields, and the
declared types and markers of their parameters. Markers are read from
``typing.Annotated`` metadata, so ``Annotated[Database, Inject()]`` declares a
``Database`` parameter carrying an ``Inject`` marker.

A Python class has a single ``__init__``. Alternative constructors are
classmethods flagged with :func:`beanbox.markers.constructor`; together with
``__init__`` they form the class's constructor list, in the order the class
body declares them.
"""

import inspect
from dataclasses import dataclass
from typing import (
    Annotated,
    Any,
    Callable,
    NamedTuple,
    Optional,
    get_args,
    get_origin,
    get_type_hints,
)

from beanbox.constants import CONSTRUCTOR_ATTRIBUTE
from beanbox.errors import ResolutionError

__all__ = [
    "Parameter",
    "Member",
    "Constructor",
    "DeclaredMethod",
    "Field",
    "split_annotation",
    "type_hints",
    "return_type",
    "callable_parameters",
    "describe_member",
    "list_constructors",
    "list_declared_methods",
    "list_declared_fields",
    "find_member",
    "invoke",
    "describe",
]


@dataclass(frozen=True)
class Parameter:
    """A single parameter of a constructor or method.

    Attributes:
        name: The parameter name.
        declared_type: The annotated type with any ``Annotated`` wrapper removed,
            or None when the parameter is unannotated.
        markers: The ``Annotated`` metadata attached to the annotation.
        required: True when the parameter has no default value.
        positional: True when the parameter can be passed positionally.
    """

    name: str
    declared_type: Optional[Any]
    markers: tuple
    required: bool
    positional: bool


@dataclass(frozen=True)
class Member:
    """A callable member together with the parameters it accepts.

    Attributes:
        name: The member name.
        function: The underlying function, used to read markers.
        parameters: Named parameters, excluding ``self``/``cls`` and ``*args``/``**kwargs``.
        variadic: True when the member also accepts ``*args``.
    """

    name: str
    function: Callable
    parameters: tuple
    variadic: bool = False

    def accepts(self, count: int) -> bool:
        """Whether ``count`` positional arguments satisfy this member's signature."""
        if any(p.required and not p.positional for p in self.parameters):
            return False
        positional = [p for p in self.parameters if p.positional]
        required = [p for p in positional if p.required]
        return len(required) <= count and (count <= len(positional) or self.variadic)


@dataclass(frozen=True)
class Constructor(Member):
    """A way of creating instances of a class: ``__init__`` or a flagged classmethod."""

    def instantiate(self, cls: type, *args, **kwargs) -> Any:
        """Create an instance of ``cls`` (or of a subclass such as a proxy) with this constructor."""
        if self.name == "__init__":
            return cls(*args, **kwargs)
        return getattr(cls, self.name)(*args, **kwargs)


class DeclaredMethod(NamedTuple):
    name: str
    function: Callable
    static: bool


@dataclass(frozen=True)
class Field:
    """An annotated attribute declared in a class body."""

    name: str
    declared_type: Optional[Any]
    markers: tuple


def split_annotation(annotation: Any) -> tuple[Optional[Any], tuple]:
    """Separate a type annotation into its base type and its ``Annotated`` metadata.

    Example:
        >>> split_annotation(Annotated[Database, Inject()])  # (Database, (Inject(),))
        >>> split_annotation(Database)                        # (Database, ())
    """
    if get_origin(annotation) is Annotated:
        base_type, *metadata = get_args(annotation)
        return base_type, tuple(metadata)
    return annotation, ()


def type_hints(obj: Any) -> dict[str, Any]:
    """Evaluated type hints of a class or callable, keeping ``Annotated`` metadata.

    Raises:
        ResolutionError: If an annotation refers to a name that cannot be resolved.
    """
    try:
        return get_type_hints(obj, include_extras=True)
    except TypeError:
        # builtins and other objects without annotations
        return {}
    except NameError as e:
        raise ResolutionError(f"Cannot evaluate type hints of {describe(obj)}: {e}") from e


def return_type(func: Callable) -> Optional[Any]:
    """The declared return type of ``func``, or None when it is not annotated."""
    return split_annotation(type_hints(func).get("return"))[0]


def callable_parameters(func: Callable, skip_first: bool = False) -> tuple[tuple, bool]:
    """Describe the parameters of ``func``.

    Args:
        func: The function or bound method to inspect.
        skip_first: Drop the first parameter (``self`` or ``cls`` of a plain function).

    Returns:
        The :class:`Parameter` tuple and whether ``func`` accepts ``*args``.
        Callables whose signature cannot be read are reported as variadic with
        no named parameters.
    """
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return (), True

    hints = type_hints(func)
    parameters = []
    variadic = False
    for index, param in enumerate(signature.parameters.values()):
        if skip_first and index == 0:
            continue
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            variadic = True
            continue
        if param.kind is inspect.Parameter.VAR_KEYWORD:
            continue
        declared_type, markers = split_annotation(hints.get(param.name))
        parameters.append(
            Parameter(
                param.name,
                declared_type,
                markers,
                param.default is inspect.Parameter.empty,
                param.kind is not inspect.Parameter.KEYWORD_ONLY,
            )
        )
    return tuple(parameters), variadic


def describe_member(name: str, func: Callable, skip_first: bool = True) -> Member:
    parameters, variadic = callable_parameters(func, skip_first)
    return Member(name, func, parameters, variadic)


def list_constructors(cls: type) -> list[Constructor]:
    """Public constructors of ``cls`` in declaration order.

    An inherited ``__init__`` comes first; a class's own ``__init__`` takes its
    place in the class body among the flagged classmethods.
    """
    constructors = []
    if "__init__" not in cls.__dict__:
        constructors.append(_init_constructor(cls))
    for name, attribute in cls.__dict__.items():
        if name == "__init__":
            constructors.append(_init_constructor(cls))
        elif (
            isinstance(attribute, classmethod)
            and not name.startswith("_")
            and getattr(attribute.__func__, CONSTRUCTOR_ATTRIBUTE, False)
        ):
            parameters, variadic = callable_parameters(attribute.__func__, skip_first=True)
            constructors.append(Constructor(name, attribute.__func__, parameters, variadic))
    return constructors


def _init_constructor(cls: type) -> Constructor:
    init = cls.__init__
    if init is object.__init__:
        return Constructor("__init__", init, ())
    parameters, variadic = callable_parameters(init, skip_first=True)
    return Constructor("__init__", init, parameters, variadic)


def list_declared_methods(cls: type) -> list[DeclaredMethod]:
    """Functions declared in the body of ``cls`` itself, excluding constructors and dunder methods."""
    methods = []
    for name, attribute in cls.__dict__.items():
        static = isinstance(attribute, staticmethod)
        function = attribute.__func__ if isinstance(attribute, (staticmethod, classmethod)) else attribute
        if (
            (name.startswith("__") and name.endswith("__"))
            or not inspect.isfunction(function)
            or getattr(function, CONSTRUCTOR_ATTRIBUTE, False)
        ):
            continue
        methods.append(DeclaredMethod(name, function, static))
    return methods


def list_declared_fields(cls: type) -> list[Field]:
    """Attributes annotated in the body of ``cls`` itself, in declaration order."""
    own = inspect.get_annotations(cls)
    if not own:
        return []
    hints = type_hints(cls)
    fields = []
    for name in own:
        declared_type, markers = split_annotation(hints.get(name))
        fields.append(Field(name, declared_type, markers))
    return fields


def find_member(owner: Any, name: str) -> Optional[Callable]:
    """The callable attribute ``name`` of a class, module or instance, if there is one."""
    member = getattr(owner, name, None)
    return member if callable(member) else None


def invoke(member: Callable, *args, **kwargs) -> Any:
    """Call ``member``, re-raising any failure as a :class:`ResolutionError`."""
    try:
        return member(*args, **kwargs)
    except ResolutionError:
        raise
    except Exception as e:
        raise ResolutionError(
            f"Invoking {describe(member)} failed with args={args!r} kwargs={kwargs!r}: {e!r}"
        ) from e


def describe(obj: Any) -> str:
    module = getattr(obj, "__module__", None)
    qualname = getattr(obj, "__qualname__", None)
    if qualname is None:
        return repr(obj)
    return f"{module}.{qualname}" if module else qualname
