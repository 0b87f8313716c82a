"""Interception proxies: subclasses whose public methods run through advice.

An intercepted instance is an instance of a subclass synthesised from the
target class. Each public method with advice is overridden by a wrapper that
packages the call into an :class:`Invocation` and hands it to the first piece of
advice. Advice either has an ``invoke(invocation)`` method or is itself a
callable taking the invocation; calling ``invocation.proceed()`` moves to the
next piece of advice and finally to the real method::

    class Timing:
        def invoke(self, invocation):
            started = time.monotonic()
            try:
                return invocation.proceed()
            finally:
                print(invocation.name, time.monotonic() - started)

Because the proxy subclasses the target, it passes ``isinstance`` checks and
keeps the target's attributes and non-public methods untouched. One proxy class
is synthesised per target and set of advised methods; the advice itself lives
on each instance.
"""

import functools
import inspect
import threading
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable, Iterator, Optional

from beanbox.constants import ADVICE_ATTRIBUTE

__all__ = [
    "Invocation",
    "AdviceChain",
    "public_methods",
    "synthesize_proxy_class",
    "proxy_class_for",
    "create_intercepted_instance",
]


@dataclass(frozen=True)
class Invocation:
    """A single intercepted method call.

    Attributes:
        target: The proxied instance.
        name: The method name.
        method: The real, unbound implementation.
        args: Positional arguments of the call.
        kwargs: Keyword arguments of the call.
        advice: The advice still to run, in order.
    """

    target: Any
    name: str
    method: Callable
    args: tuple
    kwargs: dict
    advice: tuple = ()

    def proceed(self) -> Any:
        """Run the next piece of advice, or the real method once all have run."""
        if not self.advice:
            return self.method(self.target, *self.args, **self.kwargs)
        current, rest = self.advice[0], self.advice[1:]
        following = replace(self, advice=rest)
        handler = getattr(current, "invoke", None)
        if callable(handler):
            return handler(following)
        return current(following)


@dataclass
class AdviceChain:
    """The advice applying to each method of one class.

    Attributes:
        type_advice: Advice applying to every public method.
        method_advice: Extra advice for individual methods, run after the type advice.
    """

    type_advice: list = field(default_factory=list)
    method_advice: dict[str, list] = field(default_factory=dict)

    def for_method(self, name: str) -> tuple:
        return tuple(self.type_advice) + tuple(self.method_advice.get(name, ()))

    def add(self, advice: Any, method_name: Optional[str] = None):
        if method_name is None:
            self.type_advice.append(advice)
        else:
            self.method_advice.setdefault(method_name, []).append(advice)

    def map(self, func: Callable[[Any], Any]) -> "AdviceChain":
        """A chain with every piece of advice replaced by ``func(advice)``."""
        return AdviceChain(
            [func(advice) for advice in self.type_advice],
            {name: [func(advice) for advice in advice_list] for name, advice_list in self.method_advice.items()},
        )

    def __bool__(self) -> bool:
        return bool(self.type_advice) or any(self.method_advice.values())

    def __iter__(self) -> Iterator[Any]:
        yield from self.type_advice
        for advice_list in self.method_advice.values():
            yield from advice_list


_proxy_classes: dict[tuple[type, tuple], type] = {}
_proxy_classes_lock = threading.Lock()


def public_methods(cls: type) -> dict[str, Callable]:
    """Public instance methods of ``cls`` and its bases, most derived definition winning."""
    methods = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name, attribute in klass.__dict__.items():
            if name.startswith("_"):
                continue
            if inspect.isfunction(attribute):
                methods[name] = attribute
            else:
                methods.pop(name, None)
    return methods


def _intercepting(name: str, method: Callable) -> Callable:
    @functools.wraps(method)
    def intercepted(self, *args, **kwargs):
        chain = vars(self).get(ADVICE_ATTRIBUTE)
        if chain is None:
            # still constructing
            return method(self, *args, **kwargs)
        return Invocation(self, name, method, args, kwargs, chain.for_method(name)).proceed()

    return intercepted


def synthesize_proxy_class(cls: type, method_names: Iterable[str]) -> type:
    """Create a subclass of ``cls`` routing the named public methods through each instance's advice."""
    namespace = {"__module__": cls.__module__, "__beanbox_target__": cls}
    methods = public_methods(cls)
    for name in method_names:
        namespace[name] = _intercepting(name, methods[name])
    return type(f"{cls.__name__}Proxy", (cls,), namespace)


def proxy_class_for(cls: type, chain: AdviceChain) -> type:
    """The proxy class of ``cls`` for the methods ``chain`` advises, synthesised once per method set."""
    advised = tuple(name for name in public_methods(cls) if chain.for_method(name))
    key = (cls, advised)
    with _proxy_classes_lock:
        proxy_class = _proxy_classes.get(key)
        if proxy_class is None:
            proxy_class = _proxy_classes[key] = synthesize_proxy_class(cls, advised)
    return proxy_class


def create_intercepted_instance(
    cls: type,
    chain: AdviceChain,
    constructor: Optional[Any] = None,
    args: tuple = (),
    kwargs: Optional[dict] = None,
) -> Any:
    """Create an instance of ``cls`` whose advised methods run through ``chain``.

    Methods called by the constructor itself run without advice.

    Args:
        cls: The class to proxy.
        chain: The advice for each method.
        constructor: The :class:`~beanbox.introspection.Constructor` to create the
            instance with; ``__init__`` when None.
        args: Positional constructor arguments, already resolved.
        kwargs: Keyword constructor arguments, already resolved.

    Returns:
        An instance of a synthesised subclass of ``cls``.
    """
    proxy_class = proxy_class_for(cls, chain)
    if constructor is None:
        instance = proxy_class(*args, **(kwargs or {}))
    else:
        instance = constructor.instantiate(proxy_class, *args, **(kwargs or {}))
    vars(instance)[ADVICE_ATTRIBUTE] = chain
    return instance
