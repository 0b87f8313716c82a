"""Module-level entry points bound to a process-wide default context.

Most applications need a single context. These functions operate on it, or on
an explicitly given one::

    from beanbox import api

    api.init(ignore_markers=True)
    service = api.get_bean(ServiceBox)
    api.reset()
"""

from typing import Any, Optional

from beanbox.context import BeanContext

__all__ = [
    "default_context",
    "init",
    "get_bean",
    "get_prototype_bean",
    "get_singleton_bean",
    "register_advice",
    "add_advisor",
    "reset",
]

_default_context = BeanContext()


def default_context() -> BeanContext:
    return _default_context


def init(**config) -> BeanContext:
    """Reset the default context and replace it with one built from ``config``.

    Args:
        **config: Keyword arguments accepted by :class:`BeanContext`.

    Returns:
        The new default context.
    """
    global _default_context
    _default_context.reset()
    _default_context = BeanContext(**config)
    return _default_context


def _context(context: Optional[BeanContext]) -> BeanContext:
    return context if context is not None else _default_context


def get_bean(target: Any, context: Optional[BeanContext] = None) -> Any:
    return _context(context).get_bean(target)


def get_prototype_bean(target: Any, context: Optional[BeanContext] = None) -> Any:
    return _context(context).get_prototype_bean(target)


def get_singleton_bean(target: Any, context: Optional[BeanContext] = None) -> Any:
    return _context(context).get_singleton_bean(target)


def register_advice(marker_type: type, advice: Optional[Any] = None) -> BeanContext:
    return _default_context.register_advice(marker_type, advice)


def add_advisor(advice: Any, type_pattern: str = "*", method_pattern: str = "*") -> BeanContext:
    return _default_context.add_advisor(advice, type_pattern, method_pattern)


def reset():
    """Tear down the default context's singletons."""
    _default_context.reset()
