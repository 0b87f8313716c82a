"""Beanbox inversion-of-control container.

Beanbox builds objects ("beans") from explicit, fluent descriptors. A descriptor
says what to construct and how to wire it: constructor arguments, named
properties, factory calls, lifecycle hooks and scope. The container resolves a
descriptor into a fully injected instance, caches singletons per context, and
can wrap beans in interception proxies that run advice around their methods.

Key Features:
    - Fluent, subclassable bean descriptors
    - Singleton and prototype scopes with pre-destroy hooks run on reset
    - Constructor matching by argument types, in declaration order
    - Property, field, method and marker-driven injection
    - Advice around public methods, bound by marker or by name pattern
    - A recursion ceiling that degrades instead of overflowing the stack

Basic Usage:
    >>> from beanbox.descriptor import BeanDescriptor
    >>> from beanbox.context import BeanContext
    >>>
    >>> context = BeanContext()
    >>> box = BeanDescriptor(Greeter).set_property("greeting", "hello")
    >>> greeter = context.get_bean(box)

The package consists of:
    - descriptor: Bean descriptors and value spec classification
    - resolver: The resolution engine
    - context: Singleton cache, teardown hooks and advice registrations
    - matcher: Constructor and factory method matching
    - markers: Declarative injection and advice markers
    - proxy / advice: Interception proxies and the decision to use them
    - api: Module-level entry points bound to the default context
    - errors: Framework-specific exceptions
"""
