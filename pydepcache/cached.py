# PyDepCache: Python library for dependency-aware memoization
#
# Copyright 2023 Mirko Hahn
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
'''
Cached methods.

A cached method is evaluated at most once per instance until one of its
declared dependencies changes. Coroutine functions are the primary use
case: concurrent calls on the same instance share a single running
computation. Plain functions are supported as well and are evaluated
synchronously.
'''

import asyncio
import functools
import inspect
import logging
from typing import Any, Callable, Generic, Optional, TypeVar, Union, cast

from .dependency import notify_property_update
from .errors import ConfigurationError, DependencyCycleError
from .graph import ClassDescriptor, class_descriptor, register_dependency
from .state import CacheInfo, InstanceState, cache_info, is_dirty, state_of
from .tracked import tracked
from .util.timing import stopwatch


__all__ = [
    'BoundCachedMethod',
    'CachedMethod',
    'cached',
]


R = TypeVar('R')
Dependency = Union[str, tracked, property, functools.cached_property,
                   'CachedMethod']


logger = logging.getLogger(__name__)


_waiting: dict['asyncio.Task[Any]', 'asyncio.Future[Any]'] = {}
'''Computation each suspended caller task is waiting for.'''

_SYNC_IN_PROGRESS = object()
'''In-flight marker of a running synchronous computation.'''


def _waits_for(fut: Optional['asyncio.Future[Any]'],
               task: Optional['asyncio.Task[Any]']) -> bool:
    '''Check whether `fut` transitively waits for `task` to finish.'''
    seen = set()
    while fut is not None and fut not in seen:
        if fut is task:
            return True
        seen.add(fut)
        fut = _waiting.get(fut)
    return False


def _is_dependency(dep: Any) -> bool:
    return isinstance(dep, (str, tracked, property, functools.cached_property,
                            CachedMethod))


def _dep_name(owner: type, dep: Dependency) -> str:
    '''Resolve a dependency to the attribute name it is bound to.'''
    if isinstance(dep, str):
        return dep
    for klass in owner.__mro__:
        for attr, val in vars(klass).items():
            if val is dep:
                return attr
    if isinstance(dep, (tracked, CachedMethod)) and dep.name is not None:
        return dep.name
    if isinstance(dep, property):
        for func in (dep.fget, dep.fset, dep.fdel):
            if func is not None:
                return func.__name__
    elif isinstance(dep, functools.cached_property):
        return dep.attrname or dep.func.__name__
    raise ConfigurationError(f'cannot resolve dependency {dep!r} of '
                             f'{owner.__qualname__}')


class CachedMethod(Generic[R]):
    '''
    Descriptor that memoizes a method per instance.

    Instances are created by the `cached` decorator. Accessing the
    attribute on an object yields a `BoundCachedMethod`.

    Attributes
    ----------
    func : Callable
        Underlying computation.
    dependencies : tuple
        Declared dependencies, as given to `cached`.
    name : str
        Attribute name of the method.
    owner : type, optional
        Class the method was declared on.
    is_async : bool
        Whether `func` is a coroutine function.
    '''
    func: Callable[[Any], Any]
    dependencies: tuple[Dependency, ...]
    name: str
    owner: Optional[type]
    is_async: bool

    def __init__(self, func: Callable[[Any], Any],
                 dependencies: tuple[Dependency, ...] = ()):
        if (
            isinstance(func, (property, staticmethod, classmethod,
                              functools.cached_property))
            or not callable(func)
        ):
            raise ConfigurationError(
                f'cached method must be a function, not '
                f'{type(func).__name__}'
            )
        self.func = func
        self.dependencies = dependencies
        self.name = getattr(func, '__name__', repr(func))
        self.owner = None
        self.is_async = inspect.iscoroutinefunction(inspect.unwrap(func))
        functools.update_wrapper(self, func)

    def __set_name__(self, owner: type, name: str) -> None:
        self.owner = owner
        self.name = name
        desc = cast(ClassDescriptor, class_descriptor(owner))
        for dep in self.dependencies:
            register_dependency(desc, _dep_name(owner, dep), name)

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return BoundCachedMethod(self, instance)

    def invoke(self, obj: Any) -> Any:
        '''
        Return the cached value or compute it.

        For coroutine functions, this returns an awaitable.
        '''
        if self.is_async:
            return self._invoke_async(obj)
        return self._invoke_sync(obj)

    def _log_duration(self, obj: Any) -> Callable[[int], None]:
        def callback(ns: int) -> None:
            logger.debug('evaluated %s on %#x in %.3f ms', self.name,
                         id(obj), ns / 1e6)
        return callback

    def _finish(self, obj: Any, state: InstanceState, generation: int,
                value: Any) -> None:
        clean = state.generation[self.name] == generation
        state.store(self.name, value, clean)
        if not clean:
            logger.debug('%s on %#x was invalidated during evaluation',
                         self.name, id(obj))

    def _invoke_sync(self, obj: Any) -> Any:
        name = self.name
        state = state_of(obj)
        stats = state.method_stats(name)
        if name in state.in_flight:
            raise DependencyCycleError(f'{name} called during its own '
                                       'evaluation')
        if state.is_valid(name):
            stats.hits += 1
            return state.cache[name]

        stats.misses += 1
        generation = state.generation[name]
        state.in_flight[name] = _SYNC_IN_PROGRESS
        try:
            with stopwatch(self._log_duration(obj)):
                value = self.func(obj)
            if inspect.isawaitable(value):
                if inspect.iscoroutine(value):
                    value.close()
                raise ConfigurationError(
                    f'{name} returned an awaitable from a function that is '
                    'not a coroutine function'
                )
        except Exception:
            stats.failures += 1
            logger.debug('evaluation of %s on %#x failed', name, id(obj),
                         exc_info=True)
            raise
        finally:
            del state.in_flight[name]
        self._finish(obj, state, generation, value)
        return value

    async def _invoke_async(self, obj: Any) -> Any:
        name = self.name
        state = state_of(obj)
        stats = state.method_stats(name)
        pending = state.in_flight.get(name)
        if pending is not None:
            if _waits_for(pending, asyncio.current_task()):
                raise DependencyCycleError(f'{name} called during its own '
                                           'evaluation')
            stats.joins += 1
            return await self._wait(pending)
        if state.is_valid(name):
            stats.hits += 1
            return state.cache[name]

        stats.misses += 1
        task = asyncio.ensure_future(self._compute(obj, state))
        if not task.done():
            state.in_flight[name] = task
        return await self._wait(task)

    async def _wait(self, fut: 'asyncio.Future[Any]') -> Any:
        current = asyncio.current_task()
        if current is None:
            return await asyncio.shield(fut)
        _waiting[current] = fut
        try:
            return await asyncio.shield(fut)
        finally:
            del _waiting[current]

    async def _compute(self, obj: Any, state: InstanceState) -> Any:
        name = self.name
        task = asyncio.current_task()
        # Eagerly started tasks get here before `_invoke_async` registers them.
        state.in_flight[name] = task
        generation = state.generation[name]
        try:
            with stopwatch(self._log_duration(obj)):
                value = await self.func(obj)
        except Exception:
            state.method_stats(name).failures += 1
            logger.debug('evaluation of %s on %#x failed', name, id(obj),
                         exc_info=True)
            raise
        finally:
            if state.in_flight.get(name) is task:
                del state.in_flight[name]
        self._finish(obj, state, generation, value)
        return value

    def __repr__(self) -> str:
        owner = '' if self.owner is None else self.owner.__qualname__ + '.'
        return f'<cached method {owner}{self.name}>'


class BoundCachedMethod(Generic[R]):
    '''Cached method bound to an object.'''
    __slots__ = ('method', 'instance')

    def __init__(self, method: CachedMethod[R], instance: Any):
        self.method = method
        self.instance = instance

    @property
    def __name__(self) -> str:
        return self.method.name

    @property
    def __wrapped__(self) -> Callable[[Any], Any]:
        return self.method.func

    def __call__(self) -> Any:
        return self.method.invoke(self.instance)

    def invalidate(self) -> list[str]:
        '''Mark this method and everything depending on it as dirty.'''
        return notify_property_update(self.instance, self.method.name)

    def cache_info(self) -> CacheInfo:
        return cache_info(self.instance, self.method.name)

    @property
    def is_dirty(self) -> bool:
        return is_dirty(self.instance, self.method.name)

    def __repr__(self) -> str:
        return f'<bound cached method {self.method.name} of ' \
            f'{self.instance!r}>'


def cached(*dependencies: Dependency
           ) -> Callable[[Callable[[Any], Any]], CachedMethod]:
    '''
    Declare a cached method.

    :param dependencies: Names of tracked properties or other cached
        methods of the same class. Descriptors defined earlier in the
        class body may be passed instead of their names.
    :raise ConfigurationError: A dependency is not a name or a known
        descriptor, or the decorated member is not a function.
    '''
    for dep in dependencies:
        if not _is_dependency(dep):
            if callable(dep):
                raise ConfigurationError(
                    'cached requires a dependency list; use @cached(...) '
                    'instead of @cached'
                )
            raise ConfigurationError(f'invalid dependency {dep!r}')

    def dec(func: Callable[[Any], Any]) -> CachedMethod:
        return CachedMethod(func, dependencies)
    return dec
