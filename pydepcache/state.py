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
Per-instance caching state.
'''

import asyncio
from collections import Counter
import dataclasses
from typing import Any, NamedTuple, Optional

from .util.weakref import WeakIdentityDictionary


__all__ = [
    'CacheInfo',
    'InstanceState',
    'MethodStats',
    'cache_info',
    'is_dirty',
    'peek_state',
    'state_of',
]


class CacheInfo(NamedTuple):
    '''Snapshot of the cache statistics of one cached method.'''
    hits: int
    misses: int
    joins: int
    failures: int


@dataclasses.dataclass
class MethodStats:
    hits: int = 0
    misses: int = 0
    joins: int = 0
    failures: int = 0

    def snapshot(self) -> CacheInfo:
        return CacheInfo(self.hits, self.misses, self.joins, self.failures)


@dataclasses.dataclass(eq=False)
class InstanceState:
    '''
    Caching state of a single object.

    Attributes
    ----------
    dirty : set[str]
        Names of cached methods whose stored value must not be returned.
    cache : dict[str, Any]
        Stored results. A method has a value iff its name is a key.
    values : dict[str, Any]
        Current values of tracked properties.
    in_flight : dict[str, Any]
        Running computations, by method name. Asynchronous methods store
        their task, synchronous methods a placeholder.
    generation : Counter[str]
        Number of times each name has been marked dirty. A computation
        compares the counter before and after it runs to find out whether
        it was invalidated in the meantime.
    stats : dict[str, MethodStats]
        Hit and miss counters per cached method.
    '''
    dirty: set[str] = dataclasses.field(default_factory=set)
    cache: dict[str, Any] = dataclasses.field(default_factory=dict)
    values: dict[str, Any] = dataclasses.field(default_factory=dict)
    in_flight: dict[str, 'asyncio.Future[Any] | object'] = \
        dataclasses.field(default_factory=dict)
    generation: Counter[str] = dataclasses.field(default_factory=Counter)
    stats: dict[str, MethodStats] = dataclasses.field(default_factory=dict)

    def mark_dirty(self, name: str) -> None:
        self.dirty.add(name)
        self.generation[name] += 1

    def is_valid(self, name: str) -> bool:
        '''Check whether the stored value of `name` may be returned.'''
        return name in self.cache and name not in self.dirty

    def store(self, name: str, value: Any, clean: bool = True) -> None:
        '''
        Store a computed value.

        The dirty mark is only removed if `clean` is true. Callers pass
        false when the inputs changed while the value was computed.
        '''
        self.cache[name] = value
        if clean:
            self.dirty.discard(name)

    def method_stats(self, name: str) -> MethodStats:
        try:
            return self.stats[name]
        except KeyError:
            stats = self.stats[name] = MethodStats()
            return stats


_states: WeakIdentityDictionary[Any, InstanceState] = \
    WeakIdentityDictionary()


def state_of(obj: Any) -> InstanceState:
    '''
    Get the caching state of `obj`, creating it if necessary.

    :raise TypeError: `obj` cannot be weakly referenced.
    '''
    try:
        return _states[obj]
    except KeyError:
        state = _states[obj] = InstanceState()
        return state


def peek_state(obj: Any) -> Optional[InstanceState]:
    '''Get the caching state of `obj` without creating it.'''
    return _states.get(obj)


def is_dirty(obj: Any, name: str) -> bool:
    '''
    Check whether the next call of cached method `name` recomputes.

    This is the case if the method has never produced a value for `obj`
    or if one of its dependencies changed since.
    '''
    state = peek_state(obj)
    return state is None or not state.is_valid(name)


def cache_info(obj: Any, name: str) -> CacheInfo:
    '''Get cache statistics of cached method `name` on `obj`.'''
    state = peek_state(obj)
    if state is None or name not in state.stats:
        return CacheInfo(0, 0, 0, 0)
    return state.stats[name].snapshot()
