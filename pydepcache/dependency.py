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
Invalidation of cached methods after a dependency changed.
'''

from collections import deque
import logging
from typing import Any

from .graph import dependents
from .state import state_of


__all__ = [
    'notify_property_update',
    'propagate',
]


logger = logging.getLogger(__name__)


def propagate(obj: Any, name: str) -> list[str]:
    '''
    Mark all cached methods that transitively depend on `name` as dirty.

    The graph is walked breadth-first with a visited set, so every
    method is marked at most once and cyclic declarations terminate.

    :param obj: Object whose dependency `name` changed.
    :param name: Name of a tracked property or cached method.
    :return: Names that were marked dirty, in visiting order.
    '''
    cls = type(obj)
    queue = deque(dependents(cls, name))
    if not queue:
        return []

    state = state_of(obj)
    visited: set[str] = set()
    marked: list[str] = []
    while queue:
        child = queue.popleft()
        if child in visited:
            continue
        visited.add(child)
        state.mark_dirty(child)
        marked.append(child)
        queue.extend(dependents(cls, child))

    logger.debug('%s.%s changed on %#x; invalidated %s', cls.__qualname__,
                 name, id(obj), ', '.join(marked))
    return marked


def notify_property_update(obj: Any, name: str) -> list[str]:
    '''
    Invalidate everything that depends on `name`.

    Use this for values the engine cannot observe, such as plain
    attributes read by a cached method. If `name` is itself a cached
    method, it is invalidated as well.

    :return: Names that were marked dirty.
    '''
    # Deferred to avoid a circular import.
    from .cached import CachedMethod

    marked = []
    if isinstance(getattr(type(obj), name, None), CachedMethod):
        state_of(obj).mark_dirty(name)
        marked.append(name)
    for child in propagate(obj, name):
        if child != name:
            marked.append(child)
    return marked
