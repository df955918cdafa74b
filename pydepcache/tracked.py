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
Tracked properties.

A tracked property behaves like a plain instance attribute, except that
assigning a different value invalidates every cached method depending on
it.
'''

from typing import Any, Generic, Optional, TypeVar, cast, final, overload

import numpy

from .dependency import propagate
from .state import peek_state, state_of


__all__ = [
    'UNSET',
    'tracked',
    'values_equal',
]


T = TypeVar('T')


@final
class _Unset:
    '''Type of the `UNSET` sentinel.'''
    _instance: Optional['_Unset'] = None

    def __new__(cls) -> '_Unset':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'UNSET'

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return 'UNSET'


UNSET: Any = _Unset()
'''Value of a tracked property that has never been assigned.'''


def values_equal(old: Any, new: Any) -> bool:
    '''
    Decide whether assigning `new` over `old` is a change.

    Identity implies equality. NumPy arrays are compared as a whole
    because `==` compares them element-wise.
    '''
    if old is new:
        return True
    if isinstance(old, numpy.ndarray) or isinstance(new, numpy.ndarray):
        return (
            isinstance(old, numpy.ndarray) and isinstance(new, numpy.ndarray)
            and bool(numpy.array_equal(old, new))
        )
    return bool(old == new)


class tracked(Generic[T]):
    '''
    Descriptor for a property whose changes invalidate cached methods.

    Values are stored per instance in the caching state, never on the
    descriptor, so instances of the same class do not see each other's
    values.

    Example
    -------
    ::

        class Person:
            first_name = tracked()
            last_name = tracked()

            @cached('first_name', 'last_name')
            async def full_name(self):
                return self.first_name + self.last_name
    '''
    name: Optional[str]

    def __init__(self):
        self.name = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def _attrname(self) -> str:
        if self.name is None:
            raise TypeError('tracked property used before __set_name__ '
                            'was called')
        return self.name

    @overload
    def __get__(self, instance: None, owner: Optional[type] = None
                ) -> 'tracked[T]': ...

    @overload
    def __get__(self, instance: object, owner: Optional[type] = None
                ) -> T: ...

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        state = peek_state(instance)
        if state is None:
            return UNSET
        return cast(T, state.values.get(self._attrname(), UNSET))

    def __set__(self, instance: object, value: T) -> None:
        name = self._attrname()
        state = state_of(instance)
        changed = not values_equal(state.values.get(name, UNSET), value)
        state.values[name] = value
        if changed:
            propagate(instance, name)

    def __delete__(self, instance: object) -> None:
        name = self._attrname()
        state = peek_state(instance)
        if state is None or name not in state.values:
            raise AttributeError(name)
        old = state.values.pop(name)
        if old is not UNSET:
            propagate(instance, name)

    def __repr__(self) -> str:
        return f'<tracked {self.name!r}>'
