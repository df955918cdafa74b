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
Weak reference dictionaries with identity-based keys.
'''

from collections.abc import Iterator, MutableMapping
from typing import Callable, TypeVar, final
import weakref


__all__ = [
    'WeakIdentityDictionary',
    'weak_key_deleter',
]


K = TypeVar('K')
V = TypeVar('V')


def weak_key_deleter(d: dict[int, tuple[weakref.ref, V]],
                     key: int) -> Callable[[weakref.ref], None]:
    '''
    Create deleter callback for an identity-keyed weak dictionary.

    The callback only removes the entry if it still belongs to the
    reference that died. Object IDs are recycled, so a newer entry under
    the same ID must survive.
    '''
    def deleter(wref: weakref.ref):
        entry = d.get(key)
        if entry is not None and entry[0] is wref:
            del d[key]
    return deleter


@final
class WeakIdentityDictionary(MutableMapping[K, V]):
    '''
    Mapping with weakly referenced keys compared by identity.

    Unlike `weakref.WeakKeyDictionary`, keys need not be hashable and two
    distinct keys never share an entry, even if they compare equal.
    Entries are discarded once their key is garbage collected.
    '''
    _d: dict[int, tuple[weakref.ref, V]]

    def __init__(self):
        self._d = {}

    def __getitem__(self, key: K) -> V:
        entry = self._d.get(id(key))
        if entry is None or entry[0]() is not key:
            raise KeyError(key)
        return entry[1]

    def __setitem__(self, key: K, val: V) -> None:
        ident = id(key)
        entry = self._d.get(ident)
        if entry is not None and entry[0]() is key:
            self._d[ident] = (entry[0], val)
            return
        wref = weakref.ref(key, weak_key_deleter(self._d, ident))
        self._d[ident] = (wref, val)

    def __delitem__(self, key: K) -> None:
        entry = self._d.get(id(key))
        if entry is None or entry[0]() is not key:
            raise KeyError(key)
        del self._d[id(key)]

    def __iter__(self) -> Iterator[K]:
        for wref, _ in list(self._d.values()):
            obj = wref()
            if obj is not None:
                yield obj

    def __len__(self) -> int:
        return sum(1 for wref, _ in self._d.values() if wref() is not None)
