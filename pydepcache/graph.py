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
Per-class dependency graph between tracked properties and cached methods.

Every class that declares a cached method owns a `ClassDescriptor`. Its
adjacency map answers the question "which cached methods must be
recomputed when this name changes?". The graph is built once while the
class body is executed and only read afterwards.
'''

import warnings
from typing import Optional
from weakref import WeakKeyDictionary


__all__ = [
    'ClassDescriptor',
    'class_descriptor',
    'dependency_graph',
    'dependents',
    'register_dependency',
]


class ClassDescriptor:
    '''
    Dependency graph owned by a single class.

    Attributes
    ----------
    owner : type
        Class that declared the dependencies.
    edges : dict[str, list[str]]
        Map from dependency name to the names of the cached methods that
        directly depend on it, in registration order and without
        duplicates.
    '''
    owner: type
    edges: dict[str, list[str]]

    def __init__(self, owner: type):
        self.owner = owner
        self.edges = {}

    def add_edge(self, source: str, dependent: str) -> None:
        targets = self.edges.setdefault(source, [])
        if dependent not in targets:
            targets.append(dependent)

    def __repr__(self) -> str:
        return f'<ClassDescriptor owner={self.owner.__qualname__} ' \
            f'edges={self.edges!r}>'


_descriptors: WeakKeyDictionary[type, ClassDescriptor] = WeakKeyDictionary()


def class_descriptor(cls: type, create: bool = True
                     ) -> Optional[ClassDescriptor]:
    '''
    Get the descriptor owned by `cls`.

    Base classes are not consulted. If `create` is true, a missing
    descriptor is created.
    '''
    desc = _descriptors.get(cls)
    if desc is None and create:
        desc = ClassDescriptor(cls)
        _descriptors[cls] = desc
    return desc


def register_dependency(desc: ClassDescriptor, source: str,
                        dependent: str) -> None:
    '''
    Declare that `dependent` must be recomputed when `source` changes.
    '''
    if source == dependent:
        warnings.warn(
            f'{desc.owner.__qualname__}.{dependent} depends on itself',
            RuntimeWarning, stacklevel=3
        )
    desc.add_edge(source, dependent)


def dependents(cls: type, name: str) -> tuple[str, ...]:
    '''
    Direct dependents of `name` in the effective graph of `cls`.

    The effective graph is the union of the graphs of all classes in the
    method resolution order, so subclasses may depend on names tracked by
    their bases and vice versa.
    '''
    result: dict[str, None] = {}
    for base in cls.__mro__:
        desc = _descriptors.get(base)
        if desc is None:
            continue
        for dep in desc.edges.get(name, ()):
            result[dep] = None
    return tuple(result)


def dependency_graph(cls: type) -> dict[str, tuple[str, ...]]:
    '''
    Snapshot of the effective dependency graph of `cls`.

    Returns a fresh dictionary that maps each dependency name to the
    names of its direct dependents.
    '''
    sources: dict[str, None] = {}
    for base in cls.__mro__:
        desc = _descriptors.get(base)
        if desc is not None:
            sources.update(dict.fromkeys(desc.edges))
    return {src: dependents(cls, src) for src in sources}
