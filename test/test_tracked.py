# PyDepCache: Python library for dependency-aware memoization
#
# Copyright 2025 Mirko Hahn
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

import dataclasses

import numpy
import pytest

from pydepcache import UNSET, cached, is_dirty, tracked
from pydepcache.tracked import values_equal


class Tester:
    number = tracked()


def test_unset_until_written():
    obj = Tester()
    assert obj.number is UNSET
    assert not UNSET
    assert repr(UNSET) == 'UNSET'
    obj.number = None
    assert obj.number is None


def test_class_access_returns_descriptor():
    assert isinstance(Tester.number, tracked)
    assert Tester.number.name == 'number'


def test_instances_do_not_share_values():
    a = Tester()
    a.number = 0
    b = Tester()
    b.number = 0

    a.number += 1
    a.number += 1
    assert a.number == 2
    b.number += 1
    assert b.number == 1
    assert a.number == 2


def test_equal_value_is_replaced():
    first = [1, 2]
    second = [1, 2]
    obj = Tester()
    obj.number = first
    obj.number = second
    assert obj.number is second


def test_delete():
    class Host:
        x = tracked()

        @cached('x')
        def value(self):
            return self.x

    obj = Host()
    obj.x = 3
    assert obj.value() == 3
    del obj.x
    assert obj.x is UNSET
    assert is_dirty(obj, 'value')
    with pytest.raises(AttributeError):
        del obj.x


@pytest.mark.parametrize('old, new, expected', [
    (1, 1, True),
    (1, 1.0, True),
    (1, 2, False),
    ('a', 'a', True),
    (UNSET, None, False),
    (None, UNSET, False),
    (numpy.arange(3), numpy.arange(3), True),
    (numpy.arange(3), numpy.arange(1, 4), False),
    (numpy.arange(3), numpy.arange(4), False),
    (numpy.arange(3), [0, 1, 2], False),
])
def test_values_equal(old, new, expected):
    assert values_equal(old, new) is expected


def test_array_valued_property():
    class Grid:
        data = tracked()

        def __init__(self):
            self.count = 0

        @cached('data')
        def total(self):
            self.count += 1
            return float(numpy.sum(self.data))

    grid = Grid()
    grid.data = numpy.arange(4)
    assert grid.total() == 6.0
    grid.data = numpy.arange(4)
    assert grid.total() == 6.0
    assert grid.count == 1
    grid.data = numpy.ones(4)
    assert grid.total() == 4.0
    assert grid.count == 2


def test_unhashable_instances():
    @dataclasses.dataclass
    class Point:
        x: int
        label = tracked()

        @cached('label')
        def title(self):
            return f'{self.label}@{self.x}'

    p = Point(1)
    q = Point(1)
    assert p == q
    p.label = 'p'
    q.label = 'q'
    assert p.title() == 'p@1'
    assert q.title() == 'q@1'
    p.label = 'r'
    assert not is_dirty(q, 'title')
    assert p.title() == 'r@1'
