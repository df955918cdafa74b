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

from collections import Counter

import pytest

from pydepcache import cached, tracked


class Person:
    '''Example class with two levels of cached methods.'''
    first_name = tracked()
    last_name = tracked()
    algo = tracked()

    def __init__(self, first_name, last_name, algo='x'):
        self.calls = Counter()
        self.first_name = first_name
        self.last_name = last_name
        self.algo = algo

    @cached('first_name', 'last_name')
    async def full_name(self):
        self.calls['full_name'] += 1
        return self.first_name + self.last_name

    @cached('full_name', 'algo')
    async def digest(self):
        self.calls['digest'] += 1
        return self.algo + ':' + await self.full_name()


@pytest.fixture
def person():
    return Person('A', 'B')
