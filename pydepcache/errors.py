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
Exception types.
'''


__all__ = [
    'ConfigurationError',
    'DependencyCycleError',
    'PyDepCacheError',
]


class PyDepCacheError(Exception):
    '''Base class of all errors raised by the caching engine itself.'''


class ConfigurationError(PyDepCacheError, TypeError):
    '''
    A cached method or one of its dependencies was declared incorrectly.

    Raised at class definition time, before any instance exists.
    '''


class DependencyCycleError(PyDepCacheError, RuntimeError):
    '''
    A cached method was called from within its own computation.

    Joining the running computation would never complete, so the call
    fails instead.
    '''
