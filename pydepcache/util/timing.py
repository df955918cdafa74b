# PyDepCache: Python library for dependency-aware memoization
#
# Copyright 2024 Mirko Hahn
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
'''Utilities for timing and performance measurement.'''

import contextlib
import time
from typing import Callable, Iterator, Optional


__all__ = ['stopwatch']


@contextlib.contextmanager
def stopwatch(
    callback: Callable[[int], None],
    clk_fn: Optional[Callable[[], int]] = None
) -> Iterator[None]:
    '''
    Measure the time spent inside a code block.

    Unlike a function wrapper, this also works across `await` points of
    a coroutine. The callback is invoked even if the block raises.

    Parameters
    ----------
    callback : Callable[[int], None]
        Callback used to store timing result.
    clk_fn : Callable[[], int], optional
        Function used to obtain timestamps. Defaults to
        `time.perf_counter_ns`.
    '''
    if clk_fn is None:
        clk_fn = time.perf_counter_ns
    start_time = clk_fn()
    try:
        yield
    finally:
        callback(clk_fn() - start_time)
