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
'''
Feed a tracked property from an asynchronous event source.

Every event replaces the `data` property of a `Profile`. Cached methods
depending on it are only recomputed when the event actually carries new
data.
'''

import asyncio
import logging
import sys

from pydepcache import cache_info, cached, tracked


logger = logging.getLogger('event_source')


class Profile:
    data = tracked()
    first_name = tracked()
    last_name = tracked()

    def __init__(self, events: 'asyncio.Queue[str | None]',
                 first_name: str, last_name: str):
        self._events = events
        self.data = 'Foo'
        self.first_name = first_name
        self.last_name = last_name

    async def listen(self) -> None:
        '''Copy events into `data` until `None` is received.'''
        while (item := await self._events.get()) is not None:
            self.data = item

    @cached('data')
    async def summary(self) -> str:
        logger.info('computing summary')
        await asyncio.sleep(0.01)
        return f'<{self.data}>'

    @cached('first_name', 'last_name', 'summary')
    async def full_name(self) -> str:
        logger.info('computing full name')
        return f'{self.first_name} {self.last_name} {await self.summary()}'


async def main(events: list[str]) -> None:
    queue: asyncio.Queue[str | None] = asyncio.Queue()
    profile = Profile(queue, 'Ada', 'Lovelace')
    listener = asyncio.create_task(profile.listen())

    for item in events:
        await queue.put(item)
        await asyncio.sleep(0)
        logger.info('full name: %s', await profile.full_name())

    await queue.put(None)
    await listener
    logger.info('summary: %s', cache_info(profile, 'summary'))
    logger.info('full name: %s', cache_info(profile, 'full_name'))


# Set up logging.
logging.basicConfig(format=logging.BASIC_FORMAT)
logging.getLogger('event_source').setLevel(logging.INFO)
logging.getLogger('pydepcache').setLevel(logging.DEBUG)

asyncio.run(main(sys.argv[1:] or ['a', 'a', 'b', 'b']))
