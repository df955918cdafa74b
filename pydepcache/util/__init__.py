'''
Utility functions and types.
'''

from .timing import stopwatch
from .weakref import WeakIdentityDictionary, weak_key_deleter

__all__ = [
    'WeakIdentityDictionary',
    'stopwatch',
    'weak_key_deleter',
]
