'''
Dependency-aware memoization of methods.
'''

from .cached import BoundCachedMethod, CachedMethod, cached
from .dependency import notify_property_update
from .errors import ConfigurationError, DependencyCycleError, PyDepCacheError
from .graph import dependency_graph
from .state import CacheInfo, cache_info, is_dirty
from .tracked import UNSET, tracked

__all__ = [
    'BoundCachedMethod',
    'CacheInfo',
    'CachedMethod',
    'ConfigurationError',
    'DependencyCycleError',
    'PyDepCacheError',
    'UNSET',
    'cache_info',
    'cached',
    'dependency_graph',
    'is_dirty',
    'notify_property_update',
    'tracked',
]
