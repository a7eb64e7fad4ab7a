import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class BaseEdgeCache(ABC):
    @abstractmethod
    def purge_cache(self, urls):
        """Invalidate the given absolute URLs. Returns True on success."""
        pass


class NullEdgeCache(BaseEdgeCache):
    """Used when no CDN is configured."""

    def purge_cache(self, urls):
        logger.debug('No edge cache configured, skipping purge of %s', urls)
        return True


def purge_quietly(edge_cache, urls):
    """Purge urls and log, never raise. The cached copies expire on their own."""
    try:
        ok = edge_cache.purge_cache(list(urls))
    except Exception:
        logger.exception('Edge cache purge raised for %s', urls)
        return False
    if not ok:
        logger.warning('Edge cache purge failed for %s', urls)
    return bool(ok)
