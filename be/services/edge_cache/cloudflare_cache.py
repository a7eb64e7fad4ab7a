import logging

import requests

from services.edge_cache.base_cache import BaseEdgeCache, NullEdgeCache

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = 'https://api.cloudflare.com/client/v4'


class CloudflareCache(BaseEdgeCache):
    # Cloudflare accepts at most 30 URLs per purge request
    MAX_URLS_PER_REQUEST = 30

    def __init__(self, zone_id, api_token, base_url=None, timeout=10):
        self.zone_id = zone_id
        self.base_url = (base_url or DEFAULT_API_BASE).rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {api_token}"})

    @property
    def purge_endpoint(self):
        return f"{self.base_url}/zones/{self.zone_id}/purge_cache"

    def purge_cache(self, urls):
        urls = [url for url in dict.fromkeys(urls) if url]
        ok = True
        for start in range(0, len(urls), self.MAX_URLS_PER_REQUEST):
            batch = urls[start:start + self.MAX_URLS_PER_REQUEST]
            try:
                resp = self.session.post(self.purge_endpoint, json={"files": batch}, timeout=self.timeout)
                data = resp.json()
            except (requests.RequestException, ValueError) as e:
                logger.warning('Cloudflare purge request failed for %s: %s', batch, e)
                ok = False
                continue
            if not data.get("success"):
                logger.warning('Cloudflare rejected purge of %s: %s', batch, data.get("errors"))
                ok = False
        return ok


def create_edge_cache(config):
    """Cloudflare when a zone and token are configured, otherwise a no-op cache."""
    zone_id = config.get('CLOUDFLARE_ZONE_ID')
    api_token = config.get('CLOUDFLARE_API_TOKEN')
    if zone_id and api_token:
        return CloudflareCache(
            zone_id,
            api_token,
            base_url=config.get('CLOUDFLARE_API_BASE'),
            timeout=config.get('PURGE_TIMEOUT', 10),
        )
    return NullEdgeCache()
