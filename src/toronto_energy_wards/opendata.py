"""
Minimal CKAN client for the City of Toronto open data portal.

Only the two calls the pipeline needs: list a package's resources, and
download one resource file to disk.
"""

import logging
from pathlib import Path
from typing import Any

import requests
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from .errors import ConfigError, FetchError
from .io import download_file, is_transient_error

logger = logging.getLogger(__name__)

TORONTO_CKAN_BASE = "https://ckan0.cf.opendata.inter.prod-toronto.ca/api/3"


class TorontoOpenData:
    """CKAN action API wrapper."""

    def __init__(self, base_url: str = TORONTO_CKAN_BASE, timeout: float = 60.0, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, max=20),
        retry=retry_if_exception(is_transient_error),
        reraise=True,
    )
    def _action(self, action: str, params: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}/action/{action}"
        logger.debug("CKAN %s %s", action, params)
        resp = self.session.get(url, params=params, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def package_resources(self, package_id: str) -> list[dict[str, Any]]:
        """Return resource metadata dicts (id, name, url, format) for a package."""
        try:
            data = self._action("package_show", {"id": package_id})
        except (requests.RequestException, ValueError) as exc:
            raise FetchError(f"package_show failed for {package_id}: {exc}") from exc
        if not data.get("success"):
            raise FetchError(f"package_show returned success=false: {data.get('error')}")
        resources = data["result"].get("resources", [])
        logger.info("Package %s has %d resources", package_id, len(resources))
        return resources

    def download_resource(self, resource: dict[str, Any], dest_dir: Path) -> Path:
        """Download a resource, naming the file after the resource and its format."""
        url = resource.get("url")
        if not url:
            raise FetchError(f"Resource {resource.get('name')!r} has no download URL")
        ext = (resource.get("format") or "bin").lower()
        return download_file(url, dest_dir / f"{resource['name']}.{ext}", timeout=300)


def find_resource(resources: list[dict[str, Any]], name: str) -> dict[str, Any]:
    """Pick a resource by exact name; a configured resource must exist."""
    for res in resources:
        if res.get("name") == name:
            return res
    available = sorted(r.get("name", "") for r in resources)
    raise ConfigError(f"Resource {name!r} not found; available: {available}")
