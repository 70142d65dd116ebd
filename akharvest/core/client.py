# ==============================================================================
# RESOURCE CLIENT MODULE
# ==============================================================================
# HTTP access to the official resource origin.
#
# The origin only serves clients that look like the game, so every request
# carries the game's User-Agent and X-Unity-Version headers.
#
# Usage:
#   client = ResourceClient(config)
#   version = client.get_latest_version("cn")
#   data = client.fetch_bytes(client.asset_url("cn", version, name))
# ==============================================================================

import threading
from typing import Dict

import requests

from .config import Config
from .manifest import parse_version_info


# Hosts of the official resource servers
SERVERS: Dict[str, str] = {
    "cn": "ak.hycdn.cn",
    "us": "ark-us-static-online.yo-star.com",
    "jp": "ark-jp-static-online.yo-star.com",
}

# The cn server publishes its version document on a separate config host
CN_VERSION_URL = "https://ak-conf.hypergryph.com/config/prod/official/{platform}/version"


class DownloadError(Exception):
    """Exception raised when a request to the origin fails."""

    def __init__(self, url: str, cause: Exception):
        super().__init__(f"Failed to fetch {url}: {cause}")
        self.url = url
        self.cause = cause


class ResourceClient:
    """
    Client for the resource origin.

    One requests.Session is kept per thread; download workers each get
    their own connection pool.

    Attributes:
        config (Config): Settings used for headers, platform and timeout
    """

    def __init__(self, config: Config):
        self.config = config
        self._local = threading.local()

    # ==========================================================================
    # SESSION
    # ==========================================================================

    def _session(self) -> requests.Session:
        session = getattr(self._local, 'session', None)
        if session is None:
            session = requests.Session()
            session.headers.update({
                "Accept": "*/*",
                "Accept-Language": "en-us",
                "Accept-Encoding": "deflate",
                "X-Unity-Version": self.config.unity_version,
                "User-Agent": self.config.user_agent,
            })
            self._local.session = session
        return session

    def _get(self, url: str) -> requests.Response:
        try:
            response = self._session().get(url, timeout=self.config.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise DownloadError(url, e) from e
        return response

    def fetch_bytes(self, url: str) -> bytes:
        """
        Download a URL as bytes.

        Raises:
            DownloadError: On connection errors or non-2xx responses
        """
        return self._get(url).content

    def fetch_text(self, url: str) -> str:
        """Download a URL as text (UTF-8 unless the server says otherwise)."""
        response = self._get(url)
        if response.encoding is None:
            response.encoding = 'utf-8'
        return response.text

    # ==========================================================================
    # URLS
    # ==========================================================================

    def url(self, server: str, path: str) -> str:
        """
        Build an official resource URL.

        Raises:
            KeyError: If the server is unknown
        """
        host = SERVERS[server]
        return f"https://{host}/assetbundle/official/{self.config.platform}/{path}"

    def asset_url(self, server: str, version: str, name: str) -> str:
        return self.url(server, f"assets/{version}/{name}")

    def version_url(self, server: str) -> str:
        if server == "cn":
            return CN_VERSION_URL.format(platform=self.config.platform)
        return self.url(server, "version")

    # ==========================================================================
    # DOCUMENTS
    # ==========================================================================

    def get_latest_version(self, server: str) -> str:
        """
        Ask the origin for the current resource version.

        Args:
            server: Server identifier

        Returns:
            The resVersion string
        """
        return parse_version_info(self.fetch_text(self.version_url(server)))
