"""
The path/URL correspondence store: a persisted map from public URLs that have been handed out for
selected files back to the root-relative paths of those files.  It allows a picker re-opened on a
field already holding a public URL to navigate to the file's real location.
"""
import logging, posixpath
from urllib.parse import urlsplit, unquote
from typing import Mapping

from .settings import Settings, PATH_URL_MAP

def display_name_for_url(url: str) -> str:
    """
    derive a best-effort display name from a public URL: the decoded last segment of its path.
    The real remote path of the file is generally not recoverable this way.
    """
    path = unquote(urlsplit(url or '').path).rstrip('/')
    return posixpath.basename(path)

class PathUrlStore:
    """
    a map from public URLs to root-relative paths persisted as a single object-valued setting.

    The persistence layer only supports reading and replacing the whole map, so every
    :py:meth:`set` is a read-modify-write; concurrent writers may overwrite each other's entries
    (last writer wins).  Once set, a URL is not expected to map to a different path.
    """

    def __init__(self, settings: Settings, key: str=PATH_URL_MAP, log: logging.Logger=None):
        if not log:
            log = logging.getLogger("ncfoundry.correspond")
        self.log = log
        self.settings = settings
        self.key = key

    def _load(self) -> Mapping:
        data = self.settings.get(self.key, {})
        if not isinstance(data, Mapping):
            self.log.warning("Ignoring non-object value for setting %s", self.key)
            data = {}
        return dict(data)

    def get(self, url: str):
        """
        return the path recorded for the given public URL or None if it is not known
        """
        if not url:
            return None
        return self._load().get(url)

    def set(self, url: str, path: str):
        """
        record the path that the given public URL was created for
        """
        if not url:
            raise ValueError("PathUrlStore.set(): url must be non-empty")
        data = self._load()
        if data.get(url) == path:
            return
        if url in data:
            self.log.warning("Public URL %s previously recorded for %s; now %s", url, data[url], path)
        data[url] = path
        self.settings.set(self.key, data)

    def __contains__(self, url):
        return url in self._load()

    def __len__(self):
        return len(self._load())
