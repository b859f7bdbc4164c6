"""
Support for retrieving preview (thumbnail) images of files from the Nextcloud server along with
a cache for the retrieved images.  Resizing of images is left to the server.
"""
import logging
from collections import OrderedDict
from typing import Mapping

from .clients.transport import NextcloudTransport
from .clients.webdav import DAVFilesClient, RemoteEntry
from .exceptions import RemoteStorageException, UnexpectedRemoteResponse

PREVIEW_ENDPOINT = "index.php/core/preview"
DEFAULT_SIZE = 100

class ThumbnailCache:
    """
    a cache of preview image data keyed by file URL and pixel size.  Entries are never expired;
    the cache is cleared as a whole with :py:meth:`clear` (e.g. when the connection settings
    change).
    """

    def __init__(self):
        self._data = OrderedDict()

    def get(self, url: str, size: int=DEFAULT_SIZE):
        return self._data.get((url, size))

    def put(self, url: str, data: bytes, size: int=DEFAULT_SIZE):
        self._data[(url, size)] = data

    def clear(self):
        self._data.clear()

    def __contains__(self, key):
        if isinstance(key, str):
            key = (key, DEFAULT_SIZE)
        return key in self._data

    def __len__(self):
        return len(self._data)

class PreviewClient:
    """
    a client for retrieving thumbnails of files in the browsing root
    """

    def __init__(self, transport: NextcloudTransport, files: DAVFilesClient=None,
                 cache: ThumbnailCache=None, log: logging.Logger=None):
        if not log:
            log = logging.getLogger("ncfoundry.previews")
        self.log = log
        self.transport = transport
        self.files = files or DAVFilesClient(transport)
        self.cache = cache if cache is not None else ThumbnailCache()

    def get_preview(self, fileid, size: int=DEFAULT_SIZE) -> bytes:
        """
        retrieve a preview image of the file with the given identifier, scaled to fit within a
        square of the given pixel size
        :raises UnexpectedRemoteResponse:  if the server does not return binary data
        """
        params = { 'fileId': str(fileid), 'x': str(size), 'y': str(size), 'a': 'true' }
        data = self.transport.get(PREVIEW_ENDPOINT, params)
        if not isinstance(data, bytes):
            raise UnexpectedRemoteResponse("Preview request did not return image data",
                                           PREVIEW_ENDPOINT)
        return data

    def thumbnail_for(self, entry: RemoteEntry, size: int=DEFAULT_SIZE):
        """
        return a preview image of the file described by the given entry, or None if one cannot
        be retrieved.  Results are cached by the entry's display URL (or its path, if it has
        no display URL).
        """
        key = entry.display_url or entry.href
        data = self.cache.get(key, size)
        if data is not None:
            return data

        try:
            fileid = entry.props.get('fileid')
            if not fileid:
                fileid = self.files.find_file_id(entry.name, entry.href)
            if not fileid:
                return None
            data = self.get_preview(fileid, size)
        except RemoteStorageException as ex:
            self.log.warning("Unable to retrieve thumbnail for %s: %s", entry.href, str(ex))
            return None

        self.cache.put(key, data, size)
        return data
