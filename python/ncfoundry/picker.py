"""
The capability interface through which a host application's file picker uses a storage source,
along with its two implementations: :py:class:`NextcloudSource`, which browses the Nextcloud
file space via a :py:class:`~ncfoundry.browse.BrowseSession`, and :py:class:`PassThroughSource`,
which hands every request to the host's own default picker.  :py:func:`make_source` chooses
between them according to the ``source`` setting.
"""
import logging
from abc import ABC, abstractmethod
from typing import Iterable

from .settings import Settings, SOURCE
from .browse import BrowseSession

NEXTCLOUD = "nextcloud"
DEFAULT = "default"

class FilePickerSource(ABC):
    """
    the operations a file picker needs from a storage source
    """

    @abstractmethod
    def list(self, path: str, extensions: Iterable[str]=None):
        """
        return the contents of the directory at the given path
        """
        raise NotImplementedError()

    @abstractmethod
    def select(self, path: str):
        """
        return the URL that the file at the given path should be referenced by
        """
        raise NotImplementedError()

    @abstractmethod
    def upload(self, path: str, data: bytes):
        raise NotImplementedError()

    @abstractmethod
    def create_directory(self, path: str):
        raise NotImplementedError()

class NextcloudSource(FilePickerSource):
    """
    a picker source backed by the configured Nextcloud server.  :py:meth:`list` returns a
    dictionary with ``dirs`` and ``files`` lists (see
    :py:meth:`~ncfoundry.clients.webdav.DirectoryListing.as_dict`), or None on failure.
    """

    def __init__(self, session: BrowseSession):
        self.session = session

    def list(self, path: str, extensions: Iterable[str]=None):
        listing = self.session.browse(path, extensions)
        if listing is None:
            return None
        return listing.as_dict()

    def select(self, path: str):
        return self.session.select_file(path)

    def upload(self, path: str, data: bytes):
        entry = self.session.upload(path, data)
        return entry.as_dict() if entry else None

    def create_directory(self, path: str):
        entry = self.session.create_directory(path)
        return entry.as_dict() if entry else None

class PassThroughSource(FilePickerSource):
    """
    a picker source that delegates every operation to the host's default picker, which must
    provide methods with the same names and signatures as :py:class:`FilePickerSource`.
    """

    def __init__(self, default):
        self.default = default

    def list(self, path: str, extensions: Iterable[str]=None):
        return self.default.list(path, extensions)

    def select(self, path: str):
        return self.default.select(path)

    def upload(self, path: str, data: bytes):
        return self.default.upload(path, data)

    def create_directory(self, path: str):
        return self.default.create_directory(path)

def make_source(settings: Settings, default=None, log: logging.Logger=None, **kwargs) -> FilePickerSource:
    """
    return the picker source selected by the ``source`` setting.

    :param Settings settings:  the integration settings
    :param default:  the host's default picker, used when ``source`` is not "nextcloud"
    :param kwargs:   extra arguments passed to the :py:class:`~ncfoundry.browse.BrowseSession`
                     constructor (e.g. ``confirm``, ``notify``)
    """
    if not log:
        log = logging.getLogger("ncfoundry.picker")
    which = settings.get(SOURCE) or NEXTCLOUD
    if which == NEXTCLOUD:
        return NextcloudSource(BrowseSession(settings, log=log.getChild("browse"), **kwargs))

    if default is None:
        raise ValueError(f"make_source(): source={which} requires a default picker")
    log.debug("Using default picker source (source=%s)", which)
    return PassThroughSource(default)
