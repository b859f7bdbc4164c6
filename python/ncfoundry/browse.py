"""
The browse session: the orchestrator that answers the picker's requests to list a directory and
to select a file, and that owns the navigation state.

A :py:class:`BrowseSession` is a small state machine with three states: ``idle``, ``listing``
(a directory fetch is in flight) and ``selecting`` (a file selection, including any public-link
lookup or creation, is in flight).  Operations may only start from ``idle``; an attempt to start
one while another is in flight raises :py:class:`~ncfoundry.exceptions.SessionBusy`.

The session is the sole place where failures are classified and reported to the user.  Each
terminal failure is logged and results in exactly one call to the session's ``notify`` function.
The classification of the most recent failure is available via :py:attr:`BrowseSession.last_error`.
"""
import logging, posixpath, threading
from contextlib import contextmanager
from typing import Callable, Iterable, Optional

from .settings import (Settings, URL, USER_NAME, PASSWORD, SKIP_CONFIRMATION, CONNECTION_KEYS)
from .clients.transport import NextcloudTransport
from .clients.webdav import DAVFilesClient, DirectoryListing, RemoteEntry
from .clients.sharing import PublicLinkMediator
from .correspond import PathUrlStore, display_name_for_url
from .previews import PreviewClient, ThumbnailCache, DEFAULT_SIZE
from .exceptions import *

IDLE = "idle"
LISTING = "listing"
SELECTING = "selecting"

UNSET_URL = "unset-url"
UNSET_CREDENTIALS = "unset-credentials"
CONNECTIVITY = "connectivity"
OTHER = "other"

def classify_error(ex: Exception, settings: Settings=None) -> str:
    """
    return the category of the given failure for the purposes of informing the user: one of
    "unset-url", "unset-credentials", "connectivity", or "other".  An authentication failure
    (401) is considered an "unset-credentials" problem only if the credentials are actually
    not set.
    """
    if isinstance(ex, UnsetServerURL):
        return UNSET_URL
    if isinstance(ex, UnsetCredentials):
        return UNSET_CREDENTIALS
    if isinstance(ex, ConfigurationException) and ex.param == URL:
        return UNSET_URL
    if isinstance(ex, RemoteCommError):
        return CONNECTIVITY
    if isinstance(ex, RemoteApiError) and ex.code == 401 and settings is not None and \
       not settings.has_credentials():
        return UNSET_CREDENTIALS
    return OTHER

class BrowseError:
    """
    a record of a failure that terminated a session operation
    """
    def __init__(self, category: str, exception: Exception, message: str):
        self.category = category
        self.exception = exception
        self.message = message

    def __repr__(self):
        return f"BrowseError({self.category!r}, {self.message!r})"

class BrowseTarget:
    """
    the currently displayed directory and its most recently fetched contents
    """
    def __init__(self, path: str='', listing: DirectoryListing=None, extensions: Iterable[str]=None):
        self.path = path
        self.listing = listing
        self.extensions = list(extensions) if extensions else None

    @property
    def loaded(self) -> bool:
        return self.listing is not None

def _matches_extension(name: str, extensions: Iterable[str]) -> bool:
    name = name.lower()
    for ext in extensions:
        ext = ext.lower()
        if not ext.startswith('.'):
            ext = '.' + ext
        if name.endswith(ext):
            return True
    return False

class BrowseSession:
    """
    a session for browsing the configured Nextcloud file space and selecting files to share.
    """

    def __init__(self, settings: Settings, transport: NextcloudTransport=None,
                 confirm: Callable[[str], bool]=None, notify: Callable[[str], None]=None,
                 cache: ThumbnailCache=None, annotate_links: bool=True, log: logging.Logger=None):
        """
        :param Settings settings:  the integration settings
        :param NextcloudTransport transport:  the transport to use; if not provided, one will be
                                   created from ``settings``.
        :param func confirm:   a function that asks the user to confirm the creation of a public
                               link for the given path, returning True if confirmed.  If not
                               provided (and the ``skip_confirmation`` setting is not set), link
                               creation is never confirmed.
        :param func notify:    a function that displays a failure message to the user
        :param ThumbnailCache cache:  the cache to store retrieved previews in
        :param bool annotate_links:   if True, mark the files in each listing that already have
                               a public link.
        :param Logger log:     the Logger to use for messages
        """
        if not log:
            log = logging.getLogger("ncfoundry.browse")
        self.log = log
        self.settings = settings
        self.transport = transport or NextcloudTransport(settings, log.getChild("transport"))
        self.confirm = confirm
        self.notify = notify
        self.annotate_links = annotate_links

        self.files = DAVFilesClient(self.transport, log.getChild("webdav"))
        self.links = PublicLinkMediator(self.transport, self._notify, log.getChild("sharing"))
        self.store = PathUrlStore(settings, log=log.getChild("correspond"))
        self.cache = cache if cache is not None else ThumbnailCache()
        self.previews = PreviewClient(self.transport, self.files, self.cache, log.getChild("previews"))

        self.target = BrowseTarget()
        self.selection = None
        self.last_error = None
        self._state = IDLE
        self._state_lock = threading.Lock()

        self.settings.add_listener(self._on_settings_change)

    @property
    def state(self) -> str:
        return self._state

    @contextmanager
    def _enter(self, state):
        with self._state_lock:
            if self._state != IDLE:
                raise SessionBusy(self._state)
            self._state = state
        try:
            yield
        finally:
            with self._state_lock:
                self._state = IDLE

    def _notify(self, message):
        if self.notify:
            self.notify(message)

    def _on_settings_change(self, key, value):
        if key in CONNECTION_KEYS:
            self.log.debug("Connection setting %s changed; dropping cached contents", key)
            self.target = BrowseTarget()
            self.cache.clear()

    def close(self):
        """
        detach this session from its settings
        """
        self.settings.remove_listener(self._on_settings_change)

    def _check_config(self):
        if not (self.settings.get(URL) or '').strip():
            raise UnsetServerURL()
        if not self.settings.get(USER_NAME):
            raise UnsetCredentials("The remote storage account name has not been configured",
                                   USER_NAME)
        if not self.settings.get(PASSWORD):
            raise UnsetCredentials("The remote storage account password has not been configured",
                                   PASSWORD)

    def _report(self, ex: Exception, context: str):
        category = classify_error(ex, self.settings)
        if category == UNSET_URL:
            message = "The Nextcloud server URL has not been set; please set it in the settings."
        elif category == UNSET_CREDENTIALS:
            message = "The Nextcloud account name or password is missing; please set them in the settings."
        elif category == CONNECTIVITY:
            message = "Unable to reach the Nextcloud server at %s; check the URL and that the " \
                      "server allows cross-origin (CORS) requests from this site." % \
                      self.settings.get(URL)
        else:
            message = f"{context}: {str(ex)}"

        self.log.error("%s: %s", context, str(ex), exc_info=ex)
        self.last_error = BrowseError(category, ex, message)
        self._notify(message)
        return self.last_error

    def display_url(self, entry: RemoteEntry) -> str:
        """
        return the (authenticated) WebDAV URL for the given entry
        """
        return self.transport.base_url + self.transport.dav_endpoint(entry.href)

    def _list(self, path, extensions):
        listing = self.files.list_directory(path)
        if extensions:
            listing.files = [f for f in listing.files if _matches_extension(f.name, extensions)]
        listing.sort()
        for entry in listing.files:
            entry.display_url = self.display_url(entry)

        if self.annotate_links and listing.files:
            linked = self.links.check_existing(path + '/' if path else '')
            if isinstance(linked, list):
                for entry in listing.files:
                    entry.linked = entry.name in linked
        return listing

    def browse(self, path: str='', extensions: Iterable[str]=None) -> Optional[DirectoryListing]:
        """
        list the directory with the given path and make it the current browse target.

        :param str path:   the root-relative path to the directory; an empty string is the root
        :param list extensions:  if given, only files with one of these extensions (compared
                           case-insensitively) are included
        :return:  the listing, or None if the listing failed (in which case the previous browse
                  target is retained and the failure has been reported)
        :raises SessionBusy:  if another operation is in flight
        """
        path = (path or '').strip('/')
        with self._enter(LISTING):
            try:
                self._check_config()
                listing = self._list(path, extensions)
            except RemoteStorageException as ex:
                self._report(ex, f"Unable to list \"{path or '/'}\"")
                return None

            self.target = BrowseTarget(path, listing, extensions)
            self.last_error = None
            return listing

    def _is_known_directory(self, path):
        if not self.target.loaded or posixpath.dirname(path) != self.target.path:
            return False
        name = posixpath.basename(path)
        return any(d.name == name for d in self.target.listing.directories)

    def select_file(self, path: str) -> Optional[str]:
        """
        select the file with the given path for display, returning its public URL.  If the file
        does not yet have a public link, one is created after the user confirms (unless the
        ``skip_confirmation`` setting is set).

        :return:  the public URL, or None if the user declined or an error occurred
        :raises ValueError:   if the path is empty or names a directory
        :raises SessionBusy:  if another operation is in flight
        """
        if not (path or '').strip('/') or path.endswith('/'):
            raise ValueError(f"select_file(): not a file path: {path!r}")
        path = path.strip('/')
        if self._is_known_directory(path):
            raise ValueError(f"select_file(): {path} is a directory")

        with self._enter(SELECTING):
            try:
                self._check_config()
            except ConfigurationException as ex:
                self._report(ex, f"Unable to select \"{path}\"")
                return None

            confirm = None
            if not self.settings.get(SKIP_CONFIRMATION):
                confirm = self.confirm or (lambda p: False)

            try:
                url, created = self.links.ensure_link(path, confirm)
            except LinkRequestInProgress as ex:
                self._report(ex, f"Unable to select \"{path}\"")
                return None
            except RemoteStorageException as ex:
                self._report(ex, f"Unable to create a public link for \"{path}\"")
                return None

            if not isinstance(url, str) or not url:
                return None

            self.store.set(url, path)
            self.selection = url
            self.last_error = None
            if created:
                self.log.info("Selected %s via new public link", path)
            return url

    def resolve_url(self, url: str) -> str:
        """
        return the root-relative path of the file that the given public URL was created for.  If
        the URL is not known, a best-effort display name derived from the URL is returned.
        """
        path = self.store.get(url)
        if path:
            return path
        return display_name_for_url(url)

    def reopen(self, url: str, extensions: Iterable[str]=None) -> str:
        """
        prepare the session for a picker being opened on a field already holding the given public
        URL: if the file's path is known, its directory is listed.  The resolved path (or
        display name) is returned.
        """
        path = self.store.get(url)
        if not path:
            return display_name_for_url(url)
        self.browse(posixpath.dirname(path), extensions)
        self.selection = url
        return path

    def upload(self, path: str, data: bytes, content_type: str="application/octet-stream"):
        """
        upload the given data as a file at the given path.  If the file lands in the current
        browse target, the target is refreshed.

        :return:  the entry for the new file or None on failure
        """
        path = (path or '').strip('/')
        with self._enter(LISTING):
            try:
                self._check_config()
                entry = self.files.upload_file(path, data, content_type)
                self._refresh_if_under(path)
            except RemoteStorageException as ex:
                self._report(ex, f"Unable to upload \"{path}\"")
                return None
            return entry

    def create_directory(self, path: str):
        """
        create a directory with the given path, refreshing the current browse target if the new
        directory lands in it.

        :return:  the entry for the new directory or None on failure
        """
        path = (path or '').strip('/')
        with self._enter(LISTING):
            try:
                self._check_config()
                entry = self.files.create_directory(path)
                self._refresh_if_under(path)
            except RemoteStorageException as ex:
                self._report(ex, f"Unable to create directory \"{path}\"")
                return None
            return entry

    def _refresh_if_under(self, path):
        if self.target.loaded and posixpath.dirname(path) == self.target.path:
            ext = self.target.extensions
            self.target = BrowseTarget(self.target.path, self._list(self.target.path, ext), ext)

    def thumbnail(self, entry: RemoteEntry, size: int=DEFAULT_SIZE):
        """
        return preview image data for the given file entry, or None if unavailable
        """
        return self.previews.thumbnail_for(entry, size)
