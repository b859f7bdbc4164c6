"""
This module provides the public-link mediator, :py:class:`PublicLinkMediator`, which consults and
updates the Nextcloud sharing API (the "OCS Share API") to ensure that a file selected for
display has exactly one public link.

A public link (share type 3) grants unauthenticated read access to a file; the base share URL
returned by the API points to a landing page, so the URLs returned by this module have a
``/download/<filename>`` suffix appended to make them fetchable as a byte stream.  The sharing
API supports other kinds of shares (to users, to groups); these are never created here and are
never taken as evidence that a public link exists.
"""
import logging, threading, posixpath
from collections.abc import Mapping
from contextlib import contextmanager
from urllib.parse import quote
from typing import Callable, List, Union

from .transport import NextcloudTransport
from ..exceptions import *

SHARES_ENDPOINT = "ocs/v2.php/apps/files_sharing/api/v1/shares"

SHARE_TYPE_USER = 0
SHARE_TYPE_GROUP = 1
SHARE_TYPE_PUBLIC_LINK = 3

PERM_READ = 1

Notifier = Callable[[str], None]

def download_url(share_url: str, filename: str) -> str:
    """
    return the URL that downloads the shared file given its public share URL
    """
    return f"{share_url.rstrip('/')}/download/{quote(filename)}"

class ShareRecord:
    """
    the sharing API's view of a share on a path.

    :ivar str path:        the path as known to the sharing API (i.e. relative to the user's file
                           space, including any configured subdirectory)
    :ivar str public_url:  the base share URL (if the share is a public link)
    :ivar int share_kind:  the share type code (3 for public links)
    :ivar str item_type:   either "file" or "folder"
    """

    def __init__(self, path: str, share_kind: int, public_url: str=None, item_type: str="file",
                 id: str=None):
        self.path = path
        self.share_kind = share_kind
        self.public_url = public_url
        self.item_type = item_type
        self.id = id

    @property
    def is_public_link(self) -> bool:
        return self.share_kind == SHARE_TYPE_PUBLIC_LINK

    @property
    def name(self) -> str:
        return posixpath.basename(self.path.rstrip('/'))

    @property
    def parent(self) -> str:
        return posixpath.dirname(self.path.rstrip('/'))

    @classmethod
    def from_ocs(cls, data: Mapping):
        """
        create a ShareRecord from a share description returned by the sharing API
        :raises UnexpectedRemoteResponse:  if the description lacks a path or share type
        """
        if not isinstance(data, Mapping) or 'path' not in data or 'share_type' not in data:
            raise UnexpectedRemoteResponse("Share description is missing path or share_type")
        try:
            kind = int(data['share_type'])
        except (TypeError, ValueError) as ex:
            raise UnexpectedRemoteResponse("Share has non-integer share_type: " +
                                           str(data['share_type'])) from ex
        return cls(data['path'], kind, data.get('url'), data.get('item_type', "file"),
                   data.get('id'))

    def __repr__(self):
        return f"ShareRecord({self.path!r}, {self.share_kind}, {self.public_url!r})"

def ocs_data(response, ep: str=None):
    """
    check the OCS envelope of a sharing API response and return its ``data`` payload
    :raises RemoteApiError:            if the envelope reports a failure
    :raises UnexpectedRemoteResponse:  if the response is not an OCS envelope
    """
    if not isinstance(response, Mapping) or not isinstance(response.get('ocs'), Mapping):
        raise UnexpectedRemoteResponse("Sharing API response is not an OCS JSON message", ep)
    meta = response['ocs'].get('meta') or {}
    if meta.get('status', 'ok') != 'ok':
        code = meta.get('statuscode') or 0
        raise RemoteApiError(f"Sharing API request failed ({code}): {meta.get('message')}",
                             code, ep, reason=meta.get('message'))
    return response['ocs'].get('data')


class PublicLinkMediator:
    """
    a client for looking up and creating public links for files in the browsing root.

    Callers wanting a link for a file should use :py:meth:`ensure_link`, which runs the lookup
    and (if needed) the creation while holding a per-path guard, so that no two links are
    created for the same path.
    """

    def __init__(self, transport: NextcloudTransport, notify: Notifier=None,
                 log: logging.Logger=None):
        """
        :param NextcloudTransport transport:  the transport to send requests with
        :param func notify:   a function that reports a failure message to the user; if not
                              provided, failures are only logged.
        :param Logger log:    the Logger to use for messages
        """
        if not log:
            log = logging.getLogger("ncfoundry.sharing")
        self.log = log
        self.transport = transport
        self.notify = notify
        self._inflight = set()
        self._inflight_lock = threading.Lock()

    def get_shares(self, path: str, subfiles: bool=False) -> List[ShareRecord]:
        """
        return all shares that exist on the given root-relative path.  If ``subfiles`` is True,
        the path must be a directory, and the shares on its children are returned.
        """
        params = { 'path': self.transport.sharing_path(path).rstrip('/') or '/',
                   'reshares': 'true', 'subfiles': 'true' if subfiles else 'false',
                   'format': 'json' }
        data = ocs_data(self.transport.get(SHARES_ENDPOINT, params), SHARES_ENDPOINT)
        if not data:
            return []
        if not isinstance(data, list):
            raise UnexpectedRemoteResponse("Sharing API returned non-list share data",
                                           SHARES_ENDPOINT)
        return [ShareRecord.from_ocs(s) for s in data]

    def check_existing(self, path: str) -> Union[str, List[str], bool]:
        """
        determine whether the given path already has a public link.  If ``path`` refers to a
        file, its fetchable public URL is returned or False if it has none.  If ``path`` ends
        with a slash, it is taken to be a directory, and the list of names of the files directly
        inside it that have a public link is returned.

        Failures to get an answer from the server are logged and result in False.
        """
        try:
            if path.endswith('/') or not path:
                return self._linked_files_in(path)
            return self._public_url_for(path)
        except RemoteStorageException as ex:
            self.log.warning("Unable to determine public link status for %s: %s", path or '/', str(ex))
            return False

    def _public_url_for(self, path):
        target = self.transport.sharing_path(path)
        for share in self.get_shares(path):
            if share.is_public_link and share.item_type != "folder" and \
               share.path.rstrip('/') == target and share.public_url:
                return download_url(share.public_url, share.name)
        return False

    def _linked_files_in(self, path):
        target = self.transport.sharing_path(path).rstrip('/') or '/'
        out = []
        for share in self.get_shares(path, subfiles=True):
            if not share.is_public_link or share.item_type == "folder":
                continue
            if share.parent == target and share.name not in out:
                out.append(share.name)
        return out

    def _create_share(self, path):
        form = { 'path': self.transport.sharing_path(path), 'shareType': SHARE_TYPE_PUBLIC_LINK,
                 'permissions': PERM_READ }
        data = ocs_data(self.transport.post_form(SHARES_ENDPOINT, form, {'format': 'json'}),
                        SHARES_ENDPOINT)
        if not isinstance(data, Mapping) or not data.get('url'):
            raise UnexpectedRemoteResponse("Share creation response is missing the share URL",
                                           SHARES_ENDPOINT)
        return download_url(data['url'], posixpath.basename(path.rstrip('/')))

    def create_link(self, path: str):
        """
        create a public, read-only link for the file with the given path and return its fetchable
        URL.  This does not first check whether a link already exists.  On failure, the user is
        notified and None is returned.
        """
        try:
            url = self._create_share(path)
        except RemoteStorageException as ex:
            self.log.error("Failed to create public link for %s: %s", path, str(ex))
            if self.notify:
                self.notify(f"Failed to create public link for \"{path}\": {str(ex)}")
            return None

        self.log.info("Created public link for %s", path)
        return url

    @contextmanager
    def guard(self, path: str):
        """
        hold exclusive rights to look up or create a link for the given path for the duration
        of a ``with`` block.
        :raises LinkRequestInProgress:  if another request for the path is in progress
        """
        with self._inflight_lock:
            if path in self._inflight:
                raise LinkRequestInProgress(path)
            self._inflight.add(path)
        try:
            yield path
        finally:
            with self._inflight_lock:
                self._inflight.discard(path)

    def ensure_link(self, path: str, confirm: Callable[[str], bool]=None):
        """
        return a public URL for the given file path, creating a link only if one does not
        already exist.  Unlike :py:meth:`create_link`, a failure to create the link is raised
        to the caller rather than reported via ``notify``.

        :param str path:      the root-relative path to the file
        :param func confirm:  a function called with the path before a new link is created; if
                              it returns False, no link is created and None is returned.
        :return:  a tuple of the URL (or None) and a boolean indicating whether a new link was
                  created
        :raises ValueError:  if the path is empty or ends with a slash (i.e. names a directory)
        :raises LinkRequestInProgress:  if another request for the path is in progress
        :raises RemoteStorageException:  if the link could not be created
        """
        if not path or path.endswith('/'):
            raise ValueError(f"ensure_link(): not a file path: {path!r}")

        with self.guard(path):
            url = self.check_existing(path)
            if isinstance(url, str) and url:
                return url, False
            if confirm and not confirm(path):
                self.log.info("Link creation for %s declined", path)
                return None, False

            try:
                url = self._create_share(path)
            except RemoteStorageException as ex:
                self.log.error("Failed to create public link for %s: %s", path, str(ex))
                raise
            self.log.info("Created public link for %s", path)
            return url, True
