"""
A simulated Nextcloud server for testing the browsing core without network access.

:py:class:`SimNextcloudTransport` is a :py:class:`~ncfoundry.clients.transport.NextcloudTransport`
whose :py:meth:`~SimNextcloudTransport.request` answers WebDAV listing, search, upload and
collection-creation requests, sharing API queries and creations, and preview requests from an
in-memory file tree.  Each request is recorded in :py:attr:`~SimNextcloudTransport.calls` so that
tests can assert on what was (or was not) sent.
"""
import posixpath
from collections import OrderedDict
from urllib.parse import quote, unquote, urlparse
from typing import Mapping

from lxml import etree

from .transport import (NextcloudTransport, DAV_ROOT, GET, PROPFIND, SEARCH, PUT, MKCOL, POST,
                        METHODS)
from .sharing import SHARES_ENDPOINT, SHARE_TYPE_PUBLIC_LINK
from ..previews import PREVIEW_ENDPOINT
from ..settings import Settings, PASSWORD, USER_NAME
from ..exceptions import *

_xfiletmpl = """ <d:response>
  <d:href>%s</d:href>
  <d:propstat>
   <d:prop>
    <d:resourcetype>%s</d:resourcetype>
    <oc:fileid>%s</oc:fileid>
   </d:prop>
   <d:status>HTTP/1.1 200 OK</d:status>
  </d:propstat>
 </d:response>"""
_xenvtmpl = """<?xml version="1.0"?>
<d:multistatus xmlns:d="DAV:" xmlns:s="http://sabredav.org/ns" xmlns:oc="http://owncloud.org/ns" xmlns:nc="http://nextcloud.org/ns">
%s
</d:multistatus>"""

class SimNextcloudTransport(NextcloudTransport):
    """
    a transport that simulates a Nextcloud server.  File and directory paths given to the
    methods of this class are relative to the user's file space (i.e. they include any
    subdirectory configured in the settings).
    """

    def __init__(self, settings: Settings, password: str=None, log=None):
        """
        :param Settings settings:  the integration settings
        :param str password:  if given, requests with a different password (or user name other
                              than the configured one at construction) fail with a 401
        """
        super(SimNextcloudTransport, self).__init__(settings, log)
        self.password = password
        self.user = settings.get(USER_NAME) if password else None
        self.dirs = set([''])
        self.files = OrderedDict()
        self.fileids = {}
        self.shares = []
        self.calls = []
        self.failures = {}
        self._nextid = 100

    # -- set-up helpers

    def _assign_id(self, path):
        if path not in self.fileids:
            self._nextid += 1
            self.fileids[path] = str(self._nextid)
        return self.fileids[path]

    def add_dir(self, path: str):
        path = path.strip('/')
        parts = path.split('/') if path else []
        for i in range(1, len(parts)+1):
            d = '/'.join(parts[:i])
            self.dirs.add(d)
            self._assign_id(d)

    def add_file(self, path: str, data: bytes=b''):
        path = path.strip('/')
        self.add_dir(posixpath.dirname(path))
        self.files[path] = data
        self._assign_id(path)

    def add_share(self, path: str, share_type: int=SHARE_TYPE_PUBLIC_LINK, token: str=None):
        path = path.strip('/')
        self._nextid += 1
        share = OrderedDict([
            ('id', str(self._nextid)),
            ('share_type', share_type),
            ('path', '/' + path),
            ('item_type', "folder" if path in self.dirs else "file"),
        ])
        if share_type == SHARE_TYPE_PUBLIC_LINK:
            share['url'] = self.base_url + "s/" + (token or f"tok{self._nextid}")
        self.shares.append(share)
        return share

    def fail_on(self, method: str, exc: Exception):
        """
        arrange for the next request with the given method to raise the given exception
        """
        self.failures[method.upper()] = exc

    def count(self, method: str, endpoint_start: str=None) -> int:
        """
        return the number of requests made with the given method (and, optionally, to an
        endpoint starting with the given string)
        """
        return len([c for c in self.calls if c[0] == method.upper() and
                                              (not endpoint_start or c[1].startswith(endpoint_start))])

    # -- request simulation

    def request(self, endpoint: str, method: str=GET, body=None, headers: Mapping=None,
                params: Mapping=None):
        method = method.upper()
        if method not in METHODS:
            raise ValueError("Unsupported request method: "+method)
        self.base_url    # raises UnsetServerURL
        self.calls.append((method, endpoint, body, dict(params or {})))

        if method in self.failures:
            raise self.failures.pop(method)
        if self.password is not None and \
           (self.settings.get(PASSWORD) != self.password or self.settings.get(USER_NAME) != self.user):
            raise RemoteUserUnauthorized(endpoint, code=401, reason="Unauthorized")

        filesroot = f"{DAV_ROOT}/files/{quote(self.user_name)}"
        if endpoint.startswith(filesroot):
            path = unquote(endpoint[len(filesroot):]).strip('/')
            if method == PROPFIND:
                return self._propfind(path, endpoint)
            if method == PUT:
                return self._put(path, body, endpoint)
            if method == MKCOL:
                return self._mkcol(path, endpoint)
        elif endpoint.startswith(DAV_ROOT) and method == SEARCH:
            return self._search(body)
        elif endpoint == SHARES_ENDPOINT and method == GET:
            return self._get_shares(params or {})
        elif endpoint == SHARES_ENDPOINT and method == POST:
            return self._create_share(body or {})
        elif endpoint == PREVIEW_ENDPOINT and method == GET:
            return self._preview(params or {})

        raise RemoteClientError(None, 405, endpoint, reason="Method Not Allowed")

    def _href(self, path):
        base = urlparse(self.base_url).path.rstrip('/')
        href = f"{base}/{DAV_ROOT}/files/{quote(self.user_name)}/{quote(path)}"
        if path in self.dirs:
            href = href.rstrip('/') + '/'
        return href

    def _entry_xml(self, path):
        rtype = "<d:collection/>" if path in self.dirs else ""
        return _xfiletmpl % (self._href(path), rtype, self.fileids.get(path, ''))

    def _propfind(self, path, endpoint):
        if path in self.files:
            return _xenvtmpl % self._entry_xml(path)
        if path not in self.dirs:
            raise RemoteResourceNotFound(endpoint)
        out = [self._entry_xml(path)]
        for child in sorted(self.dirs | set(self.files.keys())):
            if child and posixpath.dirname(child) == path:
                out.append(self._entry_xml(child))
        return _xenvtmpl % "\n".join(out)

    def _put(self, path, body, endpoint):
        if posixpath.dirname(path) not in self.dirs:
            raise RemoteClientError("Parent collection does not exist", 409, endpoint, reason="Conflict")
        self.add_file(path, body or b'')
        return ""

    def _mkcol(self, path, endpoint):
        if path in self.dirs or path in self.files:
            raise RemoteClientError("Resource already exists", 405, endpoint,
                                    reason="Method Not Allowed")
        if posixpath.dirname(path) not in self.dirs:
            raise RemoteClientError("Parent collection does not exist", 409, endpoint, reason="Conflict")
        self.add_dir(path)
        return ""

    def _search(self, body):
        tree = etree.fromstring(body.encode('utf-8') if isinstance(body, str) else body)
        literal = tree.findtext(".//{DAV:}literal") or ''
        scope = (tree.findtext(".//{DAV:}scope/{DAV:}href") or '').strip('/')
        prefix = scope.split('/', 2)[2] if scope.count('/') >= 2 else ''
        name = literal.strip('%')
        out = []
        for path in self.files:
            if prefix and not path.startswith(prefix + '/'):
                continue
            if name.lower() in posixpath.basename(path).lower():
                out.append(self._entry_xml(path))
        return _xenvtmpl % "\n".join(out)

    def _ocs(self, data, status="ok", code=200, message="OK"):
        return { "ocs": { "meta": { "status": status, "statuscode": code, "message": message },
                          "data": data } }

    def _get_shares(self, params):
        path = params.get('path', '/').strip('/')
        if path and path not in self.dirs and path not in self.files:
            return self._ocs([], "failure", 404, "Wrong path, file/folder doesn't exist")
        subfiles = params.get('subfiles') == 'true'
        if subfiles:
            if path not in self.dirs:
                return self._ocs([], "failure", 400, "Not a directory")
            out = [s for s in self.shares if posixpath.dirname(s['path'].strip('/')) == path]
        else:
            out = [s for s in self.shares if s['path'].strip('/') == path]
        return self._ocs([dict(s) for s in out])

    def _create_share(self, form):
        path = str(form.get('path', '')).strip('/')
        if path not in self.dirs and path not in self.files:
            return self._ocs([], "failure", 404, "Wrong path, file/folder doesn't exist")
        share = self.add_share(path, int(form.get('shareType', SHARE_TYPE_PUBLIC_LINK)))
        share['permissions'] = int(form.get('permissions', 1))
        return self._ocs(dict(share))

    def _preview(self, params):
        fileid = params.get('fileId')
        for path, fid in self.fileids.items():
            if fid == fileid and path in self.files:
                return b"\x89PNG-preview-" + fid.encode('utf-8') + b"-" + \
                       str(params.get('x', '')).encode('utf-8')
        raise RemoteResourceNotFound(PREVIEW_ENDPOINT)
