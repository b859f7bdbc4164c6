"""
This module provides the transport adapter, :py:class:`NextcloudTransport`, used by all other
clients to issue authenticated HTTP requests to the Nextcloud server and to decode the response
bodies.  Requests are made once (no retries); any failure is raised as one of the exceptions
defined in :py:mod:`ncfoundry.exceptions`, with network-level failures (including rejected
cross-origin requests) raised distinctly as :py:class:`~ncfoundry.exceptions.RemoteCommError`.
"""
import logging
from urllib.parse import quote
from collections.abc import Mapping

import requests
from requests.auth import HTTPBasicAuth

from ..settings import Settings, URL, USER_NAME, PASSWORD, SUBDIRECTORY
from ..exceptions import *
from ..utils.logging import blab, truncate_for_log

GET = "GET"
PROPFIND = "PROPFIND"
SEARCH = "SEARCH"
PUT = "PUT"
MKCOL = "MKCOL"
POST = "POST"
METHODS = (GET, PROPFIND, SEARCH, PUT, MKCOL, POST)

DAV_ROOT = "remote.php/dav"
OCS_API_HEADER = "OCS-APIRequest"

def decode_response(response: requests.Response):
    """
    return the body of the given response decoded according to its declared content type:
    bytes for binary content (images and octet streams), a dictionary for JSON, and text for
    anything else (including XML).
    """
    ctype = response.headers.get('content-type', '').split(';')[0].strip().lower()
    if ctype.startswith("image/") or ctype.startswith("video/") or ctype.startswith("audio/") or \
       ctype == "application/octet-stream":
        return response.content
    if ctype == "application/json" or ctype.endswith("+json"):
        try:
            return response.json()
        except ValueError as ex:
            raise UnexpectedRemoteResponse("Remote response could not be decoded as JSON: " + str(ex),
                                           response.url, response.text, response.status_code) from ex
    return response.text

def join_path(*parts) -> str:
    """
    join path segments with slashes, ignoring empty segments and redundant slashes
    """
    return '/'.join(p.strip('/') for p in parts if p and p.strip('/'))

class NextcloudTransport:
    """
    a client for issuing requests against a Nextcloud server.  The server base URL and the
    account credentials are read from the given :py:class:`~ncfoundry.settings.Settings` at
    request time, so changes to the settings take effect on the next request.

    Every request carries HTTP Basic authentication built from the ``user_name`` and ``password``
    settings and an ``OCS-APIRequest: true`` header, which the server requires of API requests
    not coming from its own web pages.
    """

    def __init__(self, settings: Settings, log: logging.Logger=None, timeout: float=None):
        """
        initialize the client

        :param Settings settings:  the settings to read the server URL and credentials from
        :param Logger log:   the Logger object to use for messages from this client.  If not provided,
                             a default logger with the name "ncfoundry.transport" will be used.
        :param float timeout:  the number of seconds to wait for the server to respond; if not
                             provided, requests will wait indefinitely.
        """
        if not log:
            log = logging.getLogger("ncfoundry.transport")
        self.log = log
        self.settings = settings
        self.timeout = timeout

    @property
    def base_url(self) -> str:
        """
        the configured server base URL, always ending with a slash
        :raises UnsetServerURL:  if the URL has not been set
        """
        url = (self.settings.get(URL) or '').strip()
        if not url:
            raise UnsetServerURL()
        if not url.endswith('/'):
            url += '/'
        return url

    @property
    def user_name(self) -> str:
        return self.settings.get(USER_NAME) or ''

    def dav_root(self) -> str:
        """
        return the endpoint path (relative to the base URL) of the collection that serves as the
        root of all browsing: the user's WebDAV file space plus the configured subdirectory.
        """
        return join_path(DAV_ROOT, "files", quote(self.user_name),
                         quote(self.settings.get(SUBDIRECTORY) or ''))

    def dav_endpoint(self, path: str) -> str:
        """
        return the endpoint (relative to the base URL) for the given path relative to the root
        """
        out = join_path(self.dav_root(), quote(path or ''))
        if path and path.endswith('/'):
            out += '/'
        return out

    def sharing_path(self, path: str) -> str:
        """
        return the given root-relative path qualified by the configured subdirectory, as the
        sharing API expects it (i.e. relative to the user's file space).
        """
        out = '/' + join_path(self.settings.get(SUBDIRECTORY) or '', path or '')
        if path and path.endswith('/') and out != '/':
            out += '/'
        return out

    def _auth(self):
        return HTTPBasicAuth(self.user_name, self.settings.get(PASSWORD) or '')

    def _handle_request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """ Generic request handler. """
        full_url = f"{self.base_url}{endpoint.lstrip('/')}"
        hdrs = { OCS_API_HEADER: "true" }
        hdrs.update(kwargs.pop('headers', None) or {})

        self.log.debug("%s %s", method, full_url)
        try:
            response = requests.request(method, full_url, headers=hdrs, auth=self._auth(),
                                        timeout=self.timeout, **kwargs)
        except requests.RequestException as ex:
            self.log.error("Failed to reach %s: %s", full_url, str(ex))
            raise RemoteCommError(str(ex), full_url) from ex

        self._check_status(response, endpoint)
        return response

    def _check_status(self, response, endpoint):
        code = response.status_code
        if 200 <= code < 300:
            return

        reason = response.reason
        text = response.text if code >= 400 else None
        blab(self.log, "Error response from %s: %s", endpoint, truncate_for_log(text))
        if code >= 500:
            raise RemoteServerError(code, endpoint, text, reason=reason)
        elif code == 404:
            raise RemoteResourceNotFound(endpoint, resptext=text, reason=reason)
        elif code in (401, 403):
            raise RemoteUserUnauthorized(endpoint, resptext=text, code=code, reason=reason)
        elif code >= 400:
            raise RemoteClientError(None, code, endpoint, text, reason)
        raise UnexpectedRemoteResponse("Unexpected response (%d): %s" % (code, reason),
                                       endpoint, text, code)

    def request(self, endpoint: str, method: str=GET, body=None, headers: Mapping=None,
                params: Mapping=None):
        """
        issue a request to the given endpoint and return the decoded response body.

        :param str endpoint:  the endpoint path relative to the server base URL
        :param str method:    the HTTP method; one of GET, PROPFIND, SEARCH, PUT, MKCOL, POST
        :param body:          the request body: a dictionary is sent form-encoded; str or bytes
                              are sent as is.
        :param dict headers:  extra headers to include in the request
        :param dict params:   query parameters to add to the URL
        :return:  the response body, decoded according to its content type (see
                  :py:func:`decode_response`)
        :raises RemoteCommError:   if the server could not be reached
        :raises RemoteApiError:    if the server responded with a non-success status
        :raises UnsetServerURL:    if the server URL has not been configured
        """
        method = method.upper()
        if method not in METHODS:
            raise ValueError("Unsupported request method: "+method)

        kw = {}
        if headers:
            kw['headers'] = dict(headers)
        if params:
            kw['params'] = params
        if body is not None:
            kw['data'] = body

        response = self._handle_request(method, endpoint, **kw)
        out = decode_response(response)
        blab(self.log, "Response from %s: %s", endpoint, truncate_for_log(out))
        return out

    def propfind(self, path: str, body: str, depth: int=1):
        """
        issue a depth-bounded properties query for the given root-relative path
        """
        return self.request(self.dav_endpoint(path), PROPFIND, body,
                            { "Depth": str(depth), "Content-Type": "application/xml; charset=utf-8" })

    def search(self, body: str):
        """
        issue a server-side search query over the user's file space
        """
        return self.request(DAV_ROOT+"/", SEARCH, body,
                            { "Content-Type": "text/xml; charset=utf-8" })

    def put(self, path: str, data: bytes, content_type: str="application/octet-stream"):
        """
        create (or replace) a file resource at the given root-relative path
        """
        return self.request(self.dav_endpoint(path), PUT, data, { "Content-Type": content_type })

    def mkcol(self, path: str):
        """
        create a collection (directory) at the given root-relative path
        """
        return self.request(self.dav_endpoint(path), MKCOL)

    def post_form(self, endpoint: str, data: Mapping, params: Mapping=None):
        """
        post form-encoded data to the given endpoint
        """
        return self.request(endpoint, POST, dict(data),
                            { "Content-Type": "application/x-www-form-urlencoded" }, params)

    def get(self, endpoint: str, params: Mapping=None):
        return self.request(endpoint, GET, params=params)
