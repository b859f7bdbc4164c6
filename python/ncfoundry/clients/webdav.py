"""
This module provides the directory listing translator: functions that turn the multistatus XML
returned by a WebDAV PROPFIND (or SEARCH) request into normalized :py:class:`RemoteEntry`
records, along with a client class, :py:class:`DAVFilesClient`, that carries out the WebDAV
operations needed for browsing a Nextcloud file space: listing a directory, searching for a
file by name, uploading a file, and creating a directory.

Paths handled by this module are always relative to the configured browsing root; that is,
the server-side prefix (the DAV protocol root, the account name, and any configured
subdirectory) is stripped from every path returned by the server.
"""
import logging, re
from collections import OrderedDict
from urllib.parse import urlparse, urlsplit, unquote
from typing import List, Mapping

from lxml import etree

from .transport import NextcloudTransport, join_path
from ..settings import SUBDIRECTORY
from ..exceptions import *
from ..utils.logging import blab

FILE = "file"
DIRECTORY = "directory"

DAV_NS = "DAV:"
OC_NS = "http://owncloud.org/ns"
NC_NS = "http://nextcloud.org/ns"

info_request = """<?xml version="1.0"?>
<d:propfind xmlns:d="DAV:" xmlns:oc="http://owncloud.org/ns" xmlns:nc="http://nextcloud.org/ns">
  <d:prop>
    <d:resourcetype/><d:displayname/><d:getlastmodified/>
    <d:getcontenttype/><d:getcontentlength/>
    <oc:fileid/><oc:size/>
  </d:prop>
</d:propfind>
"""

_re_ns = re.compile(r'^\{[^\}]+\}')

class RemoteEntry:
    """
    a description of one file or directory found in a listing.

    :ivar str name:   the display name (URL-decoded), i.e. the last segment of ``href``
    :ivar str href:   the path to the resource relative to the browsing root, with no leading
                      or trailing slash
    :ivar str kind:   either ``"file"`` or ``"directory"``
    :ivar dict props: other properties reported by the server (e.g. ``fileid``, ``size``,
                      ``contenttype``, ``modified``)
    """

    def __init__(self, href: str, kind: str=FILE, props: Mapping=None, name: str=None):
        self.href = href.strip('/')
        self.kind = kind if kind in (FILE, DIRECTORY) else FILE
        self.name = name if name is not None else self.href.rsplit('/', 1)[-1]
        self.props = OrderedDict(props or {})
        self.display_url = None
        self.linked = None

    @property
    def is_dir(self) -> bool:
        return self.kind == DIRECTORY

    def as_dict(self) -> Mapping:
        out = OrderedDict([('name', self.name), ('href', self.href), ('kind', self.kind)])
        if self.display_url:
            out['display_url'] = self.display_url
        if self.linked is not None:
            out['linked'] = self.linked
        out.update(self.props)
        return out

    def __eq__(self, other):
        return isinstance(other, RemoteEntry) and \
               (self.href, self.kind, self.name) == (other.href, other.kind, other.name)

    def __repr__(self):
        return f"RemoteEntry({self.href!r}, {self.kind!r})"

class DirectoryListing:
    """
    the normalized contents of a directory: lists of :py:class:`RemoteEntry` for the files and
    for the subdirectories it contains.  No ordering is implied.
    """

    def __init__(self, files: List[RemoteEntry]=None, directories: List[RemoteEntry]=None):
        self.files = list(files or [])
        self.directories = list(directories or [])

    def __len__(self):
        return len(self.files) + len(self.directories)

    def sort(self):
        """
        sort the files and directories in place by name (case-insensitively) and return self
        """
        self.files.sort(key=lambda e: e.name.lower())
        self.directories.sort(key=lambda e: e.name.lower())
        return self

    def as_dict(self) -> Mapping:
        return { "dirs": [d.as_dict() for d in self.directories],
                 "files": [f.as_dict() for f in self.files] }

def extract_propfind_responses(content) -> List:
    """
    return a list of the response elements found in the given multistatus response
    :param str content:  the XML response message to parse
    :raises UnexpectedRemoteResponse:  if the content is not parseable XML
    """
    if isinstance(content, str):
        content = content.encode('utf-8')
    try:
        tree = etree.fromstring(content)
    except (etree.XMLSyntaxError, ValueError) as ex:
        raise UnexpectedRemoteResponse("Server returned unparseable XML: "+str(ex)) from ex
    if tree is None:
        raise UnexpectedRemoteResponse("Server returned an empty XML document")

    return tree.findall(".//{DAV:}response")

def propfind_resp_to_dict(respel) -> Mapping:
    """
    convert a propfind response etree element into a dictionary of properties.  The
    ``urlpath`` property holds the decoded path portion of the response's href; ``type``
    is set to "directory" only if the resource type explicitly says it is a collection.
    :raises UnexpectedRemoteResponse:  if the response element does not contain an href
    """
    href_el = respel.find("{DAV:}href")
    if href_el is None or not (href_el.text or '').strip():
        raise UnexpectedRemoteResponse("PROPFIND response element is missing its href")

    dav_props = {
        '{DAV:}getlastmodified':   "modified",
        '{DAV:}getcontenttype':    "contenttype",
        '{DAV:}getcontentlength':  "contentlength",
        '{DAV:}resourcetype':      "type",
    }

    out = OrderedDict()
    out['urlpath'] = unquote(urlsplit(href_el.text.strip()).path)
    out['type'] = FILE

    for propstat in respel.findall("{DAV:}propstat"):
        status = propstat.findtext("{DAV:}status") or ''
        if "200" not in status:
            continue
        prop = propstat.find("{DAV:}prop")
        if prop is None:
            continue
        for child in prop:
            name = dav_props.get(child.tag) or _re_ns.sub('', child.tag)
            if child.tag == "{DAV:}resourcetype":
                if child.find("{DAV:}collection") is not None:
                    value = DIRECTORY
                else:
                    value = FILE
            else:
                value = child.text
            out[name] = value

    return out

def dav_base_path(base_url: str, dav_root: str) -> str:
    """
    return the server-absolute, decoded path prefix that precedes every root-relative path in
    the server's responses.  The returned value starts and ends with a slash.
    """
    path = join_path(unquote(urlparse(base_url).path), unquote(dav_root))
    return f"/{path}/" if path else "/"

def strip_base(urlpath: str, davbase: str):
    """
    return the given server path relative to the DAV base path, or None if it does not fall
    under that base.
    """
    if urlpath.rstrip('/') == davbase.rstrip('/'):
        return ''
    if not urlpath.startswith(davbase):
        return None
    return urlpath[len(davbase):].strip('/')

def parse_listing(content, davbase: str, dirpath: str='', log: logging.Logger=None) -> DirectoryListing:
    """
    Translate a PROPFIND multistatus response for a directory into a :py:class:`DirectoryListing`.
    The entry describing the queried directory itself is dropped.

    :param str content:  the XML response message to parse
    :param str davbase:  the decoded server path prefix to strip from each href (see
                         :py:func:`dav_base_path`)
    :param str dirpath:  the root-relative path of the directory that was queried
    :raises UnexpectedRemoteResponse:  if the content cannot be parsed
    """
    if not log:
        log = logging.getLogger("ncfoundry.webdav")
    dirpath = (dirpath or '').strip('/')

    out = DirectoryListing()
    for respel in extract_propfind_responses(content):
        info = propfind_resp_to_dict(respel)
        path = strip_base(info['urlpath'], davbase)
        if path is None:
            log.warning("Skipping listing entry outside of browsing root: %s", info['urlpath'])
            continue
        if path == dirpath:
            continue

        kind = info.pop('type')
        del info['urlpath']
        info.pop('displayname', None)
        entry = RemoteEntry(path, kind, info)
        if entry.is_dir:
            out.directories.append(entry)
        else:
            out.files.append(entry)

    blab(log, "Parsed %d entries in %s", len(out), dirpath or "(root)")
    return out

def search_request(name: str, scope: str) -> str:
    """
    create the body of a SEARCH request for files whose display name contains the given string
    :param str  name:   the substring to search for
    :param str scope:   the DAV path (starting with "/files/") to restrict the search to
    """
    d = "{DAV:}"
    root = etree.Element(d+"searchrequest", nsmap={'d': DAV_NS, 'oc': OC_NS})
    bs = etree.SubElement(root, d+"basicsearch")

    prop = etree.SubElement(etree.SubElement(bs, d+"select"), d+"prop")
    etree.SubElement(prop, "{%s}fileid" % OC_NS)
    etree.SubElement(prop, d+"displayname")
    etree.SubElement(prop, d+"resourcetype")

    sc = etree.SubElement(etree.SubElement(bs, d+"from"), d+"scope")
    etree.SubElement(sc, d+"href").text = scope
    etree.SubElement(sc, d+"depth").text = "infinity"

    like = etree.SubElement(etree.SubElement(bs, d+"where"), d+"like")
    etree.SubElement(etree.SubElement(like, d+"prop"), d+"displayname")
    etree.SubElement(like, d+"literal").text = f"%{name}%"

    return etree.tostring(root, xml_declaration=True, encoding="UTF-8").decode('utf-8')


class DAVFilesClient:
    """
    a client for the WebDAV file space of the configured Nextcloud account.  All paths given to
    and returned from this client are relative to the browsing root (the account's file space,
    further restricted by the ``subdirectory`` setting, if set).
    """

    def __init__(self, transport: NextcloudTransport, log: logging.Logger=None):
        if not log:
            log = logging.getLogger("ncfoundry.webdav")
        self.log = log
        self.transport = transport

    def davbase(self) -> str:
        """
        the decoded server path prefix for the browsing root
        """
        return dav_base_path(self.transport.base_url, self.transport.dav_root())

    def list_directory(self, path: str='') -> DirectoryListing:
        """
        return the contents of the directory with the given path.  The empty string refers to
        the browsing root.
        """
        path = (path or '').strip('/')
        content = self.transport.propfind(path + '/' if path else '', info_request, 1)
        if isinstance(content, bytes):
            content = content.decode('utf-8')
        return parse_listing(content, self.davbase(), path, self.log)

    def find_file_id(self, name: str, path: str=None):
        """
        search the browsing root for a file whose display name contains the given name and
        return its unique file identifier.  None is returned if a unique match is not found.

        :param str name:  the (partial) display name to search for
        :param str path:  the root-relative path of the desired file; if given, it is used to
                          pick the right match among several.
        """
        scope = "/" + join_path("files", self.transport.user_name,
                                self.transport.settings.get(SUBDIRECTORY) or '')
        content = self.transport.search(search_request(name, scope))
        if isinstance(content, bytes):
            content = content.decode('utf-8')

        davbase = self.davbase()
        matches = []
        for respel in extract_propfind_responses(content):
            info = propfind_resp_to_dict(respel)
            relpath = strip_base(info['urlpath'], davbase)
            if relpath is None or info.get('type') == DIRECTORY or not info.get('fileid'):
                continue
            matches.append((relpath, info))

        if path is not None:
            path = path.strip('/')
            matches = [m for m in matches if m[0] == path]
        elif len(matches) > 1:
            matches = [m for m in matches if m[0].rsplit('/', 1)[-1] == name]

        if len(matches) != 1:
            self.log.debug("No unique search match for %s (%d matches)", name, len(matches))
            return None
        return matches[0][1]['fileid']

    def upload_file(self, path: str, data: bytes, content_type: str="application/octet-stream"):
        """
        write the given data as a file at the given path, replacing any existing file there
        """
        path = path.strip('/')
        if not path:
            raise ValueError("upload_file(): a file path is required")
        self.transport.put(path, data, content_type)
        self.log.info("Uploaded %d bytes to %s", len(data), path)
        return RemoteEntry(path, FILE)

    def create_directory(self, path: str):
        """
        create a directory with the given path.  The parent directory must already exist.
        """
        path = path.strip('/')
        if not path:
            raise ValueError("create_directory(): a directory path is required")
        self.transport.mkcol(path + '/')
        self.log.info("Created directory %s", path)
        return RemoteEntry(path, DIRECTORY)
