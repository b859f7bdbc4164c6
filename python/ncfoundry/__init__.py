"""
ncfoundry: browse a Nextcloud file space from a virtual tabletop and share selected files via
public links.

This package includes the following components:

:py:mod:`clients.transport`
    the transport adapter that sends authenticated requests to the Nextcloud server
:py:mod:`clients.webdav`
    translation of WebDAV listings into normalized file and directory entries, and a client for
    the WebDAV file space
:py:mod:`clients.sharing`
    the public-link mediator, which looks up and creates public links via the sharing API
:py:mod:`correspond`
    the persisted map from public URLs back to the paths they were created for
:py:mod:`browse`
    the browse session that orchestrates the above on behalf of a file picker
:py:mod:`picker`
    the capability interface a host's file picker uses, with Nextcloud and pass-through
    implementations
:py:mod:`settings`
    the settings contract through which configuration is read and the URL map is persisted

Path Conventions
================

The browsing root is the configured account's file space, further restricted to the configured
``subdirectory`` setting if it is set.  All paths exchanged with the picker are relative to this
root and carry no leading slash; the empty string refers to the root itself.  Only the transport
and the sharing mediator know how to qualify these paths for the server.
"""
from .version import __version__
from .exceptions import RemoteStorageException
