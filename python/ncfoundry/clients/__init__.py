"""
Clients for accessing the Nextcloud server's APIs
"""
from .transport import NextcloudTransport
from .webdav import DAVFilesClient, RemoteEntry, DirectoryListing
from .sharing import PublicLinkMediator, ShareRecord
