import os, sys, pdb
import unittest as test

from ncfoundry import previews as prv
from ncfoundry.clients.sim import SimNextcloudTransport
from ncfoundry.clients.webdav import DAVFilesClient, RemoteEntry
from ncfoundry.clients.transport import GET, SEARCH
from ncfoundry.settings import InMemorySettings
from ncfoundry.exceptions import *

class TestThumbnailCache(test.TestCase):

    def test_cache(self):
        cache = prv.ThumbnailCache()
        self.assertEqual(len(cache), 0)
        self.assertIsNone(cache.get("u1"))

        cache.put("u1", b"small")
        cache.put("u1", b"big", 256)
        self.assertEqual(cache.get("u1"), b"small")
        self.assertEqual(cache.get("u1", 256), b"big")
        self.assertIn("u1", cache)
        self.assertIn(("u1", 256), cache)
        self.assertNotIn("u2", cache)
        self.assertEqual(len(cache), 2)

        cache.clear()
        self.assertEqual(len(cache), 0)

class TestPreviewClient(test.TestCase):

    def setUp(self):
        self.settings = InMemorySettings({ "url": "https://cloud.example.com/",
                                           "user_name": "alice", "password": "secret" })
        self.sim = SimNextcloudTransport(self.settings)
        self.sim.add_file("img/cat.png", b"CAT")
        self.cli = prv.PreviewClient(self.sim)

    def test_get_preview(self):
        fid = self.sim.fileids["img/cat.png"]
        self.assertEqual(self.cli.get_preview(fid, 64), b"\x89PNG-preview-" + fid.encode() + b"-64")
        params = self.sim.calls[-1][3]
        self.assertEqual(params, { "fileId": fid, "x": "64", "y": "64", "a": "true" })

        with self.assertRaises(RemoteResourceNotFound):
            self.cli.get_preview("9999")

    def test_thumbnail_with_fileid(self):
        fid = self.sim.fileids["img/cat.png"]
        entry = RemoteEntry("img/cat.png", props={ "fileid": fid })
        data = self.cli.thumbnail_for(entry)
        self.assertTrue(data.startswith(b"\x89PNG-preview-"))
        self.assertEqual(self.sim.count(SEARCH), 0)

        self.assertEqual(self.cli.thumbnail_for(entry), data)
        self.assertEqual(self.sim.count(GET), 1)
        self.assertIn("img/cat.png", self.cli.cache)

    def test_thumbnail_via_search(self):
        entry = RemoteEntry("img/cat.png")
        entry.display_url = "https://cloud.example.com/remote.php/dav/files/alice/img/cat.png"
        data = self.cli.thumbnail_for(entry, 32)
        self.assertTrue(data.endswith(b"-32"))
        self.assertEqual(self.sim.count(SEARCH), 1)
        self.assertIn((entry.display_url, 32), self.cli.cache)

    def test_thumbnail_unavailable(self):
        self.assertIsNone(self.cli.thumbnail_for(RemoteEntry("img/goob.png")))

        self.sim.fail_on(GET, RemoteServerError(503, prv.PREVIEW_ENDPOINT))
        entry = RemoteEntry("img/cat.png", props={ "fileid": self.sim.fileids["img/cat.png"] })
        self.assertIsNone(self.cli.thumbnail_for(entry))
        self.assertEqual(len(self.cli.cache), 0)


if __name__ == '__main__':
    test.main()
