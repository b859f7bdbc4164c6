import os, sys, pdb, json, tempfile, threading
import unittest as test

from ncfoundry import settings as stgs
from ncfoundry.exceptions import ConfigurationException

class TestInMemorySettings(test.TestCase):

    def setUp(self):
        self.settings = stgs.InMemorySettings({ "url": "https://cloud.example.com/",
                                                "user_name": "alice" })

    def test_get(self):
        self.assertEqual(self.settings.get(stgs.URL), "https://cloud.example.com/")
        self.assertEqual(self.settings.get(stgs.USER_NAME), "alice")
        self.assertEqual(self.settings.get(stgs.PASSWORD), "")
        self.assertEqual(self.settings.get(stgs.PASSWORD, "secret"), "secret")
        self.assertIs(self.settings.get(stgs.SKIP_CONFIRMATION), False)
        self.assertEqual(self.settings.get(stgs.PATH_URL_MAP), {})
        self.assertEqual(self.settings.get(stgs.SOURCE), "nextcloud")
        self.assertIsNone(self.settings.get("goob"))

    def test_get_returns_copy(self):
        self.settings.set(stgs.PATH_URL_MAP, { "u1": "a.png" })
        data = self.settings.get(stgs.PATH_URL_MAP)
        data['u2'] = "b.png"
        self.assertEqual(self.settings.get(stgs.PATH_URL_MAP), { "u1": "a.png" })

    def test_set_and_listeners(self):
        heard = []
        listener = lambda k, v: heard.append((k, v))
        self.settings.add_listener(listener)
        self.settings.add_listener(listener)

        self.settings.set(stgs.SUBDIRECTORY, "vtt")
        self.assertEqual(self.settings.get(stgs.SUBDIRECTORY), "vtt")
        self.assertEqual(heard, [("subdirectory", "vtt")])

        self.settings.remove_listener(listener)
        self.settings.set(stgs.SUBDIRECTORY, "")
        self.assertEqual(len(heard), 1)

    def test_has_credentials(self):
        self.assertFalse(self.settings.has_credentials())
        self.settings.set(stgs.PASSWORD, "secret")
        self.assertTrue(self.settings.has_credentials())
        self.settings.set(stgs.USER_NAME, "")
        self.assertFalse(self.settings.has_credentials())

class TestFileSettings(test.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory(prefix="_test_settings.")
        self.sfile = os.path.join(self.tmpdir.name, "settings.json")

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_create(self):
        self.assertFalse(os.path.exists(self.sfile))
        settings = stgs.FileSettings(self.sfile, { "url": "https://cloud.example.com/" })
        self.assertTrue(os.path.exists(self.sfile))
        self.assertEqual(settings.get(stgs.URL), "https://cloud.example.com/")
        self.assertEqual(settings.get(stgs.USER_NAME), "")

        # initial values are only used when the file is created
        settings = stgs.FileSettings(self.sfile, { "url": "https://other.example.com/" })
        self.assertEqual(settings.get(stgs.URL), "https://cloud.example.com/")

    def test_persist(self):
        settings = stgs.FileSettings(self.sfile)
        settings.set(stgs.USER_NAME, "alice")
        settings.set(stgs.PATH_URL_MAP, { "https://cloud.example.com/s/tok/download/a.png": "a.png" })

        with open(self.sfile) as fd:
            data = json.load(fd)
        self.assertEqual(data['user_name'], "alice")
        self.assertEqual(data['path_url_map'],
                         { "https://cloud.example.com/s/tok/download/a.png": "a.png" })

        other = stgs.FileSettings(self.sfile)
        self.assertEqual(other.get(stgs.USER_NAME), "alice")

    def test_bad_dir(self):
        with self.assertRaises(ConfigurationException):
            stgs.FileSettings(os.path.join(self.tmpdir.name, "goob", "settings.json"))

    def test_bad_content(self):
        with open(self.sfile, 'w') as fd:
            fd.write("{ goob")
        settings = stgs.FileSettings(self.sfile)
        with self.assertRaises(ConfigurationException):
            settings.get(stgs.URL)
        with self.assertRaises(ConfigurationException):
            settings.set(stgs.URL, "https://cloud.example.com/")

    def test_concurrent_access(self):
        settings = stgs.FileSettings(self.sfile)
        errors = []

        def write(key):
            try:
                for i in range(25):
                    settings.set(key, i)
            except Exception as ex:
                errors.append(ex)

        def read():
            try:
                for i in range(50):
                    settings.get(stgs.URL)
            except Exception as ex:
                errors.append(ex)

        threads = [threading.Thread(target=write, args=("w%d" % n,), daemon=True) for n in range(4)]
        threads += [threading.Thread(target=read, daemon=True) for n in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(10)
            self.assertFalse(t.is_alive(), "settings access appears to be deadlocked")

        self.assertEqual(errors, [])
        with open(self.sfile) as fd:
            data = json.load(fd)
        for n in range(4):
            self.assertEqual(data["w%d" % n], 24)


if __name__ == '__main__':
    test.main()
