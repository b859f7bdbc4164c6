import os, sys, pdb, json, logging, tempfile
import unittest as test

from ncfoundry import config as cfgmod
from ncfoundry.exceptions import ConfigurationException

class TestConfig(test.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory(prefix="_test_config.")
        self.tdir = self.tmpdir.name

    def tearDown(self):
        cfgmod.configure_log(config={})
        self.tmpdir.cleanup()

    def write(self, name, content):
        path = os.path.join(self.tdir, name)
        with open(path, 'w') as fd:
            fd.write(content)
        return path

    def test_load_yaml(self):
        path = self.write("conf.yml",
                          "logfile: ncshare.log\nsettings:\n  url: https://cloud.example.com\n"
                          "  user_name: alice\n")
        data = cfgmod.load_from_file(path)
        self.assertEqual(data['logfile'], "ncshare.log")
        self.assertEqual(data['settings']['url'], "https://cloud.example.com")
        self.assertEqual(data['settings']['user_name'], "alice")

    def test_load_json(self):
        path = self.write("conf.json", json.dumps({"settings": {"subdirectory": "vtt"}}))
        data = cfgmod.load_from_file(path)
        self.assertEqual(data, {"settings": {"subdirectory": "vtt"}})

    def test_load_empty(self):
        path = self.write("conf.yml", "")
        self.assertEqual(cfgmod.load_from_file(path), {})

    def test_load_errors(self):
        with self.assertRaises(ConfigurationException):
            cfgmod.load_from_file(os.path.join(self.tdir, "missing.yml"))

        path = self.write("bad.json", "{ goob")
        with self.assertRaises(ConfigurationException):
            cfgmod.load_from_file(path)

        path = self.write("bad.yml", "settings: [ goob\n")
        with self.assertRaises(ConfigurationException):
            cfgmod.load_from_file(path)

        path = self.write("list.yml", "- a\n- b\n")
        with self.assertRaises(ConfigurationException):
            cfgmod.load_from_file(path)

    def test_merge_config(self):
        defc = { "loglevel": "INFO", "settings": { "url": "https://a.example.com", "user_name": "bob" } }
        prim = { "settings": { "user_name": "alice" }, "logfile": "x.log" }
        out = cfgmod.merge_config(prim, defc)
        self.assertEqual(out['loglevel'], "INFO")
        self.assertEqual(out['logfile'], "x.log")
        self.assertEqual(out['settings'], { "url": "https://a.example.com", "user_name": "alice" })
        self.assertEqual(defc['settings']['user_name'], "bob")

    def test_configure_log(self):
        config = { "logdir": self.tdir, "logfile": "test.log", "loglevel": "DEBUG" }
        cfgmod.configure_log(config=config)
        self.assertEqual(cfgmod.global_logfile, os.path.join(self.tdir, "test.log"))
        self.assertEqual(logging.getLogger().level, logging.DEBUG)

        logging.getLogger("ncfoundry.test").debug("hello from the test")
        self.assertTrue(os.path.exists(os.path.join(self.tdir, "test.log")))
        with open(os.path.join(self.tdir, "test.log")) as fd:
            self.assertIn("hello from the test", fd.read())

    def test_configure_log_badlevel(self):
        with self.assertRaises(ConfigurationException):
            cfgmod.configure_log(config={ "loglevel": "CHATTY" })

    def test_normal_level(self):
        self.assertTrue(logging.DEBUG < cfgmod.NORMAL < logging.INFO)
        self.assertEqual(logging.getLevelName(cfgmod.NORMAL), "NORMAL")


if __name__ == '__main__':
    test.main()
