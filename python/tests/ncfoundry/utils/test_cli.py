import os, sys, pdb, json, argparse, logging, tempfile
import unittest as test

from ncfoundry.utils import cli
from ncfoundry import config as cfgmod

class TestModFunctions(test.TestCase):

    def test_define_prog_opts(self):
        p = cli.define_prog_opts("ncshare", "share files")
        self.assertEqual(p.prog, "ncshare")
        self.assertIn("share files", p.description)
        self.assertIn("help specifically on CMD", p.epilog)

        args = p.parse_args([])
        self.assertIsNone(args.conf)
        self.assertIsNone(args.settingsfile)
        self.assertIsNone(args.logfile)
        self.assertFalse(args.quiet)
        self.assertFalse(args.verbose)
        self.assertFalse(args.debug)

        args = p.parse_args("-q -D -c conf.yml -s settings.json -l x.log".split())
        self.assertEqual(args.conf, "conf.yml")
        self.assertEqual(args.settingsfile, "settings.json")
        self.assertEqual(args.logfile, "x.log")
        self.assertTrue(args.quiet)
        self.assertTrue(args.debug)

        parser = argparse.ArgumentParser("fred", None, "go to work", "good work")
        p = cli.define_prog_opts("goob", parser=parser)
        self.assertTrue(p is parser)
        self.assertEqual(p.prog, "fred")
        self.assertTrue(p.epilog.endswith("good work"))

    def test_CommandFailure(self):
        ex = cli.CommandFailure("ls", "hey, don't do that!", 3)
        self.assertEqual(ex.cmd, "ls")
        self.assertEqual(ex.stat, 3)
        self.assertEqual(str(ex), "hey, don't do that!")

        ex = cli.CommandFailure("ls", None, cause=ValueError("bad value"))
        self.assertEqual(ex.stat, 1)
        self.assertEqual(str(ex), "bad value")

class _EchoCmd(object):
    default_name = "echo"
    help = "echo the word"
    description = "echo the given word"

    def __init__(self):
        self.executed = []

    def load_into(self, subparser, current_dests=None, as_cmd=None):
        subparser.add_argument("word", type=str)
        return None

    def execute(self, args, config, log):
        if args.word == "fail":
            raise cli.CommandFailure(None, "failed on request", 4)
        self.executed.append((args.word, config))

class TestCLISuite(test.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory(prefix="_test_cli.")
        self.cmd = _EchoCmd()
        self.suite = cli.CLISuite("tester")
        self.suite.load_subcommand(self.cmd)

    def tearDown(self):
        cfgmod.configure_log(config={})
        self.tmpdir.cleanup()

    def test_load_subcommand(self):
        args = self.suite.parse_args(["echo", "hello"])
        self.assertEqual(args.cmd, "echo")
        self.assertEqual(args.word, "hello")

        with self.assertRaises(ValueError):
            self.suite.load_subcommand(object())

    def test_extract_config_for_cmd(self):
        config = { "loglevel": "INFO", "settings": { "url": "https://a.example.com/" },
                   "cmd": { "echo": { "settings": { "user_name": "alice" } } } }
        out = self.suite.extract_config_for_cmd(config, "echo")
        self.assertNotIn("cmd", out)
        self.assertEqual(out['settings'], { "url": "https://a.example.com/", "user_name": "alice" })
        self.assertEqual(self.suite.extract_config_for_cmd({ "a": 1 }, "echo"), { "a": 1 })

    def test_execute(self):
        conffile = os.path.join(self.tmpdir.name, "conf.json")
        with open(conffile, 'w') as fd:
            json.dump({ "settings": { "url": "https://a.example.com/" } }, fd)

        self.suite.execute(["-q", "-c", conffile, "echo", "hello"])
        self.assertEqual(self.cmd.executed[0][0], "hello")
        self.assertEqual(self.cmd.executed[0][1]['settings']['url'], "https://a.example.com/")

        self.suite.execute(["-q", "-s", "settings.json", "echo", "again"])
        self.assertEqual(self.cmd.executed[1][1]['settings_file'], "settings.json")

    def test_execute_failures(self):
        with self.assertRaises(cli.CommandFailure) as cm:
            self.suite.execute(["-q"])
        self.assertEqual(cm.exception.stat, 2)

        with self.assertRaises(cli.CommandFailure) as cm:
            self.suite.execute(["-q", "echo", "fail"])
        self.assertEqual(cm.exception.stat, 4)
        self.assertEqual(cm.exception.cmd, "echo")

        with self.assertRaises(cli.CommandFailure) as cm:
            self.suite.execute(["-q", "-c", os.path.join(self.tmpdir.name, "goob.yml"), "echo", "hi"])
        self.assertEqual(cm.exception.stat, 6)

    def test_logfile(self):
        logfile = os.path.join(self.tmpdir.name, "tester.log")
        self.suite.execute(["-q", "-l", logfile, "echo", "hello"])
        self.assertTrue(os.path.exists(logfile))
        self.assertEqual(cfgmod.global_logfile, logfile)


if __name__ == '__main__':
    test.main()
