"""
CLI command that lists the contents of a directory in the browsing root
"""
import argparse
from collections.abc import Mapping
from logging import Logger

from . import create_session, failure_from

default_name = "ls"
help = "list the contents of a directory"
description = \
"""list the subdirectories and files found in the directory with the given path (relative to the
browsing root).  Directories are shown with a trailing slash; files that already have a public
link are marked with an asterisk.
"""

def load_into(subparser: argparse.ArgumentParser, current_dests: list=None, as_cmd: str=None):
    """
    load this command into a CLI by defining the command's arguments and options.
    :param argparser.ArgumentParser subparser:  the argument parser instance to define this command's
                                                interface into it
    :rtype: None
    """
    p = subparser
    p.description = description
    p.add_argument("path", metavar="PATH", type=str, nargs="?", default="",
                   help="the path to the directory to list; if not given, the root is listed")
    p.add_argument("-e", "--extension", metavar="EXT", action="append", dest="extensions",
                   help="only show files with the given extension (may be repeated)")
    p.add_argument("-L", "--long", action="store_true", dest="long",
                   help="also show each file's display URL")
    return None

def execute(args, config: Mapping=None, log: Logger=None):
    session = create_session(config or {}, log)
    listing = session.browse(args.path, args.extensions)
    if listing is None:
        raise failure_from(session, default_name)

    for d in listing.directories:
        print(d.name + "/")
    for f in listing.files:
        line = ("* " if f.linked else "  ") + f.name
        if args.long and f.display_url:
            line += "\t" + f.display_url
        print(line)
