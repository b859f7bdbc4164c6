"""
CLI command that prints the path that a public URL was created for
"""
import argparse
from collections.abc import Mapping
from logging import Logger

from . import open_settings
from ..correspond import PathUrlStore, display_name_for_url
from ..utils.cli import CommandFailure

default_name = "resolve"
help = "print the path of the file that a public URL refers to"
description = \
"""look up the given public URL in the saved URL map and print the path (relative to the
browsing root) of the file it was created for.  If the URL is not in the map, a display name
derived from the URL is printed instead (unless --strict is given).
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
    p.add_argument("url", metavar="URL", type=str, help="the public URL to resolve")
    p.add_argument("-S", "--strict", action="store_true", dest="strict",
                   help="fail if the URL is not found in the saved URL map")
    return None

def execute(args, config: Mapping=None, log: Logger=None):
    store = PathUrlStore(open_settings(config or {}, log), log=log.getChild("correspond"))
    path = store.get(args.url)
    if not path:
        if args.strict:
            raise CommandFailure(default_name, f"{args.url}: URL not found in URL map", 1)
        path = display_name_for_url(args.url)
    print(path)
