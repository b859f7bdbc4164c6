"""
CLI command that selects a file for display, creating a public link for it if necessary, and
prints the file's public URL
"""
import argparse
from collections.abc import Mapping
from logging import Logger

from . import create_session, failure_from
from ..utils.cli import CommandFailure

default_name = "share"
help = "print a public URL for a file, creating a public link if needed"
description = \
"""select the file with the given path and print the public URL that it can be fetched from.
If the file does not already have a public link, one is created after confirmation (which
is requested on the terminal unless --yes is given or the skip_confirmation setting is set).
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
    p.add_argument("path", metavar="PATH", type=str,
                   help="the path to the file to share, relative to the browsing root")
    p.add_argument("-y", "--yes", action="store_true", dest="yes",
                   help="create a public link without asking for confirmation")
    return None

def ask(path: str) -> bool:
    """
    ask the user on the terminal to confirm the creation of a public link for the given path
    """
    try:
        answer = input(f"Create a public link for {path}? [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")

def execute(args, config: Mapping=None, log: Logger=None):
    confirm = (lambda p: True) if args.yes else ask
    session = create_session(config or {}, log, confirm)
    try:
        url = session.select_file(args.path)
    except ValueError as ex:
        raise CommandFailure(default_name, f"{args.path}: not a file path", 2, ex)
    if not url:
        if session.last_error:
            raise failure_from(session, default_name)
        raise CommandFailure(default_name, f"{args.path}: public link creation declined", 1)
    print(url)
