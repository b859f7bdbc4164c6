"""
CLI command that creates a directory in the browsing root
"""
import argparse
from collections.abc import Mapping
from logging import Logger

from . import create_session, failure_from

default_name = "mkdir"
help = "create a directory"
description = \
"""create a directory with the given path (relative to the browsing root).  The parent
directory must already exist.
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
    p.add_argument("path", metavar="PATH", type=str, help="the path of the directory to create")
    return None

def execute(args, config: Mapping=None, log: Logger=None):
    session = create_session(config or {}, log)
    if session.create_directory(args.path) is None:
        raise failure_from(session, default_name)
