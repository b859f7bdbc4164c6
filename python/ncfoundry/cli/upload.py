"""
CLI command that uploads a local file into the browsing root
"""
import argparse, os, mimetypes
from collections.abc import Mapping
from logging import Logger

from . import create_session, failure_from
from ..utils.cli import CommandFailure

default_name = "upload"
help = "upload a local file"
description = \
"""upload the given local file to the given path (relative to the browsing root), replacing
any file already there.  If the remote path ends with a slash, it is taken to be a directory,
and the local file's name is appended to it.
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
    p.add_argument("localfile", metavar="LOCALFILE", type=str, help="the file to upload")
    p.add_argument("remotepath", metavar="REMOTEPATH", type=str, nargs="?", default="",
                   help="the destination path; if not given, the file is uploaded into the root")
    p.add_argument("-t", "--content-type", metavar="TYPE", type=str, dest="ctype",
                   help="the media type to declare for the file; by default, it is guessed from "+
                        "the file's extension")
    return None

def execute(args, config: Mapping=None, log: Logger=None):
    if not os.path.isfile(args.localfile):
        raise CommandFailure(default_name, f"{args.localfile}: file not found", 3)
    try:
        with open(args.localfile, 'rb') as fd:
            data = fd.read()
    except OSError as ex:
        raise CommandFailure(default_name, f"{args.localfile}: unable to read file: {str(ex)}", 3, ex)

    dest = args.remotepath
    if not dest or dest.endswith('/'):
        dest += os.path.basename(args.localfile)
    ctype = args.ctype or mimetypes.guess_type(args.localfile)[0] or "application/octet-stream"

    session = create_session(config or {}, log)
    entry = session.upload(dest, data, ctype)
    if entry is None:
        raise failure_from(session, default_name)
    print(entry.href)
