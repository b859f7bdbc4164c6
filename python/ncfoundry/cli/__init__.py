"""
the ``ncshare`` command-line program for browsing a Nextcloud file space and handing out public
links to its files.  It exercises the same browse session that a virtual tabletop's file picker
uses, which makes it handy for checking a server's configuration.

The program is built from a suite of subcommands (see :py:mod:`ncfoundry.utils.cli`):
  - ``ls``:       list a directory
  - ``share``:    select a file, creating a public link for it if necessary, and print its URL
  - ``resolve``:  print the path that a previously handed-out public URL refers to
  - ``mkdir``:    create a directory
  - ``upload``:   upload a local file

The integration settings (server URL, credentials, etc.) are taken from the ``settings``
property of the configuration file given with ``-c``; if a settings file is given (via ``-s``
or the ``settings_file`` configuration property), the settings are read from and saved to it,
with the ``settings`` property providing the values when the file is first created.
"""
import logging, os, sys
from collections.abc import Mapping
from logging import Logger

from ..settings import Settings, InMemorySettings, FileSettings
from ..browse import BrowseSession, UNSET_URL, UNSET_CREDENTIALS
from ..clients.transport import NextcloudTransport
from ..exceptions import ConfigurationException
from ..utils import cli

description = \
"""browse a Nextcloud file space and share its files via public links

Each subcommand runs against the Nextcloud server described by the configured settings.  Use
-c to provide a configuration file and -s to provide a persistent settings file.
"""
epilog = None
default_prog_name = "ncshare"
default_conf_file = os.path.join(os.path.expanduser("~"), ".ncshare.yml")

# called with (settings, log) to create the transport used by commands
transport_factory = NextcloudTransport

def main(cmdname, args):
    """
    a function that executes the ``ncshare`` command-line tool.
    """
    from . import ls, share, resolve, mkdir, upload

    if not cmdname:
        cmdname = default_prog_name

    argparser = cli.define_prog_opts(cmdname, description, epilog)
    suite = cli.CLISuite(cmdname, default_conf_file, argparser)

    suite.load_subcommand(ls)
    suite.load_subcommand(share)
    suite.load_subcommand(resolve)
    suite.load_subcommand(mkdir)
    suite.load_subcommand(upload)

    suite.execute(args)
    return args

def open_settings(config: Mapping, log: Logger=None) -> Settings:
    """
    create the Settings instance described by the given configuration
    :raises ConfigurationException:  if the configuration is erroneous
    """
    initial = config.get('settings') or {}
    if not isinstance(initial, Mapping):
        raise ConfigurationException("settings: config property must be an object", "settings")

    sfile = config.get('settings_file')
    if sfile:
        if not os.path.isabs(sfile) and config.get('working_dir'):
            sfile = os.path.join(config['working_dir'], sfile)
        return FileSettings(sfile, initial, log.getChild("settings") if log else None)
    return InMemorySettings(initial)

def create_session(config: Mapping, log: Logger, confirm=None) -> BrowseSession:
    """
    create a BrowseSession for executing a command.

    :param dict config:   the program configuration
    :param Logger log:    the command's Logger
    :param func confirm:  the function to call to confirm the creation of a public link
    """
    settings = open_settings(config, log)
    transport = transport_factory(settings, log.getChild("transport"))
    return BrowseSession(settings, transport, confirm=confirm,
                         annotate_links=config.get('annotate_links', True),
                         log=log.getChild("session"))

def failure_from(session: BrowseSession, cmdname: str) -> cli.CommandFailure:
    """
    return a CommandFailure that describes the session's most recent failure
    """
    err = session.last_error
    if err is None:
        return cli.CommandFailure(cmdname, "Remote storage operation failed", 5)
    stat = 5
    if err.category in (UNSET_URL, UNSET_CREDENTIALS):
        stat = 6
    return cli.CommandFailure(cmdname, err.message, stat, err.exception)

def run():
    """
    execute ``ncshare`` with the current process's command-line arguments and exit
    """
    prog = os.path.splitext(os.path.basename(sys.argv[0]))[0] or default_prog_name
    try:
        main(prog, sys.argv[1:])
        sys.exit(0)
    except cli.CommandFailure as ex:
        logging.getLogger(f"{prog} {ex.cmd or ''}".strip()).critical(str(ex))
        sys.exit(ex.stat)
    except ConfigurationException as ex:
        logging.getLogger(prog).critical("Config error: "+str(ex))
        sys.exit(6)
    except Exception as ex:
        logging.getLogger(prog).exception(ex)
        sys.exit(200)
