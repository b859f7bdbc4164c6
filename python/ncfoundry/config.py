"""
Utilities for loading program configuration and setting up logging.

Configuration data is a (possibly nested) dictionary typically read from a YAML or JSON file
via :py:func:`load_from_file`.  The values that the browsing core reads at run time (the
server URL, credentials, etc.) are not read from here directly; they are accessed through the
:py:mod:`~ncfoundry.settings` contract, which may be initialized from the ``settings``
property of a configuration.
"""
import os, json, logging
from collections.abc import Mapping
from copy import deepcopy

import yaml

from .exceptions import ConfigurationException

NORMAL = logging.DEBUG + 5
logging.addLevelName(NORMAL, "NORMAL")

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"
_log_handler = None
global_logfile = None

def load_from_file(configfile: str) -> Mapping:
    """
    read the configuration from the given file and return it as a dictionary.  The file name
    extension is used to determine its format (with YAML being the default).
    """
    configfile = str(configfile)
    try:
        with open(configfile) as fd:
            if configfile.endswith('.json'):
                return json.load(fd)
            data = yaml.safe_load(fd)
    except json.JSONDecodeError as ex:
        raise ConfigurationException("%s: JSON format error: %s" % (configfile, str(ex))) from ex
    except yaml.YAMLError as ex:
        raise ConfigurationException("%s: YAML format error: %s" % (configfile, str(ex))) from ex
    except OSError as ex:
        raise ConfigurationException("%s: unable to read config file: %s" %
                                     (configfile, str(ex))) from ex

    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ConfigurationException("%s: config file does not contain a dictionary" % configfile)
    return data

def merge_config(primary: Mapping, defconf: Mapping) -> Mapping:
    """
    merge the primary configuration dictionary into the default configuration dictionary and
    return the result as a new dictionary.  Values in ``primary`` win; sub-dictionaries are
    merged recursively.
    """
    out = deepcopy(defconf)
    for key, val in primary.items():
        if isinstance(val, Mapping) and isinstance(out.get(key), Mapping):
            out[key] = merge_config(val, out[key])
        else:
            out[key] = deepcopy(val)
    return out

def configure_log(logfile: str=None, level: int=None, format: str=None, config: Mapping=None,
                  addstderr=False):
    """
    configure the root logger to send messages to a log file.

    :param str logfile:   the path to the log file; if relative, it is taken to be relative
                          to ``config['logdir']`` (if set).  If not given, ``config['logfile']``
                          is used.
    :param int level:     the minimum level of messages to record; default: ``config['loglevel']``
                          or NORMAL.
    :param str format:    the message format to use; default: ``config['logformat']``
    :param dict config:   the configuration to pull logging parameters from
    :param bool addstderr:  if True, also send messages to standard error
    """
    global _log_handler, global_logfile
    if not config:
        config = {}
    if not logfile:
        logfile = config.get('logfile')
    if level is None:
        level = config.get('loglevel', NORMAL)
        if isinstance(level, str):
            level = logging.getLevelName(level.upper())
            if not isinstance(level, int):
                raise ConfigurationException("loglevel: unrecognized level name: "+config['loglevel'])
    if not format:
        format = config.get('logformat', LOG_FORMAT)

    rootlog = logging.getLogger()
    if _log_handler:
        rootlog.removeHandler(_log_handler)
        _log_handler = None

    if logfile:
        if not os.path.isabs(logfile) and config.get('logdir'):
            logfile = os.path.join(config['logdir'], logfile)
        _log_handler = logging.FileHandler(logfile)
        global_logfile = logfile
    elif addstderr:
        _log_handler = logging.StreamHandler()

    if _log_handler:
        _log_handler.setLevel(level)
        _log_handler.setFormatter(logging.Formatter(format))
        rootlog.addHandler(_log_handler)
    rootlog.setLevel(level)
