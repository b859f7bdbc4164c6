"""
The settings contract through which the browsing core reads its configuration and persists the
path-to-URL correspondence map.

A host application supplies its own settings storage; this module defines the narrow interface
the core needs from it (:py:class:`Settings`) along with two implementations:
:py:class:`InMemorySettings`, a dictionary-backed version for testing and embedding, and
:py:class:`FileSettings`, which persists the values into a JSON file.

Values are read and replaced whole: there are no partial-update primitives.  A writer that
wants to modify an object-valued setting (like ``path_url_map``) must read it, change it, and
write it back, accepting that the last writer wins.
"""
import os, logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from copy import deepcopy
from typing import Callable, Any

from .utils.io import read_json, write_json, update_json
from .exceptions import ConfigurationException

URL = "url"
USER_NAME = "user_name"
PASSWORD = "password"
SUBDIRECTORY = "subdirectory"
SKIP_CONFIRMATION = "skip_confirmation"
PATH_URL_MAP = "path_url_map"
SOURCE = "source"

DEFAULTS = {
    URL:               "",
    USER_NAME:         "",
    PASSWORD:          "",
    SUBDIRECTORY:      "",
    SKIP_CONFIRMATION: False,
    PATH_URL_MAP:      {},
    SOURCE:            "nextcloud"
}

CONNECTION_KEYS = (URL, USER_NAME, SUBDIRECTORY)

SettingsListener = Callable[[str, Any], None]

class Settings(ABC):
    """
    an interface for reading and writing the integration's settings.  Listeners registered
    via :py:meth:`add_listener` are called with ``(key, value)`` after each :py:meth:`set`.
    """

    def __init__(self):
        self._listeners = []

    @abstractmethod
    def _get(self, key: str):
        """
        return the stored value for the given key or raise KeyError if it is not set
        """
        raise NotImplementedError()

    @abstractmethod
    def _set(self, key: str, value):
        raise NotImplementedError()

    def get(self, key: str, default=None):
        """
        return the value of the setting with the given name.  If it has not been set, the
        given default is returned; if that is None, the module default for the key is returned.
        Object values are returned as copies.
        """
        try:
            return deepcopy(self._get(key))
        except KeyError:
            if default is None:
                default = DEFAULTS.get(key)
            return deepcopy(default)

    def set(self, key: str, value):
        """
        replace the value of the setting with the given name and notify listeners
        """
        self._set(key, deepcopy(value))
        for listener in list(self._listeners):
            listener(key, value)

    def add_listener(self, listener: SettingsListener):
        """
        register a function to be called after any setting is changed
        """
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: SettingsListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def has_credentials(self) -> bool:
        """
        return True if both the account name and password have been set
        """
        return bool(self.get(USER_NAME)) and bool(self.get(PASSWORD))


class InMemorySettings(Settings):
    """
    a Settings implementation that keeps its values in a dictionary
    """

    def __init__(self, initial: Mapping=None):
        super(InMemorySettings, self).__init__()
        self._data = dict(deepcopy(initial)) if initial else {}

    def _get(self, key):
        return self._data[key]

    def _set(self, key, value):
        self._data[key] = value


class FileSettings(Settings):
    """
    a Settings implementation that persists its values as a JSON object in a file.  Each
    :py:meth:`set` is a locked read-modify-write of the whole file.
    """

    def __init__(self, filepath: str, initial: Mapping=None, log: logging.Logger=None):
        """
        :param str filepath:  the path to the JSON file to store settings in.  If it does not
                              exist, it will be created.
        :param dict initial:  values to write into the file if it does not yet exist
        """
        super(FileSettings, self).__init__()
        if not log:
            log = logging.getLogger("ncfoundry.settings")
        self.log = log
        self._path = str(filepath)

        parent = os.path.dirname(os.path.abspath(self._path))
        if not os.path.isdir(parent):
            raise ConfigurationException(f"{self._path}: settings file directory does not exist")
        if not os.path.exists(self._path):
            self.log.info("Creating settings file: %s", self._path)
            write_json(dict(initial or {}), self._path)

    def _read(self):
        try:
            return read_json(self._path)
        except ValueError as ex:
            raise ConfigurationException(f"{self._path}: settings file is not valid JSON: " +
                                         str(ex)) from ex

    def _get(self, key):
        return self._read()[key]

    def _set(self, key, value):
        def setval(data):
            data[key] = value
        try:
            update_json(self._path, setval)
        except ValueError as ex:
            raise ConfigurationException(f"{self._path}: settings file is not valid JSON: " +
                                         str(ex)) from ex
