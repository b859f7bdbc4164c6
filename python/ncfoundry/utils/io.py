"""
Utility functions and classes for reading and writing the JSON files that persist settings
"""
from collections import OrderedDict
import json, os, threading
try:
    import fcntl
except ImportError:
    fcntl = None

from .logging import blab, utilslog
log = utilslog

__all__ = [ 'LockedFile', 'read_json', 'write_json', 'update_json' ]

class _ReadWriteLock(object):
    """
    a lock allowing many simultaneous holders of a shared lock or a single holder of an
    exclusive one.
    """
    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    def acquire_shared(self):
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1

    def release_shared(self):
        with self._cond:
            self._readers -= 1
            if self._readers <= 0:
                self._readers = 0
                self._cond.notify_all()

    def acquire_exclusive(self):
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True

    def release_exclusive(self):
        with self._cond:
            self._writing = False
            self._cond.notify_all()

class LockedFile(object):
    """
    A file opened in a locked state: a shared lock when opened for reading only, an exclusive
    lock when opened for writing (i.e. the mode includes 'w', 'a' or '+').  Locking applies both
    across threads of this process and (where ``fcntl`` is available) across processes.

    .. code-block:: python

       with LockedFile(filename, 'r+') as fd:
           data = json.load(fd)
    """
    _thread_locks = {}
    _class_lock = threading.Lock()

    @classmethod
    def _get_thread_lock_for(cls, filepath):
        filepath = os.path.abspath(filepath)
        with cls._class_lock:
            if filepath not in cls._thread_locks:
                cls._thread_locks[filepath] = _ReadWriteLock()
            return cls._thread_locks[filepath]

    def __init__(self, filename, mode='r'):
        self.mode = mode
        self._fo = None
        self._fname = str(filename)
        self._writing = any(c in mode for c in "wa+")
        self._thread_lock = self._get_thread_lock_for(self._fname)

    @property
    def fo(self):
        """
        the open file object or None if the file is not currently open
        """
        return self._fo

    def open(self):
        if self._fo:
            raise RuntimeError(self._fname+": file is already open")

        if self._writing:
            self._thread_lock.acquire_exclusive()
        else:
            self._thread_lock.acquire_shared()
        try:
            self._fo = open(self._fname, self.mode)
            if fcntl:
                fcntl.lockf(self._fo, (self._writing and fcntl.LOCK_EX) or fcntl.LOCK_SH)
        except Exception:
            if self._fo:
                self._fo.close()
                self._fo = None
            self._release_thread_lock()
            raise
        return self._fo

    def _release_thread_lock(self):
        if self._writing:
            self._thread_lock.release_exclusive()
        else:
            self._thread_lock.release_shared()

    def close(self):
        if not self._fo:
            return
        try:
            self._fo.close()
        finally:
            self._fo = None
            self._release_thread_lock()

    def __enter__(self):
        return self.open()

    def __exit__(self, e1, e2, e3):
        self.close()
        return False

def _dump(jsdata, fd, indent):
    json.dump(jsdata, fd, indent=indent, separators=(',', ': '))

def read_json(jsonfile):
    """
    read the JSON data from the specified file while holding a shared lock

    :param str   jsonfile:  the path to the JSON file to read.
    :raise IOError:  if there is an error while acquiring the lock or reading
                     the file contents
    :raise ValueError:  if JSON format errors are detected.
    """
    with LockedFile(jsonfile) as fd:
        blab(log, "Acquired shared lock for reading: %s", jsonfile)
        return json.load(fd, object_pairs_hook=OrderedDict)

def write_json(jsdata, destfile, indent=4):
    """
    write out the given JSON data into a file with pretty print formatting while holding an
    exclusive lock.
    """
    with LockedFile(destfile, 'a') as fd:
        blab(log, "Acquired exclusive lock for writing: %s", destfile)
        fd.truncate(0)
        _dump(jsdata, fd, indent)

def update_json(jsonfile, update, indent=4):
    """
    update the JSON data in an existing file in place, holding an exclusive lock across the read
    and the rewrite.

    :param str  jsonfile:  the path to the JSON file to update
    :param func update:    a function that is passed the file's data and modifies it in place
    :return:  the updated data
    :raise ValueError:  if the file's current contents are not valid JSON
    """
    with LockedFile(jsonfile, 'r+') as fd:
        blab(log, "Acquired exclusive lock for updating: %s", jsonfile)
        data = json.load(fd, object_pairs_hook=OrderedDict)
        update(data)
        fd.seek(0)
        fd.truncate()
        _dump(data, fd, indent)
    return data
