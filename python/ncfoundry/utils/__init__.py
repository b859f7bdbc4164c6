"""
Utility functions and classes used across the ncfoundry package
"""
from .io import LockedFile, read_json, write_json, update_json
