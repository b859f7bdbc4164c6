"""
Utility logging functions
"""
import logging

utilslog = logging.getLogger("ncfoundry.utils")
BLAB = logging.DEBUG - 1

def blab(log, msg, *args, **kwargs):
    """
    log a verbose message. This uses a log level, BLAB, that is lower than
    DEBUG; in other words when a log's level is set to DEBUG, this message
    will not be displayed.  This is intended for messages that would appear
    voluminously if the level were set to BLAB, such as full response bodies
    from the remote server.

    :param Logger log:  the Logger object to record to
    :param str    msg:  the message to write
    :param args:        treat msg as a template and insert these values
    :param kwargs:      other arbitrary keywords to pass to log.log()
    """
    log.log(BLAB, msg, *args, **kwargs)

def truncate_for_log(text, maxlen=500):
    """
    return a version of the given text short enough to include in a log message
    """
    if text is None:
        return ""
    if isinstance(text, (bytes, bytearray)):
        return f"<{len(text)} bytes>"
    text = str(text)
    if len(text) > maxlen:
        text = text[:maxlen] + "..."
    return text
