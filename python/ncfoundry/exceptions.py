"""
Customized exceptions that allow code to handle error conditions
"""

class RemoteStorageException(Exception):
    """
    an exception indicting a problem interacting with the remote storage (Nextcloud) instance.

    This class serves as a base class for all exceptions raised in this code
    """

    def __init__(self, message: str=None):
        if not message:
            message = "Unspecified problem accessing the remote storage"
        super(RemoteStorageException, self).__init__(message)


class ConfigurationException(RemoteStorageException):
    """
    an exception indicating that the integration is missing required configuration or that the
    configuration is inconsistent.  Where feasible, this is raised before any network request
    is attempted.
    """

    def __init__(self, message: str=None, param: str=None):
        """
        create the exception

        :param str message:  an explanation of the cause of the error
        :param str param:    the name of the setting or parameter that is missing or erroneous
        """
        if not message:
            message = "Configuration error"
            if param:
                message += f": missing or bad value for {param}"
        super(ConfigurationException, self).__init__(message)
        self.param = param


class UnsetServerURL(ConfigurationException):
    """
    an exception indicating that the base URL for the remote storage server has not been set
    """
    def __init__(self, message: str=None):
        if not message:
            message = "The remote storage server URL has not been configured"
        super(UnsetServerURL, self).__init__(message, "url")


class UnsetCredentials(ConfigurationException):
    """
    an exception indicating that the account name or password for the remote storage server
    has not been set
    """
    def __init__(self, message: str=None, param: str=None):
        if not message:
            message = "The remote storage account credentials have not been configured"
        super(UnsetCredentials, self).__init__(message, param)


class RemoteServiceError(RemoteStorageException):
    """
    an exception indicating an error occurred while accessing a remote storage service endpoint.

    This class serves as a base class for more specific service access errors.
    """

    def __init__(self, message: str=None, ep: str=None, code: int=0, resptext: str=None):
        """
        create the exception

        :param str message:  an explanation of the cause of the error
        :param str ep:       the service endpoint that was being accessed
        :param int code:     the HTTP response code that was returned (if service responded)
        :param str resptext: the erroroneous response body that was returned, as text (if service responded)
        """
        if not message:
            message = "Error accessing remote storage"
            if ep:
                message += f" at {ep}"
            if code:
                message += f" ({str(code)})"
            if resptext:
                message += f"; unhandlable response:\n{resptext}"
        super(RemoteServiceError, self).__init__(message)
        self.ep = ep
        self.code = code or 0
        self.response = resptext


class RemoteCommError(RemoteServiceError):
    """
    an error indicating a failure communicating with the remote storage server.  This error
    typically covers network related errors, like failures to connect, dropped connection, DNS
    errors, and rejections of cross-origin requests.  Typically, the remote service did not get
    a chance to respond directly to the request.
    """
    def __init__(self, message: str=None, ep: str=None):
        """
        create the exception

        :param str message:  an explanation of the cause of the error
        :param str ep:       the service endpoint that was being accessed
        """
        if not message:
            message = "Remote storage communication failure"
            if ep:
                message += f" while accessing {ep}"
        super(RemoteCommError, self).__init__(message, ep)


class RemoteApiError(RemoteServiceError):
    """
    an error indicating that the remote server responded with a non-success status.  The
    ``code`` and ``reason`` attributes capture the status that was returned.
    """

    def __init__(self, message: str=None, code: int=0, ep: str=None, resptext: str=None,
                 reason: str=None):
        """
        create the exception
        :param str message:  an explanation of the cause of the error
        :param int code:     the HTTP (or OCS) status code that was returned
        :param str ep:       the service endpoint that was being accessed
        :param str resptext: the erroroneous response body that was returned, as text
        :param str reason:   the status reason phrase that accompanied the code
        """
        if not message:
            message = "Remote storage request failed"
            if code:
                message += f" ({str(code)}"
                if reason:
                    message += f" {reason}"
                message += ")"
            if ep:
                message += f" at {ep}"
        super(RemoteApiError, self).__init__(message, ep, code, resptext)
        self.reason = reason


class RemoteClientError(RemoteApiError):
    """
    an error indicating a client-side error during a request to the remote storage server.
    This error typically indicates that the client is using the service improperly, such as
    providing bad input data (i.e. code >= 400, < 500).
    """

    def __init__(self, message: str=None, code: int=0, ep: str=None, resptext: str=None,
                 reason: str=None):
        if not message:
            message = "Bad request made to remote storage"
            if code:
                message += f" ({str(code)})"
            if ep:
                message += f" at {ep}"
        super(RemoteClientError, self).__init__(message, code, ep, resptext, reason)


class RemoteResourceNotFound(RemoteClientError):
    """
    an error indicating that the resource (file or directory) requested from the remote storage
    does not exist.  This exception typically captures a 404 response.
    """

    def __init__(self, ep: str=None, message: str=None, resptext: str=None, code: int=404,
                 reason: str="Not Found"):
        if not message:
            message = "Requested resource not found"
            if ep:
                message += f": {ep}"
        super(RemoteResourceNotFound, self).__init__(message, code, ep, resptext, reason)


class RemoteUserUnauthorized(RemoteClientError):
    """
    an error indicating that the user represented by the supplied credentials is not
    authenticated or not authorized to access the resource as requested.  This exception
    typically captures a 401 or 403 response.
    """

    def __init__(self, ep: str=None, message: str=None, resptext: str=None, code: int=401,
                 reason: str=None):
        if not message:
            message = "User is not authorized for access as requested"
            if code:
                message += f" ({str(code)})"
            if ep:
                message += f": {ep}"
        super(RemoteUserUnauthorized, self).__init__(message, code, ep, resptext, reason)


class RemoteServerError(RemoteApiError):
    """
    an error indicating a server-side error during a request to the remote storage server.
    This error is typically the fault of the remote server (i.e. code >= 500) and not due to
    improper use of the service by the client.
    """

    def __init__(self, code: int=0, ep: str=None, resptext: str=None, message: str=None,
                 reason: str=None):
        if not message:
            message = "Unexpected remote storage server error"
            if ep:
                message += f" while accessing {ep}"
            if code:
                message += f": HTTP code: {str(code)}"
        super(RemoteServerError, self).__init__(message, code, ep, resptext, reason)


class UnexpectedRemoteResponse(RemoteServiceError):
    """
    an error that indicates that the remote server responded with unexpected or erroneous
    content.  The code may reflect a successful operation, but the returned content cannot be
    processed (e.g. due to format errors or a missing required field).
    """

    def __init__(self, message: str=None, ep: str=None, resptext: str=None, code: int=0):
        """
        create the exception
        :param str message:  an explanation of the cause of the error
        :param str ep:       the service endpoint that was being accessed
        :param str resptext: the erroroneous response body that was returned, as text
        :param int code:     the HTTP response code that was returned
        """
        if not message:
            message = "Unexpected content returned from remote storage"
            if ep:
                message += f" while accessing {ep}"
            if resptext:
                message += f"; unhandlable response:\n{resptext}"
        super(UnexpectedRemoteResponse, self).__init__(message, ep, code, resptext)


class DuplicateLinkError(RemoteStorageException):
    """
    an error indicating an attempt to create a public link for a path that already has one.
    """

    def __init__(self, path: str=None, message: str=None):
        if not message:
            message = "A public link already exists"
            if path:
                message += f" for {path}"
        super(DuplicateLinkError, self).__init__(message)
        self.path = path


class LinkRequestInProgress(DuplicateLinkError):
    """
    an error indicating that a public link for the given path is currently being looked up or
    created; a second, concurrent request for the same path is rejected.
    """

    def __init__(self, path: str=None, message: str=None):
        if not message:
            message = "A public link request is already in progress"
            if path:
                message += f" for {path}"
        super(LinkRequestInProgress, self).__init__(path, message)


class SessionBusy(RemoteStorageException):
    """
    an error indicating that a browse session was asked to start an operation while another
    one is still in flight.
    """

    def __init__(self, state: str=None, message: str=None):
        if not message:
            message = "Browse session is busy"
            if state:
                message += f" ({state})"
        super(SessionBusy, self).__init__(message)
        self.state = state
