# -*- coding: utf-8 -*-
"""
Error kinds for blob to SharePoint transfers.

Library code raises these and never exits the process. The CLI turns them
into a non-zero exit code, the HTTP trigger into a 500 response.
"""


class Blob2SpoError(Exception):
    """Base class for every error raised by the transfer core"""

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message


class ConfigError(Blob2SpoError, ValueError):
    """Missing or invalid configuration value"""


class AuthError(Blob2SpoError):
    """Token or form digest could not be obtained"""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class SourceReadError(Blob2SpoError):
    """The blob stream failed while reading"""


class TransferError(Blob2SpoError):
    """
    SharePoint rejected a file write.

    Attributes:
        operation (str): Write that failed ('one_time', 'start', 'continue', 'finish')
        status_code (int): HTTP status returned by SharePoint (None for network faults)
        code (str): SharePoint error code, e.g. '-2147024891, System.UnauthorizedAccessException'
        error_message (str): SharePoint error message text
    """

    def __init__(self, operation, status_code=None, code=None, error_message=None):
        self.operation = operation
        self.status_code = status_code
        self.code = code
        self.error_message = error_message

        details = f"{code}: {error_message}" if code else (error_message or "unknown error")
        if status_code is not None:
            message = f"SharePoint {operation} upload failed ({status_code}) - {details}"
        else:
            message = f"SharePoint {operation} upload failed - {details}"
        super().__init__(message)
