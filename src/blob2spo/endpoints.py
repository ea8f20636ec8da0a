# -*- coding: utf-8 -*-
"""
SharePoint REST endpoint builder.

Renders the contextinfo URL and the four file-write URLs used by a transfer
(one-time save, start, continue and finish of a chunked upload). Every
function here is pure: the same descriptor always renders the same string.
"""

from dataclasses import dataclass, replace
from urllib.parse import quote


@dataclass(frozen=True)
class EndpointDescriptor:
    """
    Immutable description of one SharePoint destination file.

    Attributes:
        domain (str): Tenant short name, e.g. 'contoso' for contoso.sharepoint.com
        site (str): Site name from /sites/{site}
        server_relative_path (str): Folder path, e.g. '/sites/Team/Shared Documents'
        file_name (str): Destination file name
        upload_session_id (str): Chunked upload GUID, set once chunking begins
        file_offset (int): Byte offset of the next chunk
    """
    domain: str
    site: str
    server_relative_path: str
    file_name: str
    upload_session_id: str = None
    file_offset: int = None

    def with_upload_id(self, upload_session_id):
        """Return a copy bound to a chunked upload session."""
        return replace(self, upload_session_id=str(upload_session_id))

    def with_offset(self, file_offset):
        """Return a copy positioned at the given byte offset."""
        return replace(self, file_offset=int(file_offset))


def escape_segment(value):
    """
    Escape a path or file name for use inside an OData string literal.

    Single quotes are doubled, then the result is percent-encoded keeping '/'
    so that server-relative paths stay readable.
    """
    return quote(value.replace("'", "''"), safe="/")


def web_url(descriptor):
    """Site URL, e.g. https://contoso.sharepoint.com/sites/Team"""
    return f"https://{descriptor.domain}.sharepoint.com/sites/{quote(descriptor.site, safe='')}"


def api_base_url(descriptor):
    return f"{web_url(descriptor)}/_api"


def contextinfo_url(descriptor):
    return f"{api_base_url(descriptor)}/contextinfo"


def _folder(descriptor):
    return escape_segment(descriptor.server_relative_path.rstrip("/"))


def _file_path(descriptor):
    return f"{_folder(descriptor)}/{escape_segment(descriptor.file_name)}"


def _require_upload_id(descriptor):
    if not descriptor.upload_session_id:
        raise ValueError("upload_session_id is required for chunked upload endpoints")
    return descriptor.upload_session_id


def _require_offset(descriptor):
    if descriptor.file_offset is None:
        raise ValueError("file_offset is required for continue/finish upload endpoints")
    return descriptor.file_offset


def one_time_upload_url(descriptor):
    """Files/add endpoint; overwrites any existing file with the request body."""
    return (f"{api_base_url(descriptor)}/web/GetFolderByServerRelativeUrl('{_folder(descriptor)}')"
            f"/Files/add(url='{escape_segment(descriptor.file_name)}',overwrite=true)")


def start_upload_url(descriptor):
    upload_id = _require_upload_id(descriptor)
    return (f"{api_base_url(descriptor)}/web/GetFileByServerRelativeUrl('{_file_path(descriptor)}')"
            f"/StartUpload(uploadId=guid'{upload_id}')")


def continue_upload_url(descriptor):
    upload_id = _require_upload_id(descriptor)
    offset = _require_offset(descriptor)
    return (f"{api_base_url(descriptor)}/web/GetFileByServerRelativeUrl('{_file_path(descriptor)}')"
            f"/ContinueUpload(uploadId=guid'{upload_id}',fileOffset={offset})")


def finish_upload_url(descriptor):
    upload_id = _require_upload_id(descriptor)
    offset = _require_offset(descriptor)
    return (f"{api_base_url(descriptor)}/web/GetFileByServerRelativeUrl('{_file_path(descriptor)}')"
            f"/FinishUpload(uploadId=guid'{upload_id}',fileOffset={offset})")
