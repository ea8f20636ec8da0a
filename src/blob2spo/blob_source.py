# -*- coding: utf-8 -*-
"""
Azure Blob Storage source for transfers.

BlobSource streams a blob sequentially as byte fragments, one ranged GET at a
time, so the caller never holds more than one fragment of the download.
"""

from azure.core.exceptions import AzureError
from azure.storage.blob import BlobClient
from .errors import SourceReadError
from .utils import is_debug_enabled

# Size of each ranged GET issued by the download stream
DEFAULT_READ_CHUNK_SIZE = 4 * 1024 * 1024


def account_url_for(account):
    """Blob service URL for a storage account name, e.g. https://acct.blob.core.windows.net"""
    if account.startswith("http://") or account.startswith("https://"):
        return account.rstrip("/")
    return f"https://{account}.blob.core.windows.net"


class BlobSource:
    """Sequential reader over one blob"""

    def __init__(self, account, container, blob_name, credential=None,
                 read_chunk_size=DEFAULT_READ_CHUNK_SIZE, blob_client=None):
        """
        Args:
            account (str): Storage account name or full account URL
            container (str): Container name
            blob_name (str): Blob name
            credential: Any credential accepted by BlobClient (token credential, SAS, key)
            read_chunk_size (int): Bytes per ranged GET
            blob_client: Pre-built BlobClient (skips client construction)
        """
        self.account = account
        self.container = container
        self.blob_name = blob_name
        self.read_chunk_size = read_chunk_size
        if blob_client is None:
            blob_client = BlobClient(
                account_url=account_url_for(account),
                container_name=container,
                blob_name=blob_name,
                credential=credential,
                max_single_get_size=read_chunk_size,
                max_chunk_get_size=read_chunk_size
            )
        self.blob_client = blob_client

    @property
    def source_id(self):
        return f"{self.account}/{self.container}/{self.blob_name}"

    def open_stream(self):
        """
        Yield the blob's content as a sequence of non-empty byte fragments.

        Raises:
            SourceReadError: If the blob cannot be opened or the stream breaks
        """
        try:
            downloader = self.blob_client.download_blob(max_concurrency=1)
        except AzureError as e:
            raise SourceReadError(f"Cannot open blob {self.source_id}: {e}") from e

        if is_debug_enabled():
            print(f"[DEBUG] Opened blob {self.source_id} ({getattr(downloader, 'size', 'unknown')} bytes)")

        try:
            for fragment in downloader.chunks():
                if fragment:
                    yield fragment
        except AzureError as e:
            raise SourceReadError(f"Reading blob {self.source_id} failed: {e}") from e
