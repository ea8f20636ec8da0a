# -*- coding: utf-8 -*-
import pytest
from azure.core.exceptions import ResourceNotFoundError, ServiceResponseError

from blob2spo.blob_source import BlobSource, account_url_for
from blob2spo.errors import SourceReadError


class FakeDownloader:
    def __init__(self, chunks, fail_after=None):
        self._chunks = chunks
        self.fail_after = fail_after
        self.size = sum(len(c) for c in chunks)

    def chunks(self):
        for index, chunk in enumerate(self._chunks):
            if self.fail_after is not None and index == self.fail_after:
                raise ServiceResponseError("connection reset by peer")
            yield chunk


class FakeBlobClient:
    def __init__(self, downloader=None, error=None):
        self.downloader = downloader
        self.error = error
        self.kwargs = None

    def download_blob(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return self.downloader


def test_account_url_for_name_and_url():
    assert account_url_for("mystorage") == "https://mystorage.blob.core.windows.net"
    assert account_url_for("http://127.0.0.1:10000/devstoreaccount1/") == "http://127.0.0.1:10000/devstoreaccount1"


def test_open_stream_yields_non_empty_fragments():
    client = FakeBlobClient(FakeDownloader([b"abc", b"", b"def"]))
    source = BlobSource("acct", "container", "data.bin", blob_client=client)

    assert list(source.open_stream()) == [b"abc", b"def"]
    assert client.kwargs == {'max_concurrency': 1}
    assert source.source_id == "acct/container/data.bin"


def test_missing_blob_raises_source_read_error():
    client = FakeBlobClient(error=ResourceNotFoundError("The specified blob does not exist."))
    source = BlobSource("acct", "container", "missing.bin", blob_client=client)

    with pytest.raises(SourceReadError, match="Cannot open blob acct/container/missing.bin"):
        list(source.open_stream())


def test_stream_fault_raises_source_read_error():
    client = FakeBlobClient(FakeDownloader([b"abc", b"def"], fail_after=1))
    stream = BlobSource("acct", "container", "data.bin", blob_client=client).open_stream()

    assert next(stream) == b"abc"
    with pytest.raises(SourceReadError, match="Reading blob"):
        next(stream)
