# -*- coding: utf-8 -*-
"""
Chunked transfer engine: Azure blob stream to SharePoint document library.

The engine pulls byte fragments from a source stream and buffers them. Each
time the buffer holds more than the chunk threshold, exactly one threshold's
worth of bytes is written to SharePoint: the first chunk through StartUpload,
later ones through ContinueUpload. At end of stream the remaining bytes are
written through FinishUpload. Only a file smaller than the threshold goes
through a single one-time save.

A chunk is only cut while more bytes follow it, so a started chunked upload
always ends with a non-empty FinishUpload and a file of exactly N thresholds
never produces an empty trailing chunk. A file of exactly one threshold is
split at end of stream: the last fragment is held back for FinishUpload and
everything before it goes through StartUpload.
"""

import uuid
from enum import Enum
from .auth import get_blob_credential
from .blob_source import BlobSource
from .endpoints import EndpointDescriptor
from .errors import Blob2SpoError, ConfigError, TransferError
from .monitoring import ProcessStatus, TransferStatistics
from .spo_client import SPOClient
from .utils import is_debug_enabled

MIB = 1024 * 1024

DEFAULT_CHUNK_SIZE_MB = 64
DEFAULT_CHUNK_THRESHOLD = DEFAULT_CHUNK_SIZE_MB * MIB


class TransferState(Enum):
    IDLE = "idle"
    DOWNLOADING = "downloading"
    SIMPLE_UPLOAD = "simple_upload"
    CHUNKED_START = "chunked_start"
    CHUNKED_CONTINUE = "chunked_continue"
    CHUNKED_FINISH = "chunked_finish"
    DONE = "done"
    FAILED = "failed"


class TransferSession:
    """
    State of one source to destination file copy.

    Invariant: cumulative_offset is the number of bytes SharePoint has accepted
    for this file, and buffer holds exactly the bytes read but not yet uploaded.
    """

    def __init__(self, source_id, chunk_threshold):
        self.source_id = source_id
        self.chunk_threshold = chunk_threshold
        self.cumulative_offset = 0
        self.has_started_chunked_upload = False
        self.upload_session_id = None
        self.buffer = bytearray()
        self.bytes_read = 0
        self.last_fragment_size = 0
        self.state = TransferState.IDLE
        self.stats = TransferStatistics()

    def __repr__(self):
        return (f"TransferSession({self.source_id!r}, state={self.state.value}, "
                f"offset={self.cumulative_offset}, buffered={len(self.buffer)})")


class TransferEngine:
    """Drives one-time or Start/Continue/Finish uploads from a fragment stream"""

    def __init__(self, spo_client, chunk_threshold=DEFAULT_CHUNK_THRESHOLD, callback=None):
        """
        Args:
            spo_client (SPOClient): Writer used for every SharePoint call
            chunk_threshold (int): Bytes per chunked-upload request
            callback: Optional status callback(status, message, chunk_size)

        Raises:
            ConfigError: If chunk_threshold is not positive
        """
        if chunk_threshold <= 0:
            raise ConfigError(f"chunk threshold must be positive, got {chunk_threshold}")
        self.spo_client = spo_client
        self.chunk_threshold = chunk_threshold
        self.callback = callback

    def _notify(self, status, message, chunk_size):
        if self.callback is not None:
            self.callback(status, message, chunk_size)

    def run(self, fragments, destination, source_id=None):
        """
        Copy a fragment stream to the destination file.

        Args:
            fragments: Iterable of bytes objects (read lazily, one at a time)
            destination (EndpointDescriptor): Destination folder and file name
            source_id (str): Label used in messages

        Returns:
            TransferSession: The completed session

        Raises:
            TransferError: SharePoint rejected a write
            AuthError: Token or digest could not be obtained
            SourceReadError: The source stream failed
        """
        session = TransferSession(source_id or destination.file_name, self.chunk_threshold)

        try:
            session.state = TransferState.DOWNLOADING
            self._notify(ProcessStatus.START_DOWNLOAD, "Downloading", 0)

            for fragment in fragments:
                session.buffer.extend(fragment)
                session.bytes_read += len(fragment)
                session.last_fragment_size = len(fragment)
                session.stats.record_fragment(len(fragment))
                self._notify(ProcessStatus.DOWNLOADING, "Downloading", len(session.buffer))

                while len(session.buffer) > self.chunk_threshold:
                    self._upload_chunk(session, destination, self._take(session, self.chunk_threshold))

            self._notify(ProcessStatus.DOWNLOAD_COMPLETE, "Download Complete", session.bytes_read)
            self._flush(session, destination)
            session.state = TransferState.DONE

        except Blob2SpoError:
            session.state = TransferState.FAILED
            raise
        finally:
            session.stats.finish()

        return session

    @staticmethod
    def _take(session, size):
        """Remove and return the first size bytes of the buffer as one copy."""
        with memoryview(session.buffer) as view:
            chunk = bytes(view[:size])
        # in place, so the buffer never holds a second copy of the remainder
        del session.buffer[:size]
        return chunk

    def _check(self, outcome, operation):
        if not outcome:
            raise TransferError(operation, outcome.status_code, outcome.error_code, outcome.error_message)

    def _upload_chunk(self, session, destination, chunk):
        """Write one full chunk through StartUpload or ContinueUpload."""
        if not session.has_started_chunked_upload:
            session.state = TransferState.CHUNKED_START
            self._notify(ProcessStatus.START_UPLOAD, "Upload Start", len(chunk))

            # StartUpload fails with "file not found" unless the file already exists
            self._check(self.spo_client.upload_one_time(destination, b""), 'one_time')
            session.stats.record_write('one_time', 0)
            if is_debug_enabled():
                print(f"[DEBUG] Created empty file {destination.file_name}")

            session.upload_session_id = str(uuid.uuid4())
            outcome = self.spo_client.upload_start(destination.with_upload_id(session.upload_session_id), chunk)
            self._check(outcome, 'start')
            session.stats.record_write('start', len(chunk))
            session.has_started_chunked_upload = True
            message = "Upload Complete[StartUpload]"
        else:
            session.state = TransferState.CHUNKED_CONTINUE
            self._notify(ProcessStatus.CONTINUE_UPLOAD, "Upload Continue", len(chunk))
            target = destination.with_upload_id(session.upload_session_id).with_offset(session.cumulative_offset)
            self._check(self.spo_client.upload_continue(target, chunk), 'continue')
            session.stats.record_write('continue', len(chunk))
            message = "Upload Complete[ContinueUpload]"

        session.cumulative_offset += len(chunk)
        self._notify(ProcessStatus.UPLOAD_COMPLETE, message, len(chunk))

    def _flush(self, session, destination):
        """Write the bytes left at end of stream through the terminal call."""
        if not session.has_started_chunked_upload and len(session.buffer) >= self.chunk_threshold:
            # Exactly one threshold buffered: hold back the last fragment (at
            # least one byte, at most all but one) for FinishUpload
            tail = min(max(session.last_fragment_size, 1), len(session.buffer) - 1)
            self._upload_chunk(session, destination, self._take(session, len(session.buffer) - tail))

        data = bytes(session.buffer)

        if not session.has_started_chunked_upload:
            # Also covers zero-byte blobs: the destination file is still created
            session.state = TransferState.SIMPLE_UPLOAD
            self._notify(ProcessStatus.START_UPLOAD, "Upload Start", len(data))
            self._check(self.spo_client.upload_one_time(destination, data), 'one_time')
            session.stats.record_write('one_time', len(data))
            message = "Upload Complete"
        else:
            session.state = TransferState.CHUNKED_FINISH
            self._notify(ProcessStatus.FINISH_UPLOAD, "Upload Finish", len(data))
            target = destination.with_upload_id(session.upload_session_id).with_offset(session.cumulative_offset)
            self._check(self.spo_client.upload_finish(target, data), 'finish')
            session.stats.record_write('finish', len(data))
            message = "Upload Complete[FinishUpload]"

        session.cumulative_offset += len(data)
        session.buffer = bytearray()
        self._notify(ProcessStatus.UPLOAD_COMPLETE, message, len(data))


def copy_blob_to_spo(config, callback=None, credential=None, source=None, spo_client=None):
    """
    Read a blob from Azure Storage and upload it to SharePoint Online.

    Args:
        config (Config): Transfer configuration
        callback: Optional status callback(status, message, chunk_size)
        credential: Blob credential (default: DefaultAzureCredential)
        source (BlobSource): Pre-built source (default: built from config)
        spo_client (SPOClient): Pre-built writer (default: built from config)

    Returns:
        TransferSession: The completed session, including its statistics

    Raises:
        Blob2SpoError: Any auth, source or transfer failure
    """
    if source is None:
        source = BlobSource(
            config.storage_account,
            config.container_name,
            config.blob_name,
            credential=credential if credential is not None else get_blob_credential()
        )

    if spo_client is None:
        spo_client = SPOClient(
            config.tenant_id,
            config.client_id,
            config.client_secret,
            config.spo_domain,
            auth_provider=config.auth_provider,
            login_endpoint=config.login_endpoint,
            max_retries=config.max_retry,
            refresh_digest=config.refresh_digest
        )

    destination = EndpointDescriptor(
        domain=config.spo_domain,
        site=config.spo_site,
        server_relative_path=config.spo_path,
        file_name=config.file_name or config.blob_name
    )

    engine = TransferEngine(spo_client, chunk_threshold=config.chunk_size_bytes, callback=callback)
    return engine.run(source.open_stream(), destination, source_id=source.source_id)
