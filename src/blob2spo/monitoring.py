# -*- coding: utf-8 -*-
"""
Status reporting and statistics tracking for blob to SharePoint transfers.

This module provides the lifecycle statuses reported by the transfer engine,
a console status callback and per-session transfer statistics.
"""

import time
from enum import Enum
from .utils import is_debug_enabled


class ProcessStatus(Enum):
    """Lifecycle points reported to the status callback"""
    START_DOWNLOAD = "start_download"
    DOWNLOADING = "downloading"
    DOWNLOAD_COMPLETE = "download_complete"
    START_UPLOAD = "start_upload"
    CONTINUE_UPLOAD = "continue_upload"
    FINISH_UPLOAD = "finish_upload"
    UPLOAD_COMPLETE = "upload_complete"


def format_bytes(bytes_value):
    """
    Convert bytes to human-readable format.

    Args:
        bytes_value (int): Number of bytes to format

    Returns:
        str: Human-readable string (e.g., "1.5 MB")
    """
    for unit in ['B', 'KB', 'MB', 'GB']:
        if bytes_value < 1024.0:
            return f"{bytes_value:.1f} {unit}"
        bytes_value /= 1024.0
    return f"{bytes_value:.1f} TB"


def show_status(status, message, chunk_size):
    """
    Console status callback used by the CLI.

    Per-fragment download progress is only shown in DEBUG mode.

    Args:
        status (ProcessStatus): Lifecycle point
        message (str): Short description from the engine
        chunk_size (int): Bytes currently buffered or being written
    """
    if status is ProcessStatus.DOWNLOADING:
        if is_debug_enabled():
            print(f"[↓] {message}... {format_bytes(chunk_size)} buffered")
        return

    if status is ProcessStatus.START_DOWNLOAD:
        print(f"[*] {message}")
    elif status is ProcessStatus.DOWNLOAD_COMPLETE:
        print(f"[✓] {message} ({format_bytes(chunk_size)})")
    elif status in (ProcessStatus.START_UPLOAD, ProcessStatus.CONTINUE_UPLOAD, ProcessStatus.FINISH_UPLOAD):
        print(f"[→] {message} ({format_bytes(chunk_size)})")
    elif status is ProcessStatus.UPLOAD_COMPLETE:
        print(f"[✓] {message}")


class TransferStatistics:
    """Track statistics for one transfer session"""

    def __init__(self):
        """Initialize transfer statistics"""
        self.stats = {
            'bytes_downloaded': 0,
            'bytes_uploaded': 0,
            'fragments_read': 0,
            'one_time_writes': 0,
            'start_writes': 0,
            'continue_writes': 0,
            'finish_writes': 0,
        }
        self.started_at = time.time()
        self.finished_at = None

    def record_fragment(self, size):
        self.stats['fragments_read'] += 1
        self.stats['bytes_downloaded'] += size

    def record_write(self, operation, size):
        """
        Count one accepted write.

        Args:
            operation (str): 'one_time', 'start', 'continue' or 'finish'
            size (int): Bytes in the request body
        """
        self.stats[f'{operation}_writes'] += 1
        self.stats['bytes_uploaded'] += size

    def finish(self):
        self.finished_at = time.time()

    @property
    def elapsed(self):
        end = self.finished_at if self.finished_at is not None else time.time()
        return end - self.started_at

    @property
    def total_writes(self):
        return (self.stats['one_time_writes'] + self.stats['start_writes'] +
                self.stats['continue_writes'] + self.stats['finish_writes'])

    def print_summary(self):
        """Print final summary report of the transfer."""
        print(f"[STATS] Transfer Statistics:")
        print(f"   - Fragments read:           {self.stats['fragments_read']:>6}")
        print(f"   - One-time saves:           {self.stats['one_time_writes']:>6}")
        print(f"   - StartUpload calls:        {self.stats['start_writes']:>6}")
        print(f"   - ContinueUpload calls:     {self.stats['continue_writes']:>6}")
        print(f"   - FinishUpload calls:       {self.stats['finish_writes']:>6}")

        print(f"\n[DATA] Transfer Summary:")
        print(f"   - Data downloaded: {format_bytes(self.stats['bytes_downloaded'])}")
        print(f"   - Data uploaded:   {format_bytes(self.stats['bytes_uploaded'])}")
        elapsed = self.elapsed
        print(f"   - Elapsed:         {elapsed:.1f}s")
        if elapsed > 0 and self.stats['bytes_uploaded'] > 0:
            print(f"   - Throughput:      {format_bytes(self.stats['bytes_uploaded'] / elapsed)}/s")
