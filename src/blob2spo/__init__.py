# -*- coding: utf-8 -*-
"""
Blob to SharePoint Transfer Package
===================================

This package streams a file out of Azure Blob Storage and re-uploads it into a
SharePoint Online document library, chunking the transfer to stay under
SharePoint's per-request size limits.

Modules:
--------
- config: Command-line, environment and HTTP payload configuration
- auth: Blob credential and SharePoint token acquisition (ACS or MSAL)
- digest: Form digest (X-RequestDigest) provider
- endpoints: SharePoint REST URL builder
- spo_api: Request helper, file-write POST and error parsing
- spo_client: Per-session SharePoint writer
- blob_source: Sequential blob reader
- transfer: Chunked transfer engine
- monitoring: Status callback and transfer statistics
- http_trigger: Azure Functions custom handler app
- errors: Error kinds
- utils: Shared utility functions

Usage Example:
-------------
    from blob2spo.config import parse_config
    from blob2spo.transfer import copy_blob_to_spo
    from blob2spo.monitoring import show_status

    cfg = parse_config()
    session = copy_blob_to_spo(cfg, callback=show_status)
    session.stats.print_summary()
"""

__version__ = "1.0.0"

# Main exports for convenience
from .errors import Blob2SpoError, AuthError, TransferError, SourceReadError, ConfigError
from .config import parse_config, Config
from .auth import acquire_token, acquire_spo_token, acquire_entra_token, get_blob_credential
from .digest import get_form_digest, SPOAuthContext
from .endpoints import (
    EndpointDescriptor,
    contextinfo_url,
    one_time_upload_url,
    start_upload_url,
    continue_upload_url,
    finish_upload_url
)
from .spo_api import ChunkOutcome
from .spo_client import SPOClient
from .blob_source import BlobSource
from .monitoring import ProcessStatus, TransferStatistics, show_status, format_bytes
from .transfer import TransferEngine, TransferSession, TransferState, copy_blob_to_spo

__all__ = [
    # Errors
    'Blob2SpoError',
    'AuthError',
    'TransferError',
    'SourceReadError',
    'ConfigError',
    # Configuration
    'parse_config',
    'Config',
    # Authentication
    'acquire_token',
    'acquire_spo_token',
    'acquire_entra_token',
    'get_blob_credential',
    'get_form_digest',
    'SPOAuthContext',
    # Endpoints
    'EndpointDescriptor',
    'contextinfo_url',
    'one_time_upload_url',
    'start_upload_url',
    'continue_upload_url',
    'finish_upload_url',
    # Transfer
    'ChunkOutcome',
    'SPOClient',
    'BlobSource',
    'TransferEngine',
    'TransferSession',
    'TransferState',
    'copy_blob_to_spo',
    # Monitoring
    'ProcessStatus',
    'TransferStatistics',
    'show_status',
    'format_bytes',
]
