#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Azure Blob to SharePoint Copy Script
====================================

PURPOSE:
    Streams one blob out of Azure Blob Storage and uploads it into a SharePoint
    Online document library without storing the whole file locally. Files
    larger than the chunk threshold are sent with SharePoint's chunked upload
    protocol (StartUpload / ContinueUpload / FinishUpload).

SYNOPSIS:
    python main.py --storage-account <account> --container-name <container>
                   --blob-name <blob> --spo-domain <domain> --spo-site <site>
                   --spo-path <server-relative-folder>
                   [--file-name <name>] [--chunk-size-mb <MiB>]
                   [--auth-provider acs|entra] [--login-endpoint <host>]
                   [--max-retry <n>] [--refresh-digest]
                   [--debug] [--debug-metadata]

ENVIRONMENT:
    AZURE_TENANT_ID       Azure AD tenant ID (GUID)
    AZURE_CLIENT_ID       SharePoint app principal client ID
    AZURE_CLIENT_SECRET   SharePoint app principal client secret
    BLOB2SPO_CHUNK_SIZE_MB  Default chunk threshold in MiB (64 if unset)

    Blob access uses DefaultAzureCredential, so the same AZURE_* variables,
    a managed identity or an Azure CLI login all work. A .env file in the
    working directory is loaded automatically.

EXAMPLES:
    1. Copy a blob into the site's default library:
       python main.py --storage-account mystorage --container-name exports \\
              --blob-name report.csv --spo-domain contoso --spo-site Finance \\
              --spo-path "/sites/Finance/Shared Documents"

    2. Smaller chunks with verbose output:
       python main.py ... --chunk-size-mb 32 --debug

EXIT CODES:
    0  File copied
    1  Configuration, authentication, source or upload error
"""

import os
import sys
import time
from blob2spo.config import parse_config
from blob2spo.errors import Blob2SpoError
from blob2spo.monitoring import show_status, format_bytes
from blob2spo.transfer import copy_blob_to_spo
from blob2spo.utils import is_debug_enabled, mask_secret


def print_configuration(config):
    """Display the transfer configuration box."""
    print("\n" + "="*60)
    print("[1/2] CONFIGURATION")
    print("="*60)
    print(f"Source:                    {config.storage_account}/{config.container_name}/{config.blob_name}")
    print(f"Destination site:          {config.site_url}")
    print(f"Destination folder:        {config.spo_path}")
    print(f"Destination file:          {config.file_name}")
    print(f"Chunk threshold:           {format_bytes(config.chunk_size_bytes)}")
    print(f"Auth provider:             {config.auth_provider}")
    if is_debug_enabled():
        print(f"[DEBUG] Tenant ID:         {config.tenant_id}")
        print(f"[DEBUG] Client ID:         {config.client_id}")
        print(f"[DEBUG] Client secret:     {mask_secret(config.client_secret)}")
    if config.refresh_digest:
        print("[✓] Form digest refresh: Enabled")


def main(argv=None):
    """
    Parse configuration, run the transfer and exit with the result code.

    Args:
        argv (list): Command-line arguments without the program name
    """
    try:
        config = parse_config(argv)
    except Blob2SpoError as e:
        print(f"[Error] Invalid configuration: {e}")
        sys.exit(1)

    # Set environment variables for debug flags (enables debug checks in utils.py)
    if config.debug:
        os.environ['DEBUG'] = 'true'
    if config.debug_metadata:
        os.environ['DEBUG_METADATA'] = 'true'

    print_configuration(config)

    print("\n" + "="*60)
    print("[2/2] TRANSFER")
    print("="*60)
    start = time.time()
    try:
        session = copy_blob_to_spo(config, callback=show_status)
    except Blob2SpoError as e:
        print(f"[Error] Transfer failed after {time.time() - start:.1f}s: {e}")
        print("[!] Ensure that:")
        print("    - The blob exists and your Azure identity can read it")
        print("    - AZURE_TENANT_ID / AZURE_CLIENT_ID / AZURE_CLIENT_SECRET are correct")
        print("    - The app principal has write access to the SharePoint site")
        print("    - The destination folder exists")
        sys.exit(1)

    print(f"\n[✓] Copied {format_bytes(session.cumulative_offset)} to {config.spo_path}/{config.file_name}")
    print("="*60)
    session.stats.print_summary()


if __name__ == "__main__":
    main()
