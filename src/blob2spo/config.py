# -*- coding: utf-8 -*-
"""
Configuration management for blob to SharePoint transfers.

This module handles command-line flag parsing, environment variables and the
JSON payload accepted by the HTTP trigger, all producing the same Config.
"""

import argparse
import os
import posixpath
from dotenv import load_dotenv
from .auth import AUTH_PROVIDERS
from .errors import ConfigError
from .transfer import DEFAULT_CHUNK_SIZE_MB, MIB

DEFAULT_LOGIN_ENDPOINT = "login.microsoftonline.com"

# HTTP trigger JSON field -> Config attribute
PAYLOAD_FIELDS = {
    'tenant_id': 'tenant_id',
    'client_id': 'client_id',
    'client_secret': 'client_secret',
    'share_point_domain': 'spo_domain',
    'share_point_site': 'spo_site',
    'share_point_path': 'spo_path',
    'account': 'storage_account',
    'container': 'container_name',
    'blob_name': 'blob_name',
}


def normalize_spo_domain(domain):
    """Accept 'contoso', 'contoso.sharepoint.com' or 'https://contoso.sharepoint.com/' and return 'contoso'."""
    if not domain:
        return domain
    domain = domain.strip()
    for prefix in ("https://", "http://"):
        if domain.startswith(prefix):
            domain = domain[len(prefix):]
    domain = domain.rstrip("/")
    if domain.endswith(".sharepoint.com"):
        domain = domain[:-len(".sharepoint.com")]
    return domain


class Config:
    """Configuration for one blob to SharePoint transfer"""

    def __init__(self, tenant_id, client_id, client_secret, storage_account, container_name, blob_name,
                 spo_domain, spo_site, spo_path, file_name=None, chunk_size_mb=DEFAULT_CHUNK_SIZE_MB,
                 auth_provider='acs', login_endpoint=DEFAULT_LOGIN_ENDPOINT, max_retry=0,
                 refresh_digest=False, debug=False, debug_metadata=False):
        """
        Args:
            tenant_id (str): Azure AD tenant ID (AZURE_TENANT_ID)
            client_id (str): SharePoint app principal client ID (AZURE_CLIENT_ID)
            client_secret (str): SharePoint app principal secret (AZURE_CLIENT_SECRET)
            storage_account (str): Storage account name or account URL
            container_name (str): Blob container
            blob_name (str): Blob to copy
            spo_domain (str): Tenant short name, e.g. 'contoso'
            spo_site (str): Site name from /sites/{site}
            spo_path (str): Server-relative folder, e.g. '/sites/Team/Shared Documents'
            file_name (str): Destination file name (default: last segment of blob_name)
            chunk_size_mb (int): Chunk threshold in MiB (default: 64)
            auth_provider (str): 'acs' or 'entra'
            login_endpoint (str): Entra ID login host
            max_retry (int): Retry attempts for token and digest fetches (default: 0)
            refresh_digest (bool): Refresh the form digest when it expires mid-transfer
            debug (bool): Enable general debug output
            debug_metadata (bool): Enable raw HTTP debug output
        """
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.storage_account = storage_account
        self.container_name = container_name
        self.blob_name = blob_name
        self.spo_domain = normalize_spo_domain(spo_domain)
        self.spo_site = spo_site
        self.spo_path = spo_path
        self.file_name = file_name or (posixpath.basename(blob_name) if blob_name else None)
        self.chunk_size_mb = chunk_size_mb
        self.auth_provider = auth_provider
        self.login_endpoint = login_endpoint
        self.max_retry = max_retry
        self.refresh_digest = refresh_digest
        self.debug = debug
        self.debug_metadata = debug_metadata

    @property
    def chunk_size_bytes(self):
        return int(self.chunk_size_mb * MIB)

    @property
    def site_url(self):
        return f'https://{self.spo_domain}.sharepoint.com/sites/{self.spo_site}'

    def validate(self):
        """
        Validate configuration values.

        Raises:
            ConfigError: If configuration is invalid
        """
        required = [
            ('tenant_id', 'AZURE_TENANT_ID'),
            ('client_id', 'AZURE_CLIENT_ID'),
            ('client_secret', 'AZURE_CLIENT_SECRET'),
            ('storage_account', 'storage_account'),
            ('container_name', 'container_name'),
            ('blob_name', 'blob_name'),
            ('spo_domain', 'spo_domain'),
            ('spo_site', 'spo_site'),
            ('spo_path', 'spo_path'),
        ]
        for attr, label in required:
            if not getattr(self, attr):
                raise ConfigError(f"{label} cannot be empty")
        if not self.file_name:
            raise ConfigError("file_name cannot be empty")
        if self.chunk_size_mb <= 0:
            raise ConfigError("chunk size must be positive")
        if self.auth_provider not in AUTH_PROVIDERS:
            raise ConfigError(f"auth_provider must be one of {', '.join(AUTH_PROVIDERS)}")
        if self.max_retry < 0:
            raise ConfigError("max_retry must be non-negative")
        return self

    @classmethod
    def from_mapping(cls, payload):
        """
        Build a Config from the HTTP trigger's JSON body.

        Args:
            payload (dict): Keys as in PAYLOAD_FIELDS

        Returns:
            Config: Validated configuration

        Raises:
            ConfigError: If a field is missing or empty
        """
        kwargs = {attr: payload.get(field) for field, attr in PAYLOAD_FIELDS.items()}
        return cls(chunk_size_mb=_env_chunk_size_mb(), **kwargs).validate()


def _env_chunk_size_mb(environ=None):
    environ = os.environ if environ is None else environ
    value = environ.get('BLOB2SPO_CHUNK_SIZE_MB')
    if not value:
        return DEFAULT_CHUNK_SIZE_MB
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"BLOB2SPO_CHUNK_SIZE_MB must be an integer, got {value!r}")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="blob2spo",
        description="Copy a blob from Azure Storage into a SharePoint Online document library"
    )
    parser.add_argument("--storage-account", required=True, help="Storage account name or account URL")
    parser.add_argument("--container-name", required=True, help="Blob container name")
    parser.add_argument("--blob-name", required=True, help="Blob to copy")
    parser.add_argument("--spo-domain", required=True, help="Tenant short name, e.g. 'contoso'")
    parser.add_argument("--spo-site", required=True, help="Site name from /sites/{site}")
    parser.add_argument("--spo-path", required=True,
                        help="Server-relative folder, e.g. '/sites/Team/Shared Documents'")
    parser.add_argument("--file-name", default=None, help="Destination file name (default: blob name)")
    parser.add_argument("--chunk-size-mb", type=int, default=None,
                        help=f"Chunk threshold in MiB (default: {DEFAULT_CHUNK_SIZE_MB}, env BLOB2SPO_CHUNK_SIZE_MB)")
    parser.add_argument("--auth-provider", choices=AUTH_PROVIDERS, default='acs',
                        help="SharePoint token provider (default: acs)")
    parser.add_argument("--login-endpoint", default=DEFAULT_LOGIN_ENDPOINT,
                        help="Entra ID login host for --auth-provider entra")
    parser.add_argument("--max-retry", type=int, default=0,
                        help="Retry attempts for token and digest requests (default: 0)")
    parser.add_argument("--refresh-digest", action="store_true",
                        help="Refresh the form digest if it expires during the transfer")
    parser.add_argument("--debug", action="store_true", help="Enable general debug output")
    parser.add_argument("--debug-metadata", action="store_true", help="Enable raw HTTP debug output")
    return parser


def parse_config(argv=None, environ=None):
    """
    Parse configuration from command-line flags and environment variables.

    Credentials come from AZURE_TENANT_ID, AZURE_CLIENT_ID and
    AZURE_CLIENT_SECRET; a .env file in the working directory is loaded first.

    Args:
        argv (list): Arguments without the program name (default: sys.argv[1:])
        environ (dict): Environment mapping (default: os.environ)

    Returns:
        Config: Validated Config object

    Raises:
        ConfigError: If configuration is invalid
        SystemExit: If required flags are missing (argparse)
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    args = build_parser().parse_args(argv)
    chunk_size_mb = args.chunk_size_mb if args.chunk_size_mb is not None else _env_chunk_size_mb(environ)

    config = Config(
        tenant_id=environ.get('AZURE_TENANT_ID'),
        client_id=environ.get('AZURE_CLIENT_ID'),
        client_secret=environ.get('AZURE_CLIENT_SECRET'),
        storage_account=args.storage_account,
        container_name=args.container_name,
        blob_name=args.blob_name,
        spo_domain=args.spo_domain,
        spo_site=args.spo_site,
        spo_path=args.spo_path,
        file_name=args.file_name,
        chunk_size_mb=chunk_size_mb,
        auth_provider=args.auth_provider,
        login_endpoint=args.login_endpoint,
        max_retry=args.max_retry,
        refresh_digest=args.refresh_digest,
        debug=args.debug,
        debug_metadata=args.debug_metadata
    )
    return config.validate()
