# -*- coding: utf-8 -*-
"""
SharePoint upload client for one transfer session.

SPOClient owns the session's credentials and SPOAuthContext. Token and digest
are fetched lazily, once, before the first write; every write then reuses
them. The four write methods return a ChunkOutcome and never retry.
"""

import requests
from .auth import acquire_token
from .digest import get_form_digest
from .endpoints import (
    contextinfo_url,
    one_time_upload_url,
    start_upload_url,
    continue_upload_url,
    finish_upload_url
)
from .spo_api import post_file_data, ChunkOutcome
from .utils import is_debug_enabled


class SPOClient:
    """SharePoint REST writer bound to one tenant principal"""

    def __init__(self, tenant_id, client_id, client_secret, spo_domain, auth_provider='acs',
                 login_endpoint='login.microsoftonline.com', max_retries=0, refresh_digest=False):
        """
        Args:
            tenant_id (str): Azure AD tenant ID
            client_id (str): App principal client ID
            client_secret (str): App principal client secret
            spo_domain (str): Tenant short name, e.g. 'contoso'
            auth_provider (str): 'acs' or 'entra'
            login_endpoint (str): Entra ID login host (entra provider only)
            max_retries (int): Retry attempts for token and digest fetches
            refresh_digest (bool): Re-fetch the digest once FormDigestTimeoutSeconds elapses
        """
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.spo_domain = spo_domain
        self.auth_provider = auth_provider
        self.login_endpoint = login_endpoint
        self.max_retries = max_retries
        self.refresh_digest = refresh_digest

        self.auth_context = None
        self.requests_made = 0
        self._expiry_warned = False

    def ensure_auth(self, descriptor):
        """
        Return the session's SPOAuthContext, fetching token and digest on first use.

        Raises:
            AuthError: If the token or digest cannot be obtained
        """
        if self.auth_context is None:
            if is_debug_enabled():
                print(f"[*] Acquiring SharePoint token ({self.auth_provider}) for {self.spo_domain}.sharepoint.com")
            access_token = acquire_token(
                self.tenant_id, self.client_id, self.client_secret, self.spo_domain,
                auth_provider=self.auth_provider,
                login_endpoint=self.login_endpoint,
                max_retries=self.max_retries
            )
            self.auth_context = get_form_digest(contextinfo_url(descriptor), access_token,
                                                max_retries=self.max_retries)
            return self.auth_context

        if self.auth_context.is_expired():
            if self.refresh_digest:
                if is_debug_enabled():
                    print("[*] Form digest expired, refreshing")
                self.auth_context = get_form_digest(contextinfo_url(descriptor), self.auth_context.access_token,
                                                    max_retries=self.max_retries)
            elif not self._expiry_warned:
                print("[!] Form digest has expired; SharePoint may reject further writes "
                      "(enable digest refresh to fetch a new one)")
                self._expiry_warned = True

        return self.auth_context

    def _write(self, url, descriptor, data):
        auth = self.ensure_auth(descriptor)
        self.requests_made += 1
        try:
            return post_file_data(url, auth.access_token, auth.digest_value, data)
        except requests.exceptions.RequestException as e:
            return ChunkOutcome.rejected(None, e.__class__.__name__, str(e)[:300])

    def upload_one_time(self, descriptor, data):
        """Save data as the whole file (Files/add with overwrite)."""
        return self._write(one_time_upload_url(descriptor), descriptor, data)

    def upload_start(self, descriptor, data):
        """StartUpload: first chunk of a chunked upload. Descriptor must carry the upload id."""
        return self._write(start_upload_url(descriptor), descriptor, data)

    def upload_continue(self, descriptor, data):
        """ContinueUpload at descriptor.file_offset."""
        return self._write(continue_upload_url(descriptor), descriptor, data)

    def upload_finish(self, descriptor, data):
        """FinishUpload at descriptor.file_offset; commits the file."""
        return self._write(finish_upload_url(descriptor), descriptor, data)
