# -*- coding: utf-8 -*-
"""
Form digest provider for SharePoint writes.

SharePoint requires an X-RequestDigest header on every state-changing REST
call. The digest comes from the site's contextinfo endpoint and expires after
FormDigestTimeoutSeconds.
"""

import time
import requests
from .errors import AuthError
from .spo_api import make_request_with_retry, ODATA_VERBOSE
from .utils import is_debug_metadata_enabled

# Treat the digest as expired slightly before SharePoint does
EXPIRY_MARGIN_SECONDS = 30


class SPOAuthContext:
    """Access token and form digest shared by all writes of one transfer session"""

    def __init__(self, access_token, digest_value, digest_expiry):
        """
        Args:
            access_token (str): SharePoint bearer token
            digest_value (str): FormDigestValue from contextinfo
            digest_expiry (float): Epoch seconds at which the digest stops being valid
        """
        self.access_token = access_token
        self.digest_value = digest_value
        self.digest_expiry = digest_expiry

    def is_expired(self, now=None):
        now = time.time() if now is None else now
        return now >= self.digest_expiry - EXPIRY_MARGIN_SECONDS

    def __repr__(self):
        return f"SPOAuthContext(digest_expiry={self.digest_expiry})"


def parse_context_info(payload):
    """
    Pull FormDigestValue and FormDigestTimeoutSeconds out of a contextinfo body.

    Accepts the odata=verbose shape {"d": {"GetContextWebInformation": {...}}}
    as well as the flat nometadata shape.

    Returns:
        tuple: (digest_value, timeout_seconds)

    Raises:
        AuthError: If the digest value is missing
    """
    info = payload
    if isinstance(payload, dict) and 'd' in payload:
        info = payload['d']
        if isinstance(info, dict):
            info = info.get('GetContextWebInformation', info)

    if not isinstance(info, dict) or not info.get('FormDigestValue'):
        raise AuthError("contextinfo response has no FormDigestValue")

    try:
        timeout_seconds = int(info.get('FormDigestTimeoutSeconds', 1800))
    except (TypeError, ValueError):
        timeout_seconds = 1800
    return info['FormDigestValue'], timeout_seconds


def get_form_digest(contextinfo_url, access_token, max_retries=0):
    """
    Fetch a form digest for the site that owns contextinfo_url.

    Args:
        contextinfo_url (str): https://{domain}.sharepoint.com/sites/{site}/_api/contextinfo
        access_token (str): SharePoint bearer token
        max_retries (int): Retry attempts for transient failures (default: 0)

    Returns:
        SPOAuthContext: Token, digest and absolute digest expiry

    Raises:
        AuthError: On non-2xx response or an unparseable body
    """
    headers = {
        'Authorization': f"Bearer {access_token}",
        'Accept': ODATA_VERBOSE,
        'Content-Type': ODATA_VERBOSE,
    }

    requested_at = time.time()
    try:
        response = make_request_with_retry(contextinfo_url, headers, method='POST', max_retries=max_retries)
    except requests.exceptions.RequestException as e:
        raise AuthError(f"Form digest request failed: {str(e)[:200]}") from e

    if not 200 <= response.status_code < 300:
        if is_debug_metadata_enabled():
            print(f"[DEBUG] contextinfo response: {response.text[:500]}")
        raise AuthError(f"Form digest request failed: {response.status_code} - {response.text[:200]}",
                        status_code=response.status_code)

    try:
        payload = response.json()
    except ValueError as e:
        raise AuthError("contextinfo response is not valid JSON", status_code=response.status_code) from e

    digest_value, timeout_seconds = parse_context_info(payload)

    if is_debug_metadata_enabled():
        print(f"[DEBUG] Form digest acquired, valid for {timeout_seconds}s")

    return SPOAuthContext(access_token, digest_value, requested_at + timeout_seconds)
