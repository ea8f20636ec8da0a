# -*- coding: utf-8 -*-
"""
Low-level SharePoint REST calls for blob to SharePoint transfers.

This module provides the request helper used for token and digest fetches,
the file-write POST shared by all four upload endpoints, and parsing of
SharePoint's OData error bodies into ChunkOutcome values.
"""

import time
import requests
from .utils import is_debug_metadata_enabled, is_debug_enabled

ODATA_VERBOSE = 'application/json;odata=verbose'

# Seconds to wait for auth/digest responses and for a single chunk write
REQUEST_TIMEOUT = 60
CHUNK_TIMEOUT = 300


class ChunkOutcome:
    """
    Result of one SharePoint file write.

    Use ChunkOutcome.accepted() or ChunkOutcome.rejected(...) to build one.
    """

    def __init__(self, is_accepted, status_code=None, error_code=None, error_message=None):
        self.is_accepted = is_accepted
        self.status_code = status_code
        self.error_code = error_code
        self.error_message = error_message

    @classmethod
    def accepted(cls, status_code=200):
        return cls(True, status_code=status_code)

    @classmethod
    def rejected(cls, status_code, error_code, error_message):
        return cls(False, status_code=status_code, error_code=error_code, error_message=error_message)

    def __bool__(self):
        return self.is_accepted

    def __repr__(self):
        if self.is_accepted:
            return f"ChunkOutcome.accepted({self.status_code})"
        return f"ChunkOutcome.rejected({self.status_code}, {self.error_code!r}, {self.error_message!r})"


def make_request_with_retry(url, headers, method='POST', data=None, max_retries=0, timeout=REQUEST_TIMEOUT):
    """
    Make a SharePoint or token-service request with retry handling for transient errors.

    Retry Logic:
        - 429 (Rate Limit): Waits for Retry-After header duration
        - 5xx (Server Error): Exponential backoff (2s, 3s, 5s, ...)
        - Timeout / connection errors: Exponential backoff
        - 4xx (Client Error): No retry

    Args:
        url (str): Endpoint URL
        headers (dict): Request headers
        method (str): HTTP method ('GET' or 'POST')
        data (dict | bytes | str): Request body (dicts are form-encoded by requests)
        max_retries (int): Maximum number of retry attempts (default: 0, single attempt)
        timeout (int): Per-attempt timeout in seconds

    Returns:
        requests.Response: The last HTTP response received

    Raises:
        requests.exceptions.RequestException: If the request itself fails after all retries
        ValueError: If the method is not supported

    Note:
        File writes never go through this helper; a chunk is sent exactly once.
    """
    method = method.upper()
    if method not in ('GET', 'POST'):
        raise ValueError(f"Unsupported HTTP method: {method}")

    for attempt in range(max_retries + 1):
        try:
            if method == 'GET':
                response = requests.get(url, headers=headers, timeout=timeout)
            else:
                response = requests.post(url, headers=headers, data=data, timeout=timeout)

            if response.status_code == 429 and attempt < max_retries:
                retry_after = response.headers.get('Retry-After', '60')
                try:
                    wait_seconds = int(retry_after)
                except ValueError:
                    wait_seconds = 60  # Default to 60 seconds if header is malformed
                print(f"[!] Rate limited (429). Waiting {wait_seconds} seconds before retry {attempt + 1}/{max_retries}...")
                time.sleep(wait_seconds)
                continue

            if 500 <= response.status_code < 600 and attempt < max_retries:
                wait_seconds = (2 ** attempt) + 1
                print(f"[!] Server error ({response.status_code}). Retrying in {wait_seconds} seconds... ({attempt + 1}/{max_retries})")
                if is_debug_metadata_enabled():
                    print(f"[DEBUG] Server error response: {response.text[:300]}")
                time.sleep(wait_seconds)
                continue

            return response

        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
            if attempt < max_retries:
                wait_seconds = (2 ** attempt) + 1
                print(f"[!] Network error: {str(e)[:100]}. Retrying in {wait_seconds} seconds... ({attempt + 1}/{max_retries})")
                time.sleep(wait_seconds)
                continue
            raise

    # Should never reach here, but just in case
    raise RuntimeError("Unexpected exit from make_request_with_retry")


def parse_spo_error(response):
    """
    Extract SharePoint's error code and message from a failed response.

    Handles both OData shapes:
        verbose: {"error": {"code": "...", "message": {"lang": "en-US", "value": "..."}}}
        minimal: {"odata.error": {"code": "...", "message": {"value": "..."}}}

    Args:
        response (requests.Response): Failed response

    Returns:
        tuple: (error_code, error_message); falls back to the HTTP reason and raw body
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get('error') or body.get('odata.error')
        if isinstance(error, dict):
            message = error.get('message')
            if isinstance(message, dict):
                message = message.get('value')
            return error.get('code'), message

    text = (response.text or '').strip()
    return str(response.status_code), text[:500] or response.reason


def build_write_headers(access_token, digest_value, content_length):
    """Headers required on every SharePoint file write."""
    return {
        'Authorization': f"Bearer {access_token}",
        'Content-Type': ODATA_VERBOSE,
        'Accept': ODATA_VERBOSE,
        'X-RequestDigest': digest_value,
        'Content-Length': str(content_length),
    }


def post_file_data(url, access_token, digest_value, data):
    """
    POST file content to one of the SharePoint upload endpoints.

    Args:
        url (str): One-time, start, continue or finish upload URL
        access_token (str): SharePoint bearer token
        digest_value (str): Form digest for X-RequestDigest
        data (bytes): Content to send (may be empty)

    Returns:
        ChunkOutcome: accepted on 2xx, rejected with SharePoint's error otherwise

    Raises:
        requests.exceptions.RequestException: On network failure (no retry)
    """
    headers = build_write_headers(access_token, digest_value, len(data))

    if is_debug_enabled():
        print(f"[DEBUG] POST {url} ({len(data):,} bytes)")

    response = requests.post(url, headers=headers, data=bytes(data), timeout=CHUNK_TIMEOUT)

    if 200 <= response.status_code < 300:
        if is_debug_metadata_enabled():
            print(f"[DEBUG] Write accepted ({response.status_code}): {response.text[:300]}")
        return ChunkOutcome.accepted(response.status_code)

    error_code, error_message = parse_spo_error(response)
    if is_debug_metadata_enabled():
        print(f"[DEBUG] Write rejected ({response.status_code}): {response.text[:500]}")
    return ChunkOutcome.rejected(response.status_code, error_code, error_message)
