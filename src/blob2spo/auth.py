# -*- coding: utf-8 -*-
"""
Authentication module for blob to SharePoint transfers.

This module obtains the two credentials a transfer needs:
- an Azure credential for reading the source blob (DefaultAzureCredential)
- a SharePoint Online access token, either from the ACS client-credentials
  endpoint (default) or from Entra ID through MSAL
"""

import msal
import requests
from azure.identity import DefaultAzureCredential
from .errors import AuthError
from .spo_api import make_request_with_retry
from .utils import is_debug_metadata_enabled

ACS_TOKEN_URL = "https://accounts.accesscontrol.windows.net/{tenant_id}/tokens/OAuth/2"

# Well-known application principal of SharePoint Online
SPO_PRINCIPAL_ID = "00000003-0000-0ff1-ce00-000000000000"

AUTH_PROVIDERS = ('acs', 'entra')


def get_blob_credential():
    """
    Return the ambient Azure credential used to read blobs.

    DefaultAzureCredential walks environment variables, workload/managed
    identity and developer logins (Azure CLI, VS Code) in turn, so the same
    code works locally and inside Azure Functions.

    Returns:
        DefaultAzureCredential: Token credential accepted by azure-storage-blob
    """
    return DefaultAzureCredential()


def acquire_spo_token(tenant_id, client_id, client_secret, spo_domain, max_retries=0):
    """
    Acquire a SharePoint access token with the ACS client credentials flow.

    Args:
        tenant_id (str): Azure AD tenant ID (GUID format)
        client_id (str): App principal client ID registered for SharePoint
        client_secret (str): App principal client secret
        spo_domain (str): Tenant short name, e.g. 'contoso' for contoso.sharepoint.com
        max_retries (int): Retry attempts for transient failures (default: 0)

    Returns:
        str: Bearer access token for https://{spo_domain}.sharepoint.com

    Raises:
        AuthError: On non-2xx response, malformed JSON or missing access_token
    """
    url = ACS_TOKEN_URL.format(tenant_id=tenant_id)
    form = {
        'grant_type': 'client_credentials',
        'client_id': f"{client_id}@{tenant_id}",
        'client_secret': client_secret,
        'resource': f"{SPO_PRINCIPAL_ID}/{spo_domain}.sharepoint.com@{tenant_id}",
    }
    headers = {'Content-Type': 'application/x-www-form-urlencoded'}

    try:
        response = make_request_with_retry(url, headers, method='POST', data=form, max_retries=max_retries)
    except requests.exceptions.RequestException as e:
        raise AuthError(f"SharePoint token request failed: {str(e)[:200]}") from e

    if not 200 <= response.status_code < 300:
        if is_debug_metadata_enabled():
            print(f"[DEBUG] Token response: {response.text[:500]}")
        raise AuthError(
            f"SharePoint token request failed: {response.status_code} - {_describe_token_error(response)}",
            status_code=response.status_code
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise AuthError("SharePoint token response is not valid JSON", status_code=response.status_code) from e

    access_token = payload.get('access_token') if isinstance(payload, dict) else None
    if not access_token:
        raise AuthError("SharePoint token response has no access_token", status_code=response.status_code)

    if is_debug_metadata_enabled():
        print(f"[DEBUG] Token acquired, expires_in={payload.get('expires_in')} resource={payload.get('resource')}")

    return access_token


def _describe_token_error(response):
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200] or response.reason
    if isinstance(payload, dict):
        error = payload.get('error', 'unknown_error')
        description = payload.get('error_description', 'No description provided')
        return f"{error} - {description}"
    return str(payload)[:200]


def acquire_entra_token(tenant_id, client_id, client_secret, spo_domain,
                        login_endpoint='login.microsoftonline.com'):
    """
    Acquire a SharePoint access token from Entra ID using MSAL.

    This uses the client credentials flow against the v2 endpoint with the
    SharePoint resource '.default' scope.

    Args:
        tenant_id (str): Azure AD tenant ID (GUID format)
        client_id (str): Application (client) ID from Azure AD app registration
        client_secret (str): Client secret value from Azure AD app registration
        spo_domain (str): Tenant short name, e.g. 'contoso'
        login_endpoint (str): Azure AD authentication endpoint

    Returns:
        str: Bearer access token

    Raises:
        AuthError: If authentication fails (wrong credentials, missing consent, etc.)

    Note:
        SharePoint only honours app-only Entra tokens obtained with a certificate
        credential for some operations; tenants that block secret-based tokens
        should keep the default 'acs' provider.
    """
    authority_url = f'https://{login_endpoint}/{tenant_id}'

    # Authority discovery and the token call go over the network; MSAL raises
    # ValueError for an unknown tenant and requests exceptions for transport faults
    try:
        app = msal.ConfidentialClientApplication(
            authority=authority_url,
            client_id=client_id,
            client_credential=client_secret
        )
        token = app.acquire_token_for_client(scopes=[f"https://{spo_domain}.sharepoint.com/.default"])
    except (ValueError, requests.exceptions.RequestException) as e:
        print(f"[!] Could not reach Entra ID authority {authority_url}: {e}")
        raise AuthError(f"Authentication failed: {type(e).__name__} - {e}") from e

    # MSAL returns errors in the token dict, not as exceptions
    if "access_token" not in token:
        error_msg = token.get("error", "unknown_error")
        error_desc = token.get("error_description", "No description provided")
        error_codes = token.get("error_codes", [])

        print("[!] ========================================")
        print("[!] AUTHENTICATION FAILED")
        print("[!] ========================================")

        if "invalid_client" in error_msg or 7000215 in error_codes:
            print("[!] Error: Invalid client credentials")
            print("[!]   1. Verify AZURE_CLIENT_ID is correct")
            print("[!]   2. Verify AZURE_CLIENT_SECRET has not expired or been copied with extra spaces")
            print("[!]   3. Ensure you're using the correct AZURE_TENANT_ID")
            reason = "Invalid client credentials"
        elif "unauthorized_client" in error_msg or 700016 in error_codes:
            print("[!] Error: Application not authorized")
            print("[!]   1. Add the SharePoint 'Sites.ReadWrite.All' application permission")
            print("[!]   2. Click 'Grant admin consent' in the Azure AD portal")
            reason = "Application not authorized"
        elif "invalid_scope" in error_msg or "AADSTS70011" in error_desc:
            print("[!] Error: Invalid scope requested")
            print(f"[!]   Verify the SharePoint domain is correct: {spo_domain}.sharepoint.com")
            reason = "Invalid scope"
        else:
            print(f"[!] Error: {error_msg}")
            if error_codes:
                print(f"[!]   Error codes: {error_codes}")
            reason = error_msg

        print(f"[!] Technical details: {error_desc}")
        print("[!] ========================================")
        raise AuthError(f"Authentication failed: {reason} - {error_desc}")

    return token["access_token"]


def acquire_token(tenant_id, client_id, client_secret, spo_domain, auth_provider='acs',
                  login_endpoint='login.microsoftonline.com', max_retries=0):
    """
    Acquire a SharePoint access token with the configured provider.

    Args:
        auth_provider (str): 'acs' (accounts.accesscontrol.windows.net) or 'entra' (MSAL)

    Returns:
        str: Bearer access token

    Raises:
        AuthError: If the provider is unknown or authentication fails
    """
    if auth_provider == 'acs':
        return acquire_spo_token(tenant_id, client_id, client_secret, spo_domain, max_retries=max_retries)
    if auth_provider == 'entra':
        return acquire_entra_token(tenant_id, client_id, client_secret, spo_domain, login_endpoint)
    raise AuthError(f"Unknown auth provider: {auth_provider} (expected one of {', '.join(AUTH_PROVIDERS)})")
