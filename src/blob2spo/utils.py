# -*- coding: utf-8 -*-
"""
Shared utility functions for blob to SharePoint transfers.

This module provides common helper functions used across multiple modules.
"""

import os


def is_debug_metadata_enabled():
    """
    Check if debug metadata mode is enabled via DEBUG_METADATA environment variable.

    This is for raw HTTP debugging: response bodies, token and digest payload shapes.

    Returns:
        bool: True if debug metadata mode is enabled, False otherwise
    """
    return os.environ.get('DEBUG_METADATA', 'false').lower() == 'true'


def is_debug_enabled():
    """
    Check if general debug mode is enabled via DEBUG environment variable.

    This controls per-fragment download progress, per-chunk upload messages and
    the endpoint URLs being called. Does not affect:
    - Configuration banner
    - Final transfer summary
    - Error messages
    - DEBUG_METADATA output (separate control)

    Returns:
        bool: True if general debug mode is enabled, False otherwise
    """
    return os.environ.get('DEBUG', 'false').lower() == 'true'


def mask_secret(value, visible=4):
    """
    Mask a secret for console output, keeping only the last few characters.

    Args:
        value (str): Secret to mask
        visible (int): Number of trailing characters left readable

    Returns:
        str: Masked value, e.g. '********abcd'
    """
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * 8 + value[-visible:]
