"""
Cosmoslite Authentication Module.

Provides master key request signing for the Cosmos DB REST API.

Author: Cosmoslite Team
Date: 2026-02-03
"""

from cosmoslite.auth.masterkey import (
    API_VERSION,
    MasterKeyCredentials,
    MasterKeySigner,
    build_string_to_sign,
    compute_signature,
    format_authorization,
    format_date,
)

__all__ = [
    "API_VERSION",
    "MasterKeyCredentials",
    "MasterKeySigner",
    "build_string_to_sign",
    "compute_signature",
    "format_authorization",
    "format_date",
]
