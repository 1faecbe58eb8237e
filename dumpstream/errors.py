# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Human-friendly error message helpers for dumpstream.

These helpers centralize wording for common configuration errors so that
all modules present consistent, actionable messages.
"""


def explain_missing_database_url_env() -> str:
    """
    Explain that no database URL was configured.
    """

    return (
        "Database URL is not configured. "
        "Set DUMPSTREAM_DATABASE_URL (or DATABASE_URL) to a mysql://, "
        "postgresql:// or mongodb:// URL, or build a request with create_request()."
    )


def explain_unsupported_url_scheme(scheme: str | None) -> str:
    """
    Explain that a database URL uses a scheme we cannot dump.
    """

    return (
        f"Unsupported database URL scheme: {scheme!r}. "
        "Expected one of: 'mysql', 'mariadb', 'postgres', 'postgresql', 'mongodb'."
    )


def explain_invalid_compression_env(value: str | None) -> str:
    """
    Explain that DUMPSTREAM_COMPRESSION is invalid.
    """

    return (
        f"Invalid DUMPSTREAM_COMPRESSION value: {value!r}. "
        "Expected one of: 'gzip', 'zstd', or 'none'."
    )


def explain_invalid_number_env(name: str, value: str | None) -> str:
    """
    Explain that a numeric environment variable could not be parsed.
    """

    return (
        f"Invalid {name} value: {value!r}. "
        "It must be a number."
    )


def explain_invalid_engine(value: str | None) -> str:
    """
    Explain that an engine name is not recognised.
    """

    return (
        f"Invalid engine: {value!r}. "
        "Expected 'mysql', 'postgres' or 'mongodb'."
    )
