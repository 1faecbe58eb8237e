# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
dumpstream Exceptions - Failure taxonomy for dump pipelines.

Every failure the engine can report is one of these classes. The executor
returns them inside a PipelineResult; only PipelineResult.unwrap() raises.
"""


class DumpStreamError(Exception):
    """Base exception for all dumpstream errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(DumpStreamError):
    """Raised when environment configuration is invalid."""

    pass


class BuildError(DumpStreamError):
    """Raised when a dump request is structurally invalid."""

    pass


class LaunchError(DumpStreamError):
    """The shell or dump tool could not be started."""

    pass


class DumpTimeoutError(DumpStreamError):
    """The pipeline exceeded its deadline and was killed."""

    @property
    def timeout_seconds(self) -> float | None:
        return self.details.get("timeout_seconds")


class ToolFailureError(DumpStreamError):
    """The pipeline exited non-zero (or produced nothing) without timing out."""

    @property
    def exit_code(self) -> int | None:
        return self.details.get("exit_code")

    @property
    def stderr(self) -> str:
        return self.details.get("stderr", "")


class SinkError(DumpStreamError):
    """The archive file could not be opened or written."""

    pass


class UploadError(DumpStreamError):
    """Raised when an archive upload fails."""

    pass
