# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
dumpstream Configuration - Immutable request and pipeline data structures.

All configuration is frozen (immutable) after creation. Requests validate
themselves on construction so that a request that exists is a request the
command builders can turn into a command line without further checks.
"""

import shutil
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import ClassVar, List, Mapping, Tuple

from dumpstream.exceptions import BuildError


class Engine(str, Enum):
    """Database engine a dump request targets."""

    MYSQL = "mysql"
    POSTGRES = "postgres"
    MONGODB = "mongodb"


class Compression(str, Enum):
    """Compressor placed after the dump tool in the pipeline."""

    GZIP = "gzip"
    ZSTD = "zstd"
    NONE = "none"  # Pass-through (cat)


# libpq sslmode values accepted by pg_dump via PGSSLMODE
SSL_MODES = frozenset(
    {"disable", "allow", "prefer", "require", "verify-ca", "verify-full"}
)

DEFAULT_COMPRESSION_LEVEL = 6
DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_STDERR_LIMIT = 64 * 1024


def default_shell() -> str:
    """Prefer bash, whose pipefail keeps a failing dump stage visible."""
    return "bash" if shutil.which("bash") else "sh"


def _as_tuple(values) -> Tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        return (values,)
    return tuple(values)


@dataclass(frozen=True, kw_only=True)
class DumpRequest:
    """
    Base dump request shared by every engine.

    Subclasses set ``engine`` and ``default_port`` and may add engine
    specific fields and checks via ``_extra_errors``.
    """

    engine: ClassVar[Engine]
    default_port: ClassVar[int]

    # Connection
    host: str = "localhost"
    port: int | None = None
    database: str | None = None
    user: str | None = None
    password: str | None = field(default=None, repr=False)

    # Table / collection filters
    include: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()

    # Mode flags (schema_only wins when both are set)
    schema_only: bool = False
    data_only: bool = False

    # Operator supplied arguments, appended after generated flags
    extra_args: Tuple[str, ...] = ()

    # Compression and deadline
    compression: Compression = Compression.GZIP
    compression_level: int = DEFAULT_COMPRESSION_LEVEL
    timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        """Normalize sequences and validate the request."""
        object.__setattr__(self, "include", _as_tuple(self.include))
        object.__setattr__(self, "exclude", _as_tuple(self.exclude))
        object.__setattr__(self, "extra_args", _as_tuple(self.extra_args))
        if isinstance(self.compression, str) and not isinstance(
            self.compression, Compression
        ):
            try:
                object.__setattr__(
                    self, "compression", Compression(self.compression.lower())
                )
            except ValueError:
                raise BuildError(
                    f"Unknown compression: {self.compression}",
                    details={"compression": self.compression},
                )

        errors: List[str] = []

        if not self.host:
            errors.append("host must not be empty")

        if self.port is not None and not 0 < self.port < 65536:
            errors.append(f"port must be between 1 and 65535, got {self.port}")

        overlap = sorted(set(self.include) & set(self.exclude))
        if overlap:
            errors.append(
                f"entities both included and excluded: {', '.join(overlap)}"
            )

        for name in self.include + self.exclude:
            if not name:
                errors.append("filter entries must not be empty")
                break

        if self.timeout_seconds is not None and self.timeout_seconds < 0:
            errors.append(
                f"timeout_seconds must be >= 0, got {self.timeout_seconds}"
            )

        errors.extend(self._extra_errors())

        if errors:
            raise BuildError(
                "Dump request validation failed",
                details={"engine": self.engine.value, "errors": errors},
            )

    def _extra_errors(self) -> List[str]:
        return []

    @property
    def effective_port(self) -> int:
        return self.port if self.port is not None else self.default_port

    def with_updates(self, **kwargs) -> "DumpRequest":
        """
        Create a new request with updated values.

        Since the request is frozen, this creates a new (re-validated) instance.
        """
        current = asdict(self)
        current.update(kwargs)
        return type(self)(**current)


@dataclass(frozen=True, kw_only=True)
class MySQLDumpRequest(DumpRequest):
    """mysqldump request."""

    engine: ClassVar[Engine] = Engine.MYSQL
    default_port: ClassVar[int] = 3306

    routines: bool = False
    triggers: bool = True
    events: bool = False

    def _extra_errors(self) -> List[str]:
        if not self.database:
            return ["database is required for mysql dumps"]
        return []


@dataclass(frozen=True, kw_only=True)
class PostgresDumpRequest(DumpRequest):
    """pg_dump request. Filters are pg_dump table patterns (schema.table)."""

    engine: ClassVar[Engine] = Engine.POSTGRES
    default_port: ClassVar[int] = 5432

    ssl_mode: str | None = None

    def _extra_errors(self) -> List[str]:
        errors: List[str] = []
        if not self.database:
            errors.append("database is required for postgres dumps")
        if self.ssl_mode is not None and self.ssl_mode not in SSL_MODES:
            errors.append(
                f"ssl_mode must be one of {sorted(SSL_MODES)}, got {self.ssl_mode}"
            )
        return errors


@dataclass(frozen=True, kw_only=True)
class MongoDumpRequest(DumpRequest):
    """
    mongodump request.

    mongodump accepts a single --collection, and --collection cannot be
    combined with --excludeCollection; both are checked here. The mode
    flags have no mongodump equivalent and are ignored.
    """

    engine: ClassVar[Engine] = Engine.MONGODB
    default_port: ClassVar[int] = 27017

    auth_database: str | None = None

    def _extra_errors(self) -> List[str]:
        errors: List[str] = []
        if (self.include or self.exclude) and not self.database:
            errors.append("collection filters require a database")
        if len(self.include) > 1:
            errors.append("mongodump can include at most one collection")
        if self.include and self.exclude:
            errors.append("mongodump cannot combine include and exclude filters")
        return errors


REQUEST_TYPES = {
    Engine.MYSQL: MySQLDumpRequest,
    Engine.POSTGRES: PostgresDumpRequest,
    Engine.MONGODB: MongoDumpRequest,
}


@dataclass(frozen=True)
class PipelineSpec:
    """
    A fully resolved pipeline: one shell command plus its env overlay.

    Built once per request and immutable thereafter. ``env`` holds only the
    variables to overlay on the inherited environment.
    """

    command: str
    env: Mapping[str, str] = field(default_factory=dict)
    timeout_seconds: float | None = None
    prefix: str = "dump"
    extension: str = "out"
    engine: str = "custom"

    def __post_init__(self) -> None:
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))

    @property
    def has_timeout(self) -> bool:
        return bool(self.timeout_seconds and self.timeout_seconds > 0)


@dataclass(frozen=True)
class ExecutorSettings:
    """Runtime knobs for the pipeline executor."""

    # Shell used to run the pipeline string (default: bash if installed, else sh)
    shell: str | None = None

    # Scratch directory for archives (default: platform temp dir)
    scratch_dir: Path | None = None

    # Bytes read from stdout per write to the archive
    chunk_size: int = DEFAULT_CHUNK_SIZE

    # Tail of stderr kept for diagnostics
    stderr_limit: int = DEFAULT_STDERR_LIMIT

    # Run with `set -o pipefail`; launching fails if the shell lacks it
    pipefail: bool = True

    def __post_init__(self) -> None:
        if self.shell is None:
            object.__setattr__(self, "shell", default_shell())

        errors: List[str] = []
        if not self.shell:
            errors.append("shell must not be empty")
        if self.chunk_size < 1:
            errors.append(f"chunk_size must be >= 1, got {self.chunk_size}")
        if self.stderr_limit < 0:
            errors.append(f"stderr_limit must be >= 0, got {self.stderr_limit}")
        if errors:
            from dumpstream.exceptions import ConfigurationError

            raise ConfigurationError(
                "Executor settings validation failed",
                details={"errors": errors},
            )
