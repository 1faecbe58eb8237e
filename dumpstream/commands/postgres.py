# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
pg_dump command builder.

The password goes to PGPASSWORD and the SSL mode to PGSSLMODE; libpq reads
both from the environment, so neither shows up in the command text.
``--no-password`` keeps pg_dump from ever waiting on a prompt.
"""

from typing import Dict, Tuple

from dumpstream.commands.quoting import CommandLine
from dumpstream.config import PostgresDumpRequest

PASSWORD_ENV = "PGPASSWORD"
SSL_MODE_ENV = "PGSSLMODE"


def build_postgres_command(
    request: PostgresDumpRequest,
) -> Tuple[CommandLine, Dict[str, str]]:
    """
    Build the pg_dump command line and its environment overlay.

    Args:
        request: Validated PostgreSQL request

    Returns:
        Tuple of (command line, env overlay)
    """
    cmd = (
        CommandLine("pg_dump")
        .option("-h", request.host)
        .number("-p", request.effective_port)
    )
    if request.user:
        cmd.option("-U", request.user)

    cmd.flag("--no-password")

    if request.schema_only:
        cmd.flag("--schema-only")
    elif request.data_only:
        cmd.flag("--data-only")

    cmd.options("-t", request.include)
    cmd.options("-T", request.exclude)

    cmd.positionals(request.extra_args)
    cmd.positional(request.database or "")

    env: Dict[str, str] = {}
    if request.password:
        env[PASSWORD_ENV] = request.password
    if request.ssl_mode:
        env[SSL_MODE_ENV] = request.ssl_mode

    return cmd, env
