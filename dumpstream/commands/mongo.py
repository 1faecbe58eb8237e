# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
mongodump command builder.

mongodump has no password environment variable, so the command references
``$MONGODUMP_PASSWORD`` and the shell expands it from the overlay. The
secret never appears in the command text or in logs.

Limitation: after expansion the password is part of mongodump's own argv,
so other local users can read it through ``ps`` or ``/proc/<pid>/cmdline``
while the dump runs. On shared hosts, put the credentials in a mongodump
``--config`` file with restrictive permissions and pass it via
``extra_args`` instead of setting ``password``.
"""

from typing import Dict, Tuple

from dumpstream.commands.quoting import CommandLine
from dumpstream.config import MongoDumpRequest

PASSWORD_ENV = "MONGODUMP_PASSWORD"


def build_mongo_command(request: MongoDumpRequest) -> Tuple[CommandLine, Dict[str, str]]:
    """
    Build the mongodump command line and its environment overlay.

    The archive is written to stdout (``--archive`` without a file name).

    Args:
        request: Validated MongoDB request

    Returns:
        Tuple of (command line, env overlay)
    """
    cmd = (
        CommandLine("mongodump")
        .flag("--archive")
        .option("--host", request.host, joined=True)
        .number("--port", request.effective_port, joined=True)
    )

    env: Dict[str, str] = {}
    if request.user:
        cmd.option("--username", request.user, joined=True)
        if request.password:
            cmd.env_reference("--password", PASSWORD_ENV)
            env[PASSWORD_ENV] = request.password
        cmd.option(
            "--authenticationDatabase",
            request.auth_database or "admin",
            joined=True,
        )

    if request.database:
        cmd.option("--db", request.database, joined=True)

    cmd.options("--collection", request.include, joined=True)
    cmd.options("--excludeCollection", request.exclude, joined=True)

    cmd.positionals(request.extra_args)

    return cmd, env
