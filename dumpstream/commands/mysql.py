# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
mysqldump command builder.

Produces:

    mysqldump -h 'host' -P 3306 -u 'user' --single-transaction
        --skip-lock-tables [mode] [triggers/routines/events]
        --ignore-table='db'.'t' ... [extra args] 'db' ['table' ...]

The password is passed through MYSQL_PWD, which mysqldump reads on its own.
"""

from typing import Dict, Tuple

from dumpstream.commands.quoting import CommandLine
from dumpstream.config import MySQLDumpRequest

PASSWORD_ENV = "MYSQL_PWD"


def build_mysql_command(request: MySQLDumpRequest) -> Tuple[CommandLine, Dict[str, str]]:
    """
    Build the mysqldump command line and its environment overlay.

    Args:
        request: Validated MySQL request

    Returns:
        Tuple of (command line, env overlay)
    """
    database = request.database or ""

    cmd = (
        CommandLine("mysqldump")
        .option("-h", request.host)
        .number("-P", request.effective_port)
    )
    if request.user:
        cmd.option("-u", request.user)

    cmd.flag("--single-transaction").flag("--skip-lock-tables")

    # Schema-only wins over data-only
    if request.schema_only:
        cmd.flag("--no-data")
    elif request.data_only:
        cmd.flag("--no-create-info")

    cmd.flag_if(not request.triggers, "--skip-triggers")
    cmd.flag_if(request.routines, "--routines")
    cmd.flag_if(request.events, "--events")

    for table in request.exclude:
        cmd.qualified("--ignore-table", database, table)

    cmd.positionals(request.extra_args)
    cmd.positional(database)
    cmd.positionals(request.include)

    env: Dict[str, str] = {}
    if request.password:
        env[PASSWORD_ENV] = request.password

    return cmd, env
