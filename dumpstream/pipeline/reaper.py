# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Process Reaper - Terminate a pipeline and everything it spawned.

On POSIX the pipeline runs in its own session, so its pid is also its
process-group id and one killpg() reaches the shell, the dump tool and the
compressor. Elsewhere only the leader is signalled and the shell's children
may be orphaned.
"""

import os
import signal
from typing import Any

import structlog

logger = structlog.get_logger()

HAS_PROCESS_GROUPS = hasattr(os, "killpg")


def terminate(process: Any, sig: int = signal.SIGTERM) -> None:
    """
    Signal a process group (or the leader alone), best effort.

    Never raises: the target may already have exited on its own.

    Args:
        process: asyncio or subprocess process handle (needs ``pid``)
        sig: Signal to send (default SIGTERM)
    """
    pid = getattr(process, "pid", None)
    if pid is None:
        return
    try:
        if HAS_PROCESS_GROUPS:
            os.killpg(pid, sig)
        else:
            process.send_signal(sig)
    except OSError as e:
        logger.debug("terminate_ignored", pid=pid, error=str(e))
        return
    logger.debug("process_group_signalled", pid=pid, signal=int(sig))
