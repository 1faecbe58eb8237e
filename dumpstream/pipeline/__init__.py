# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Pipeline Engine - Process lifecycle for dump pipelines.
"""

from dumpstream.pipeline.executor import (
    PipelineResult,
    RunningPipeline,
    run_pipeline,
)
from dumpstream.pipeline.reaper import terminate

__all__ = [
    "PipelineResult",
    "RunningPipeline",
    "run_pipeline",
    "terminate",
]
