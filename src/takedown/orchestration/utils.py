"""Progress-record helpers for the stage state machine.

Stages run in the fixed order extract -> load -> prune -> report. The first
stage whose flag is unset is the resume point; when every flag is set the
pipeline is Done.
"""

from __future__ import annotations

from takedown.constants import STAGE_EXTRACT, STAGE_LOAD, STAGE_PRUNE, STAGE_REPORT, STAGES
from takedown.core.models import PipelineState, ProgressRecord

_STATE_BY_STAGE: dict[str, PipelineState] = {
    STAGE_EXTRACT: "Extracting",
    STAGE_LOAD: "Loading",
    STAGE_PRUNE: "Pruning",
    STAGE_REPORT: "Reporting",
}


def resume_point(record: ProgressRecord) -> str | None:
    """First incomplete stage in execution order, or None when all are done."""
    for stage in STAGES:
        if not record.is_done(stage):
            return stage
    return None


def pipeline_state(record: ProgressRecord) -> PipelineState:
    """State a run would start in, given the persisted record."""
    stage = resume_point(record)
    if stage is None:
        return "Done"
    if not any(record.is_done(s) for s in STAGES):
        return "NotStarted"
    return _STATE_BY_STAGE[stage]
