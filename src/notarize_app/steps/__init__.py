"""Pipeline steps for notarization."""

from notarize_app.steps.archive import ArchiveStep, ArtifactArchiveStep
from notarize_app.steps.base import PipelineContext, PipelineStep, StepError, StepStatus
from notarize_app.steps.gatekeeper import GatekeeperError, GatekeeperVerifyStep
from notarize_app.steps.notarize import PollStep, RegisterWaitStep, SubmitStep
from notarize_app.steps.staple import StapleError, StapleStep

__all__ = [
    "ArchiveStep",
    "ArtifactArchiveStep",
    "GatekeeperError",
    "GatekeeperVerifyStep",
    "PipelineContext",
    "PipelineStep",
    "PollStep",
    "RegisterWaitStep",
    "StapleError",
    "StapleStep",
    "StepError",
    "StepStatus",
    "SubmitStep",
]
