"""Local PDF combiner: file intake and merge orchestration."""

from .config import CombinerConfig
from .intake import IntakeManager
from .models import (
    AddResult,
    CandidateFile,
    MergeArtifact,
    Notice,
    ProcessingState,
    Rejection,
    RejectionKind,
    Upload,
)
from .orchestrator import MergeOrchestrator

__all__ = [
    "AddResult",
    "CandidateFile",
    "CombinerConfig",
    "IntakeManager",
    "MergeArtifact",
    "MergeOrchestrator",
    "Notice",
    "ProcessingState",
    "Rejection",
    "RejectionKind",
    "Upload",
]
