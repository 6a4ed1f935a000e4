"""
Orchestrator module for the improve/speak session.
"""

from ai_text_improver.orchestrator.improver_session import ImproverSession, TranscriptSource
from ai_text_improver.orchestrator.schemas import (
    ActionResult,
    CredentialService,
    Credentials,
    OperationKind,
    SpeakSource,
)
from ai_text_improver.orchestrator.session_state import SessionState

__all__ = [
    "ActionResult",
    "CredentialService",
    "Credentials",
    "ImproverSession",
    "OperationKind",
    "SessionState",
    "SpeakSource",
    "TranscriptSource",
]
