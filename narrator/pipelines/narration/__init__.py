"""Narration pipeline package.

Modules are organised by the order in which a narration run executes:

1. `scoring` / `selection` – rank the candidate batch and pick one post.
2. `cleaning` – turn the post into narration-ready plain text.
3. `failover` – synthesize speech with retries across providers.
4. `orchestrator` – the saga tying the stages to the store and S3.
5. `flow` – the stage map and the failure code bound to each stage.
"""

from .cleaning import TextCleaner
from .failover import FailoverManager, RetryPolicy
from .flow import NarrationPipeline, PipelineStage, SagaStage
from .orchestrator import NarrationOrchestrator, classify_persist
from .scoring import Scorer, ScoringWeights, TextLengthBounds, has_usable_text
from .selection import Selector
from .types import (
    CandidateItem,
    CandidateScore,
    FormattedText,
    NarrationResult,
    PersistKind,
    PersistOutcome,
    ProviderStatus,
    SynthesisResult,
)

__all__ = [
    "CandidateItem",
    "CandidateScore",
    "FailoverManager",
    "FormattedText",
    "NarrationOrchestrator",
    "NarrationPipeline",
    "NarrationResult",
    "PersistKind",
    "PersistOutcome",
    "PipelineStage",
    "ProviderStatus",
    "RetryPolicy",
    "SagaStage",
    "Scorer",
    "ScoringWeights",
    "Selector",
    "SynthesisResult",
    "TextCleaner",
    "TextLengthBounds",
    "classify_persist",
    "has_usable_text",
]
