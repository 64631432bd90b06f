"""Domain models for the decision pipeline."""

from smsgate.domain.models.decision import Decision, GuardResult, Outcome
from smsgate.domain.models.gate_config import GateConfig

__all__ = ["Decision", "GateConfig", "GuardResult", "Outcome"]
