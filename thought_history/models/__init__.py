from thought_history.models.batch import ANALYSIS_STEP, MAIN_STEP, Batch, agent_step
from thought_history.models.thought import ThoughtMetadata, ThoughtRecord
from thought_history.models.utils import generate_batch_id, utcnow

__all__ = [
    "ANALYSIS_STEP",
    "MAIN_STEP",
    "Batch",
    "ThoughtMetadata",
    "ThoughtRecord",
    "agent_step",
    "generate_batch_id",
    "utcnow",
]
