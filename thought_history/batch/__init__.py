from thought_history.batch.buffer import IngestBuffer, coerce_record
from thought_history.batch.grouper import partition_by_agent
from thought_history.batch.policy import CommitPolicy, RateLimitPolicy
from thought_history.batch.repository import RepositoryState, TagInfo
from thought_history.batch.states import Lifecycle, LifecycleState

# ``protocol`` is not re-exported here: it depends on ``analytics``, which
# itself imports ``batch.grouper``.

__all__ = [
    "CommitPolicy",
    "IngestBuffer",
    "Lifecycle",
    "LifecycleState",
    "RateLimitPolicy",
    "RepositoryState",
    "TagInfo",
    "coerce_record",
    "partition_by_agent",
]
