"""
Worker implementations.

Responsibilities:
- Turn a WorkerTask into an output mapping
- Raise WorkerError for domain failures

Does NOT:
- Decide step order, timeouts or retries (the executor does)
"""

from agentcoord.infrastructure.workers.generator import GeneratorWorker
from agentcoord.infrastructure.workers.mock import MockWorker
from agentcoord.infrastructure.workers.quality import QualityWorker
from agentcoord.infrastructure.workers.reviewer import ReviewerWorker
from agentcoord.infrastructure.workers.updater import UpdaterWorker

__all__ = [
    "GeneratorWorker",
    "MockWorker",
    "QualityWorker",
    "ReviewerWorker",
    "UpdaterWorker",
]
