"""
Knowledge store implementations.
"""

from agentcoord.infrastructure.knowledge.filesystem import FilesystemKnowledgeStore

__all__ = ["FilesystemKnowledgeStore"]
