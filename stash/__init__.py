"""
Stash: a personal content-capture tool.

Collects text, links and images into channels grouped by vertical, and enriches
them with AI-generated titles, summaries, tags and cross-block insights.
"""

__version__ = "0.1.0"
__author__ = "Stash Project"

# Import main components
from .database import DatabaseManager, PersistenceLayer
from .models import ApplicationState, AnalysisResult, Block, BlockType, Channel
from .taxonomy import TaxonomyStore
from .content import ContentStore
from .agents import EnrichmentService
from .app import AppController

__all__ = [
    "DatabaseManager",
    "PersistenceLayer",
    "ApplicationState",
    "AnalysisResult",
    "Block",
    "BlockType",
    "Channel",
    "TaxonomyStore",
    "ContentStore",
    "EnrichmentService",
    "AppController"
]
