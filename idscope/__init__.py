"""idscope - Identity discovery and evidence scoring.

Finds public profile pages for a name or handle across a fixed set of
platforms and scores how likely each one belongs to the same identity.
"""

__version__ = "0.1.0"
__author__ = "idscope Contributors"

from idscope.core.data_models import SearchQuery, SearchResult
from idscope.core.orchestrator import Orchestrator, SearchReport

__all__ = ["Orchestrator", "SearchQuery", "SearchReport", "SearchResult", "__version__"]
