"""Search components for idscope.

- prober: lightweight existence checks against profile URLs
- profile: profile page fetching and signal extraction
- discovery: search-engine assisted candidate discovery
- coordinator: concurrent fan-out across platforms and vectors
"""

from .coordinator import ProbeCoordinator  # noqa: F401
from .discovery import DiscoveryClient  # noqa: F401
from .profile import ProfileFetcher  # noqa: F401
from .prober import ExistenceProber  # noqa: F401

__all__ = [
    "ExistenceProber",
    "ProfileFetcher",
    "DiscoveryClient",
    "ProbeCoordinator",
]
