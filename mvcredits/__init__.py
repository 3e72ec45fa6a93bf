"""
Music Video Credits

Extract director, production company and label credits from music video
descriptions, and reconcile a hand-curated source table against the stored
content set.
"""

__version__ = "1.0.0"
__author__ = "Music Video Credits Team"

from .config import PipelineConfig
from .content_store import ContentStore
from .credit_extractor import CreditExtractor
from .reconciler import Reconciler
from .slug_matcher import SlugMatcher

__all__ = ["ContentStore", "CreditExtractor", "PipelineConfig", "Reconciler", "SlugMatcher"]
