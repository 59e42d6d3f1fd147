"""Promise Rejection Fixer.

Finds `.then(...)` promise chains without rejection handling in JavaScript and
TypeScript source and inserts a no-op `.catch(...)` handler.
"""

__version__ = "0.1.0"

from .analysis.auditor import audit
from .analysis.classifier import HandlerClassifier
from .analysis.locator import locate, locate_sites
from .analysis.scanner import find_matching_close, scan_balanced
from .analysis.synthesizer import FixSynthesizer
from .config.runtime_config import ApplicationMode, RuntimeConfig
from .core.document import Document
from .core.exceptions import FixWriteError, NoActiveDocumentError, PromiseFixerError
from .core.fixer import PromiseFixer
from .core.models import (
    AuditResult,
    ChainSite,
    FixResult,
    HandlingPattern,
    InsertionEdit,
    Position,
    SiteVerdict,
)

__all__ = [
    "ApplicationMode",
    "AuditResult",
    "ChainSite",
    "Document",
    "FixResult",
    "FixSynthesizer",
    "FixWriteError",
    "HandlerClassifier",
    "HandlingPattern",
    "InsertionEdit",
    "NoActiveDocumentError",
    "Position",
    "PromiseFixer",
    "PromiseFixerError",
    "RuntimeConfig",
    "SiteVerdict",
    "audit",
    "find_matching_close",
    "locate",
    "locate_sites",
    "scan_balanced",
]
