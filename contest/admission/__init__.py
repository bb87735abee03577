"""
Admission: validation, identity normalization, dedupe markers and the atomic
entry commit.
"""

from .controller import AdmissionController
from .identity import identity_hash, normalize_email, normalize_phone
from .ledger import DedupeLedger
from .store import EntryStore
from .types import DedupeMarker, Entry, Submission
from .validation import ContestRules, Validator, load_contest_rules

__all__ = [
    "AdmissionController",
    "ContestRules",
    "DedupeLedger",
    "DedupeMarker",
    "Entry",
    "EntryStore",
    "Submission",
    "Validator",
    "identity_hash",
    "load_contest_rules",
    "normalize_email",
    "normalize_phone",
]
