"""
Per-run routing records and the summary of a sync pass.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

@dataclass
class RoutingDecision:
    track_id: str
    destination_playlist_id: str
    score: int

@dataclass
class AddResult:
    """Outcome of an idempotent playlist insertion."""
    added: int = 0
    skipped: int = 0

@dataclass
class SyncReport:
    """What one sync pass did."""
    first_run: bool = False
    watermark: Optional[datetime] = None
    rebuilt: List[str] = field(default_factory=list)
    decisions: Dict[str, List[RoutingDecision]] = field(default_factory=dict)
    results: Dict[str, AddResult] = field(default_factory=dict)

    @property
    def routed_count(self) -> int:
        return sum(len(batch) for batch in self.decisions.values())

    @property
    def added_count(self) -> int:
        return sum(result.added for result in self.results.values())

    @property
    def skipped_count(self) -> int:
        return sum(result.skipped for result in self.results.values())
