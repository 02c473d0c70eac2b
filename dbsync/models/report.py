from typing import List, Optional
from dataclasses import dataclass, field

from dbsync.constants import EXIT_JOB_FAILURES, EXIT_OK
from dbsync.sync.engine import SyncResult

SUCCEEDED = "succeeded"
FAILED = "failed"
SKIPPED = "skipped"


@dataclass
class JobOutcome:
    table: str
    status: str
    result: Optional[SyncResult] = None
    error: Optional[str] = None
    duration: float = 0.0


@dataclass
class RunReport:
    dry_run: bool
    outcomes: List[JobOutcome] = field(default_factory=list)

    def _count(self, status: str) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def succeeded(self) -> int:
        return self._count(SUCCEEDED)

    @property
    def failed(self) -> int:
        return self._count(FAILED)

    @property
    def skipped(self) -> int:
        return self._count(SKIPPED)

    def _tables(self, status: str) -> List[str]:
        return [o.table for o in self.outcomes if o.status == status]

    @property
    def failed_tables(self) -> List[str]:
        return self._tables(FAILED)

    @property
    def skipped_tables(self) -> List[str]:
        return self._tables(SKIPPED)

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.skipped == 0

    @property
    def exit_code(self) -> int:
        return EXIT_OK if self.ok else EXIT_JOB_FAILURES
