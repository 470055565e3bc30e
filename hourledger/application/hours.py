"""
Hours ledger use cases: summary and overflow for one student.

Each call fetches the pool's payments and checkins, rebuilds the buckets from
scratch and reduces them; nothing derived is stored except the summary cache.
"""
import logging
from dataclasses import dataclass

from hourledger.application.ports import RecordStore, SummaryCache
from hourledger.domain.bucket import AllocationResult, build_ledger
from hourledger.domain.errors import StudentNotFoundError
from hourledger.domain.student import PoolMembership, group_by_student, resolve_pool_owner
from hourledger.domain.summary import HoursSummary, OverflowReport, overflow_report, summarize

logger = logging.getLogger(__name__)


@dataclass
class PoolLedger:
    pool: PoolMembership
    allocation: AllocationResult


class LedgerService:
    def __init__(self, store: RecordStore, cache: SummaryCache) -> None:
        self._store = store
        self._cache = cache

    def load_pool_ledger(self, student_id: int, related_ids=None) -> PoolLedger:
        """
        Resolve the student's hour pool and allocate its checkins.

        related_ids: pool links to use instead of the ones stored on the student.
        """
        if related_ids is None:
            student = self._store.get_student(student_id)
            if student is None:
                raise StudentNotFoundError(student_id)
            related_ids = student.related_student_ids

        member_ids = [student_id, *[rid for rid in related_ids if rid != student_id]]
        payments = self._store.list_payments(member_ids)
        pool = resolve_pool_owner(student_id, related_ids, group_by_student(payments))

        owner_payments = [p for p in payments if p.student_id == pool.owner_id]
        checkins = self._store.list_checkins(list(pool.member_ids))
        allocation = build_ledger(owner_payments, checkins)
        logger.debug(
            "Ledger for student_id=%s (owner=%s): %d bucket(s), %d overflow checkin(s)",
            student_id, pool.owner_id, len(allocation.buckets), len(allocation.overflow),
        )
        return PoolLedger(pool=pool, allocation=allocation)

    def compute_summary(self, student_id: int) -> HoursSummary:
        """
        {purchased_hours, completed_hours, remaining_hours} for the student's pool

        Served from the cache while fresh; payment writes evict it.
        """
        cached = self._cache.get(student_id)
        if cached is not None:
            return cached

        ledger = self.load_pool_ledger(student_id)
        summary = summarize(ledger.allocation)
        self._cache.set(student_id, summary)
        return summary

    def compute_overflow(self, student_id: int, related_ids=None) -> OverflowReport:
        """Which checkins are covered by purchased hours and which are not."""
        ledger = self.load_pool_ledger(student_id, related_ids)
        report = overflow_report(ledger.allocation)
        if report.has_overflow:
            logger.info(
                "Student_id=%s has %d unpaid checkin(s) since %s",
                student_id, len(report.unpaid_checkins), report.overflow_boundary_date,
            )
        return report
