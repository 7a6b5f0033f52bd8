"""
Audit Service
Append-only access log with a commit-then-log policy
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AccessAction, AccessLog, AccessStatus

logger = logging.getLogger(__name__)


@dataclass
class RequestInfo:
    """Client metadata recorded with every log entry"""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass
class AccessLogEntry:
    action: AccessAction
    status: AccessStatus
    user_id: Optional[int] = None
    tenant_id: Optional[str] = None
    error_message: Optional[str] = None
    request: Optional[RequestInfo] = None


@dataclass
class AccessLogFilters:
    user_id: Optional[int] = None
    tenant_id: Optional[str] = None
    action: Optional[AccessAction] = None
    status: Optional[AccessStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class AuditService:
    """
    Writes and queries access log entries.

    Entries are written after the mutation they describe has been committed,
    in their own commit. A failed write is rolled back and logged; it is never
    raised to the caller, so it cannot turn a successful operation into a
    failed one.
    """

    def _to_row(self, entry: AccessLogEntry) -> AccessLog:
        request = entry.request or RequestInfo()
        return AccessLog(
            user_id=entry.user_id,
            tenant_id=entry.tenant_id,
            action=entry.action,
            status=entry.status,
            ip_address=request.ip_address,
            user_agent=request.user_agent,
            error_message=entry.error_message,
        )

    async def append(self, db: AsyncSession, entry: AccessLogEntry) -> Optional[int]:
        """
        Append one entry.

        Returns:
            The new entry id, or None if the write failed
        """
        ids = await self.append_many(db, [entry])
        return ids[0] if ids else None

    async def append_many(self, db: AsyncSession, entries: Iterable[AccessLogEntry]) -> List[int]:
        rows = [self._to_row(entry) for entry in entries]
        if not rows:
            return []
        try:
            db.add_all(rows)
            await db.commit()
        except Exception:
            logger.exception(
                f"Failed to write {len(rows)} access log entr{'y' if len(rows) == 1 else 'ies'} "
                f"(action={rows[0].action})"
            )
            try:
                await db.rollback()
            except Exception:
                logger.exception("Rollback after access log failure also failed")
            return []
        return [row.id for row in rows]

    async def query(
        self,
        db: AsyncSession,
        filters: Optional[AccessLogFilters] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[AccessLog], int]:
        """
        Query log entries, newest first.

        Returns:
            (page of entries, total matching entries)
        """
        filters = filters or AccessLogFilters()
        conditions = []
        if filters.user_id is not None:
            conditions.append(AccessLog.user_id == filters.user_id)
        if filters.tenant_id:
            conditions.append(AccessLog.tenant_id == filters.tenant_id)
        if filters.action:
            conditions.append(AccessLog.action == filters.action)
        if filters.status:
            conditions.append(AccessLog.status == filters.status)
        if filters.start_date:
            conditions.append(AccessLog.timestamp >= filters.start_date)
        if filters.end_date:
            conditions.append(AccessLog.timestamp <= filters.end_date)

        total_result = await db.execute(
            select(func.count(AccessLog.id)).where(*conditions)
        )
        total = total_result.scalar_one()

        result = await db.execute(
            select(AccessLog)
            .where(*conditions)
            .order_by(AccessLog.timestamp.desc(), AccessLog.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total


# Singleton instance
_audit_service: Optional[AuditService] = None


def get_audit_service() -> AuditService:
    """Get or create the audit service singleton"""
    global _audit_service
    if _audit_service is None:
        _audit_service = AuditService()
    return _audit_service
