"""
Access log tests: append, query, and failure isolation
"""
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from app.models.audit import AccessAction, AccessLog, AccessStatus
from app.models.base import utcnow
from app.services.audit_service import AccessLogEntry, AccessLogFilters, AuditService, RequestInfo
from app.services.invitation_service import InvitationService
from app.services.user_service import get_user_service


audit_service = AuditService()


class BrokenAuditService(AuditService):
    """Writes rows the database rejects (action is NOT NULL)"""

    def _to_row(self, entry):
        row = super()._to_row(entry)
        row.action = None
        return row


@pytest.mark.access
class TestAppend:

    @pytest.mark.asyncio
    async def test_append_records_request_metadata(self, db_session, admin_user):
        log_id = await audit_service.append(db_session, AccessLogEntry(
            action=AccessAction.SIGNIN,
            status=AccessStatus.FAILED,
            user_id=admin_user.id,
            tenant_id="myapp",
            error_message="Invalid password",
            request=RequestInfo(ip_address="10.0.0.1", user_agent="pytest"),
        ))

        log = await db_session.get(AccessLog, log_id)
        assert log.action == AccessAction.SIGNIN
        assert log.status == AccessStatus.FAILED
        assert log.tenant_id == "myapp"
        assert log.ip_address == "10.0.0.1"
        assert log.user_agent == "pytest"
        assert log.timestamp is not None

    @pytest.mark.asyncio
    async def test_append_without_request_metadata(self, db_session):
        log_id = await audit_service.append(db_session, AccessLogEntry(
            action=AccessAction.ACCEPT_INVITATION,
            status=AccessStatus.FAILED,
        ))

        log = await db_session.get(AccessLog, log_id)
        assert log.user_id is None
        assert log.ip_address is None
        assert log.user_agent is None

    @pytest.mark.asyncio
    async def test_append_many_empty(self, db_session):
        assert await audit_service.append_many(db_session, []) == []

    @pytest.mark.asyncio
    async def test_failed_write_is_reported_not_raised(self, db_session, caplog):
        broken = BrokenAuditService()

        with caplog.at_level("ERROR", logger="app.services.audit_service"):
            result = await broken.append(db_session, AccessLogEntry(
                action=AccessAction.SIGNIN,
                status=AccessStatus.SUCCESS,
            ))

        assert result is None
        assert "Failed to write 1 access log entry" in caplog.text
        assert await db_session.scalar(select(func.count(AccessLog.id))) == 0

        # The session is usable again afterwards
        assert await audit_service.append(db_session, AccessLogEntry(
            action=AccessAction.SIGNIN,
            status=AccessStatus.SUCCESS,
        )) is not None


@pytest.mark.access
class TestQuery:

    @pytest.mark.asyncio
    async def test_filters_and_pagination(self, db_session, admin_user):
        entries = [
            AccessLogEntry(AccessAction.INVITE, AccessStatus.SUCCESS, user_id=admin_user.id, tenant_id="myapp"),
            AccessLogEntry(AccessAction.INVITE, AccessStatus.SUCCESS, user_id=admin_user.id, tenant_id="dashboard"),
            AccessLogEntry(AccessAction.SIGNIN, AccessStatus.FAILED, tenant_id="myapp"),
            AccessLogEntry(AccessAction.SIGNIN, AccessStatus.SUCCESS, user_id=admin_user.id, tenant_id="myapp"),
        ]
        ids = await audit_service.append_many(db_session, entries)
        assert len(ids) == 4

        logs, total = await audit_service.query(db_session)
        assert total == 4
        assert [log.id for log in logs] == sorted(ids, reverse=True)

        logs, total = await audit_service.query(db_session, AccessLogFilters(tenant_id="myapp"))
        assert total == 3

        logs, total = await audit_service.query(
            db_session, AccessLogFilters(action=AccessAction.SIGNIN, status=AccessStatus.FAILED)
        )
        assert total == 1
        assert logs[0].user_id is None

        logs, total = await audit_service.query(db_session, AccessLogFilters(user_id=admin_user.id))
        assert total == 3

        logs, total = await audit_service.query(db_session, skip=1, limit=2)
        assert total == 4
        assert [log.id for log in logs] == sorted(ids, reverse=True)[1:3]

    @pytest.mark.asyncio
    async def test_date_range(self, db_session):
        await audit_service.append(db_session, AccessLogEntry(AccessAction.SIGNIN, AccessStatus.SUCCESS))
        now = utcnow()

        _, total = await audit_service.query(
            db_session, AccessLogFilters(start_date=now - timedelta(minutes=1), end_date=now + timedelta(minutes=1))
        )
        assert total == 1

        _, total = await audit_service.query(db_session, AccessLogFilters(start_date=now + timedelta(minutes=1)))
        assert total == 0


@pytest.mark.access
class TestLoggingNeverFailsMutations:

    @pytest.fixture
    def unlogged_service(self, mailer):
        return InvitationService(audit_service=BrokenAuditService(), email_service=mailer)

    @pytest.mark.asyncio
    async def test_issue_accept_revoke_survive_log_failures(self, db_session, unlogged_service, tenants):
        invitation = await unlogged_service.issue(db_session, "alice@example.com", ["myapp", "dashboard"])
        assert invitation.tenants == ["myapp", "dashboard"]
        invitation_id = invitation.id

        accepted = await unlogged_service.accept(db_session, invitation.token)
        user = await get_user_service().get_by_id(db_session, accepted.user_id)
        assert user.is_invitation_accepted is True

        assert await unlogged_service.revoke(db_session, invitation_id, ["myapp"]) == 1
        invitation = await unlogged_service.get(db_session, invitation_id)
        assert invitation.tenants == ["dashboard"]

        assert await db_session.scalar(select(func.count(AccessLog.id))) == 0
