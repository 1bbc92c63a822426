"""
Session Lifecycle Use Case

Create, look up, touch, revoke, bulk-revoke, report on and clean up user sessions.
"""

import asyncio
import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Union
from uuid import UUID

from src.app.services.credential_crypto import generate_secure_token, hash_token
from src.app.services.security_config import SecurityConfig
from src.app.services.store_guard import guarded
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import Session
from src.domain.errors import INTERNAL_ERROR_MESSAGE, session_not_found, validation_failed
from src.libs.result import Result, Return
from .dtos import (
    BulkRevokeError,
    BulkRevokeResult,
    CreatedSession,
    DeviceCount,
    LocationCount,
    Pagination,
    SessionAnalytics,
    SessionInfo,
    SessionListResponse,
    SessionStats,
)
from .user_agent import parse_user_agent

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
TOP_ANALYTICS_ENTRIES = 5


class SessionLifecycleUseCase:
    """
    Use case for managing user sessions.

    Business Rules:
    - Session tokens are generated here and stored only as SHA-256
    - revoked_at is set at most once; revoking a revoked session is a no-op
      that reports False, not an error
    - Bulk revoke handles every id independently and never aborts the batch
    - touch and cleanup are best effort: failures are logged, not surfaced
    """

    def __init__(self, uow: UnitOfWork, config: Optional[SecurityConfig] = None):
        self.uow = uow
        self.config = config or SecurityConfig()

    @property
    def _timeout(self) -> float:
        return self.config.store_timeout_seconds

    async def create_session(
        self,
        user_id: UUID,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Result[CreatedSession]:
        return await guarded(
            self._create(user_id, user_agent, ip_address), self._timeout, "Session creation"
        )

    async def _create(
        self, user_id: UUID, user_agent: Optional[str], ip_address: Optional[str]
    ) -> Result[CreatedSession]:
        token = generate_secure_token(self.config.session_token_bytes)
        now = datetime.utcnow()

        async with self.uow:
            session = await self.uow.sessions.create(
                Session(
                    user_id=user_id,
                    token_hash=hash_token(token),
                    user_agent=user_agent,
                    ip_address=ip_address,
                    last_active_at=now,
                    revoked_at=None,
                    created_at=now,
                )
            )
            await self.uow.commit()

        logger.info(f"Session {session.id} created for user {user_id}")
        return Return.ok(CreatedSession(session=SessionInfo.from_entity(session), token=token))

    async def touch(self, session_id: UUID) -> None:
        """Refresh last_active_at. Missing sessions and store errors are only logged."""
        try:
            await asyncio.wait_for(self._touch(session_id), timeout=self._timeout)
        except Exception:
            logger.exception(f"Failed to touch session {session_id}")

    async def _touch(self, session_id: UUID) -> None:
        async with self.uow:
            touched = await self.uow.sessions.touch(session_id, datetime.utcnow())
            if not touched:
                logger.warning(f"Touch on missing session {session_id}")
                return
            await self.uow.commit()

    async def revoke(
        self, session_id: UUID, owner_user_id: Optional[UUID] = None
    ) -> Result[bool]:
        """
        Revoke one session. Ok(True) only if this call changed the row;
        Ok(False) if it was missing, not owned by owner_user_id, or already revoked.
        """
        return await guarded(
            self._revoke(session_id, owner_user_id), self._timeout, "Session revocation"
        )

    async def _revoke(self, session_id: UUID, owner_user_id: Optional[UUID]) -> Result[bool]:
        async with self.uow:
            revoked = await self.uow.sessions.revoke(
                session_id, datetime.utcnow(), user_id=owner_user_id
            )
            await self.uow.commit()

        if revoked:
            logger.info(f"Session {session_id} revoked")
        return Return.ok(revoked)

    async def revoke_all(
        self, user_id: UUID, exclude_session_id: Optional[UUID] = None
    ) -> Result[int]:
        """Revoke every active session of a user except exclude_session_id"""
        return await guarded(
            self._revoke_all(user_id, exclude_session_id),
            self._timeout,
            "Bulk session revocation",
        )

    async def _revoke_all(self, user_id: UUID, exclude_session_id: Optional[UUID]) -> Result[int]:
        async with self.uow:
            count = await self.uow.sessions.revoke_all_for_user(
                user_id, datetime.utcnow(), exclude_session_id=exclude_session_id
            )
            await self.uow.commit()

        logger.info(f"Revoked {count} session(s) for user {user_id}")
        return Return.ok(count)

    async def bulk_revoke(
        self,
        session_ids: Sequence[Union[UUID, str]],
        owner_user_id: Optional[UUID] = None,
    ) -> Result[BulkRevokeResult]:
        """
        Revoke each id independently. Every id ends up counted exactly once as a
        success or a failure, even when the unit of work itself breaks.
        """
        outcome = BulkRevokeResult()

        try:
            async with self.uow:
                for raw_id in session_ids:
                    await self._revoke_one(raw_id, owner_user_id, outcome)
        except Exception:
            # Successes were committed one by one; only unvisited ids are lost
            logger.exception("Bulk revoke unit of work failed")
            for raw_id in session_ids[outcome.success + outcome.failed:]:
                outcome.failed += 1
                outcome.errors.append(
                    BulkRevokeError(session_id=str(raw_id), error=INTERNAL_ERROR_MESSAGE)
                )

        logger.info(f"Bulk revoke: {outcome.success} succeeded, {outcome.failed} failed")
        return Return.ok(outcome)

    async def _revoke_one(
        self, raw_id: Union[UUID, str], owner_user_id: Optional[UUID], outcome: BulkRevokeResult
    ) -> None:
        try:
            session_id = raw_id if isinstance(raw_id, UUID) else UUID(str(raw_id))
        except ValueError:
            outcome.failed += 1
            outcome.errors.append(
                BulkRevokeError(session_id=str(raw_id), error="Invalid session id")
            )
            return

        try:
            revoked = await asyncio.wait_for(
                self.uow.sessions.revoke(session_id, datetime.utcnow(), user_id=owner_user_id),
                timeout=self._timeout,
            )
            if revoked:
                await self.uow.commit()
        except Exception:
            logger.exception(f"Bulk revoke failed for session {session_id}")
            await self._rollback_quietly()
            outcome.failed += 1
            outcome.errors.append(
                BulkRevokeError(session_id=str(session_id), error=INTERNAL_ERROR_MESSAGE)
            )
            return

        if revoked:
            outcome.success += 1
        else:
            outcome.failed += 1
            outcome.errors.append(
                BulkRevokeError(session_id=str(session_id), error=session_not_found().message)
            )

    async def _rollback_quietly(self) -> None:
        """Discard a failed revocation; a failing rollback must not end the batch"""
        try:
            await self.uow.rollback()
        except Exception:
            logger.exception("Rollback after failed bulk revoke entry also failed")

    async def cleanup(self, older_than_days: Optional[int] = None) -> int:
        """
        Delete sessions revoked, or idle, since before the cutoff.

        Background operation: errors are logged and reported as 0 deletions.
        """
        days = self.config.session_cleanup_days if older_than_days is None else older_than_days
        cutoff = datetime.utcnow() - timedelta(days=days)
        try:
            deleted = await asyncio.wait_for(self._cleanup(cutoff), timeout=self._timeout)
        except Exception:
            logger.exception("Session cleanup failed")
            return 0

        logger.info(f"Session cleanup removed {deleted} session(s) older than {days} day(s)")
        return deleted

    async def _cleanup(self, cutoff: datetime) -> int:
        async with self.uow:
            deleted = await self.uow.sessions.delete_stale(cutoff)
            await self.uow.commit()
        return deleted

    async def find_by_token(self, token: str) -> Result[Optional[SessionInfo]]:
        """Resolve an active session from its plaintext token"""
        if not token:
            return Return.ok(None)
        return await guarded(self._find_by_token(token), self._timeout, "Session lookup")

    async def _find_by_token(self, token: str) -> Result[Optional[SessionInfo]]:
        async with self.uow:
            session = await self.uow.sessions.get_by_token_hash(hash_token(token))
            if session is None or not session.is_active:
                return Return.ok(None)
            return Return.ok(SessionInfo.from_entity(session))

    async def list_sessions(
        self,
        user_id: UUID,
        active: Optional[bool] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Result[SessionListResponse]:
        if page < 1 or limit < 1 or limit > MAX_PAGE_SIZE:
            return Return.err(
                validation_failed(f"page must be >= 1 and limit between 1 and {MAX_PAGE_SIZE}")
            )
        return await guarded(
            self._list(user_id, active, page, limit), self._timeout, "Session listing"
        )

    async def _list(
        self, user_id: UUID, active: Optional[bool], page: int, limit: int
    ) -> Result[SessionListResponse]:
        async with self.uow:
            sessions = await self.uow.sessions.list_by_user(
                user_id, active=active, offset=(page - 1) * limit, limit=limit
            )
            total = await self.uow.sessions.count_by_user(user_id, active=active)

            # Project before leaving the unit of work; its rollback expires the rows
            return Return.ok(
                SessionListResponse(
                    sessions=[SessionInfo.from_entity(session) for session in sessions],
                    pagination=Pagination(
                        page=page, limit=limit, total=total, pages=math.ceil(total / limit)
                    ),
                )
            )

    async def get_stats(self, user_id: UUID) -> Result[SessionStats]:
        return await guarded(self._stats(user_id), self._timeout, "Session statistics")

    async def _stats(self, user_id: UUID) -> Result[SessionStats]:
        async with self.uow:
            sessions = self.uow.sessions
            total = await sessions.count_by_user(user_id)
            active = await sessions.count_by_user(user_id, active=True)
            devices = await sessions.count_distinct_user_agents(user_id)
            ip_addresses = await sessions.count_distinct_ip_addresses(user_id)
            last_activity = await sessions.last_activity(user_id)

        return Return.ok(
            SessionStats(
                total_sessions=total,
                active_sessions=active,
                revoked_sessions=total - active,
                unique_devices=devices,
                unique_ip_addresses=ip_addresses,
                last_activity=last_activity,
            )
        )

    async def get_session(
        self, session_id: UUID, owner_user_id: Optional[UUID] = None
    ) -> Result[SessionInfo]:
        """
        Load one session. Sessions of other users are reported exactly like
        missing ones (SESSION_NOT_FOUND).
        """
        return await guarded(
            self._get(session_id, owner_user_id), self._timeout, "Session lookup"
        )

    async def _get(self, session_id: UUID, owner_user_id: Optional[UUID]) -> Result[SessionInfo]:
        async with self.uow:
            session = await self.uow.sessions.get_by_id(session_id)
            if session is None or (
                owner_user_id is not None and session.user_id != owner_user_id
            ):
                return Return.err(session_not_found())
            return Return.ok(SessionInfo.from_entity(session))

    async def get_analytics(
        self, user_id: UUID, now: Optional[datetime] = None
    ) -> Result[SessionAnalytics]:
        """
        Activity counts for today, the last 7 days and the calendar month, plus
        the user's most used browsers and IP addresses.
        """
        return await guarded(
            self._analytics(user_id, now or datetime.utcnow()),
            self._timeout,
            "Session analytics",
        )

    async def _analytics(self, user_id: UUID, now: datetime) -> Result[SessionAnalytics]:
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        this_week = today - timedelta(days=7)
        this_month = today.replace(day=1)

        async with self.uow:
            sessions = self.uow.sessions
            total = await sessions.count_by_user(user_id)
            active = await sessions.count_by_user(user_id, active=True)
            sessions_today = await sessions.count_active_since(user_id, today)
            sessions_this_week = await sessions.count_active_since(user_id, this_week)
            sessions_this_month = await sessions.count_active_since(user_id, this_month)
            user_agents = await sessions.top_user_agents(user_id, TOP_ANALYTICS_ENTRIES)
            ip_addresses = await sessions.top_ip_addresses(user_id, TOP_ANALYTICS_ENTRIES)

        return Return.ok(
            SessionAnalytics(
                total_sessions=total,
                active_sessions=active,
                sessions_today=sessions_today,
                sessions_this_week=sessions_this_week,
                sessions_this_month=sessions_this_month,
                top_devices=_devices_by_browser(user_agents),
                top_locations=[
                    LocationCount(location=ip_address, count=count)
                    for ip_address, count in ip_addresses
                ],
            )
        )


def _devices_by_browser(user_agents: Sequence) -> List[DeviceCount]:
    # Distinct user agent strings often resolve to the same browser
    totals = {}
    for user_agent, count in user_agents:
        browser = parse_user_agent(user_agent).browser
        totals[browser] = totals.get(browser, 0) + count
    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [DeviceCount(device=browser, count=count) for browser, count in ranked]
