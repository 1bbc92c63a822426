"""
Detect Suspicious Activity Use Case

Heuristics over a user's session history, run after authentication.
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.app.services.security_config import SecurityConfig
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AlertType
from .dtos import SecurityAlert
from .user_agent import parse_user_agent

logger = logging.getLogger(__name__)


class DetectSuspiciousActivityUseCase:
    """
    Use case for detecting suspicious session activity.

    Business Rules:
    - NEW_DEVICE: no prior session of the user has this user agent
    - SUSPICIOUS_LOCATION: no prior session of the user has this IP address
    - CONCURRENT_SESSIONS: active sessions exceed the threshold (default 5)
    - Purely observational: never blocks the login, store errors yield no alerts
    """

    def __init__(self, uow: UnitOfWork, config: Optional[SecurityConfig] = None):
        self.uow = uow
        self.config = config or SecurityConfig()

    async def execute(
        self,
        user_id: UUID,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
        exclude_session_id: Optional[UUID] = None,
    ) -> List[SecurityAlert]:
        """
        Args:
            user_id: Authenticated user
            user_agent: User agent of the new login
            ip_address: IP address of the new login
            exclude_session_id: The session just created for this login, so it
                does not count as "prior"
        """
        try:
            return await asyncio.wait_for(
                self._detect(user_id, user_agent, ip_address, exclude_session_id),
                timeout=self.config.store_timeout_seconds,
            )
        except Exception:
            logger.exception(f"Suspicious activity detection failed for user {user_id}")
            return []

    async def _detect(
        self,
        user_id: UUID,
        user_agent: Optional[str],
        ip_address: Optional[str],
        exclude_session_id: Optional[UUID],
    ) -> List[SecurityAlert]:
        alerts: List[SecurityAlert] = []
        now = datetime.utcnow()

        async with self.uow:
            sessions = self.uow.sessions

            if user_agent and not await sessions.exists_with_user_agent(
                user_id, user_agent, exclude_session_id=exclude_session_id
            ):
                device = parse_user_agent(user_agent)
                alerts.append(
                    SecurityAlert(
                        type=AlertType.NEW_DEVICE,
                        user_id=str(user_id),
                        details={"user_agent": user_agent, "device": device.model_dump()},
                        timestamp=now,
                    )
                )

            if ip_address and not await sessions.exists_with_ip_address(
                user_id, ip_address, exclude_session_id=exclude_session_id
            ):
                alerts.append(
                    SecurityAlert(
                        type=AlertType.SUSPICIOUS_LOCATION,
                        user_id=str(user_id),
                        details={"ip_address": ip_address},
                        timestamp=now,
                    )
                )

            active_sessions = await sessions.count_by_user(user_id, active=True)
            threshold = self.config.concurrent_session_threshold
            if active_sessions > threshold:
                alerts.append(
                    SecurityAlert(
                        type=AlertType.CONCURRENT_SESSIONS,
                        user_id=str(user_id),
                        details={"active_sessions": active_sessions, "threshold": threshold},
                        timestamp=now,
                    )
                )

        for alert in alerts:
            logger.warning(f"Security alert {alert.type.value} for user {user_id}")
        return alerts
