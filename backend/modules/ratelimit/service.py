"""
Rate limiter.

Counts attempts per ``<rule key>:<ip>`` inside a fixed lookback window and
denies requests once the endpoint's limit is reached. The store is injected,
so several limiter instances can share one backing table.

When the store itself fails, the limiter follows ``fail_closed``: by default
it logs the error and lets the request through.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Optional

from .exceptions import IpBlockedError, RateLimitExceededError
from .interfaces import IAttemptStore
from .models import (
    DEFAULT_RULES,
    BlockedIp,
    RateLimitAttempt,
    RateLimitDecision,
    RateLimitRule,
    RiskAssessment,
)

logger = logging.getLogger(__name__)

# Suspicious-activity scoring
RISK_WINDOW = timedelta(hours=1)
SUSPICIOUS_THRESHOLD = 50
BLOCK_THRESHOLD = 80
FAIL_CLOSED_RETRY_AFTER = 60


class RateLimiter:
    """
    Endpoint rate limiter over an attempt store.

    Args:
        store: Attempt store implementation
        rules: Endpoint rules; defaults to DEFAULT_RULES
        fail_closed: Deny requests when the store is unavailable
    """

    def __init__(
        self,
        store: IAttemptStore,
        rules: Optional[dict[str, RateLimitRule]] = None,
        fail_closed: bool = False,
    ):
        self._store = store
        self._rules = dict(rules if rules is not None else DEFAULT_RULES)
        self._fail_closed = fail_closed

    def get_rule(self, endpoint: str) -> Optional[RateLimitRule]:
        return self._rules.get(endpoint)

    @staticmethod
    def _key(rule: RateLimitRule, ip_address: str) -> str:
        return f"{rule.key}:{ip_address}"

    async def check(self, endpoint: str, ip_address: str) -> RateLimitDecision:
        """
        Decide whether a request may proceed.

        Args:
            endpoint: Endpoint name (e.g. ``auth:signup``)
            ip_address: Client IP

        Returns:
            RateLimitDecision; endpoints without a rule are always allowed
        """
        rule = self._rules.get(endpoint)
        if rule is None:
            return RateLimitDecision(allowed=True, limit=0, remaining=0)

        now = datetime.now(timezone.utc)
        window = timedelta(seconds=rule.window_seconds)
        try:
            attempts = self._store.list_attempts(self._key(rule, ip_address), now - window)
        except Exception:
            logger.exception(f"Rate limit store unavailable while checking {endpoint}")
            if self._fail_closed:
                return RateLimitDecision(
                    allowed=False,
                    limit=rule.limit,
                    remaining=0,
                    retry_after=FAIL_CLOSED_RETRY_AFTER,
                )
            return RateLimitDecision(allowed=True, limit=rule.limit, remaining=rule.limit)

        counted = [a for a in attempts if not (rule.failures_only and a.success)]
        if len(counted) >= rule.limit:
            reset_at = min(a.attempted_at for a in counted) + window
            retry_after = max(1, math.ceil((reset_at - now).total_seconds()))
            return RateLimitDecision(
                allowed=False,
                limit=rule.limit,
                remaining=0,
                retry_after=retry_after,
                reset_at=reset_at,
            )

        return RateLimitDecision(
            allowed=True,
            limit=rule.limit,
            remaining=rule.limit - len(counted),
        )

    async def enforce(self, endpoint: str, ip_address: str) -> RateLimitDecision:
        """
        Check and raise when denied.

        Raises:
            IpBlockedError: If the IP is currently blocked
            RateLimitExceededError: If the endpoint limit is exhausted
        """
        block = self._get_block(ip_address)
        if block is not None:
            retry_after = math.ceil(
                (block.blocked_until - datetime.now(timezone.utc)).total_seconds()
            )
            raise IpBlockedError(max(1, retry_after))

        decision = await self.check(endpoint, ip_address)
        if not decision.allowed:
            raise RateLimitExceededError(decision.retry_after, decision.limit, decision.remaining)
        return decision

    async def record_attempt(
        self,
        endpoint: str,
        ip_address: str,
        user_agent: Optional[str],
        success: bool,
        identity: Optional[str] = None,
    ) -> None:
        """
        Record the outcome of a request.

        A success on a rule with ``clear_on_success`` forgives the key's
        earlier failures. Store errors are logged and not raised.
        """
        rule = self._rules.get(endpoint)
        if rule is None:
            return

        key = self._key(rule, ip_address)
        try:
            self._store.add_attempt(RateLimitAttempt(
                key=key,
                endpoint=endpoint,
                ip_address=ip_address,
                identity=identity,
                user_agent=user_agent,
                success=success,
            ))
            if success and rule.clear_on_success:
                self._store.clear_failures(key)
        except Exception:
            logger.exception(f"Failed to record rate limit attempt for {endpoint}")

    # -------------------------------------------------------------------------
    # IP blocking and suspicious activity
    # -------------------------------------------------------------------------

    def _get_block(self, ip_address: str) -> Optional[BlockedIp]:
        try:
            return self._store.get_block(ip_address, datetime.now(timezone.utc))
        except Exception:
            logger.exception(f"Failed to read IP block for {ip_address}")
            return None

    async def is_blocked(self, ip_address: str) -> bool:
        return self._get_block(ip_address) is not None

    async def block_ip(self, ip_address: str, minutes: int, reason: str) -> None:
        """Refuse all requests from an IP for ``minutes``."""
        self._store.block_ip(BlockedIp(
            ip_address=ip_address,
            blocked_until=datetime.now(timezone.utc) + timedelta(minutes=minutes),
            reason=reason,
        ))
        logger.warning(f"Blocked IP {ip_address} for {minutes} minutes: {reason}")

    async def assess_risk(self, ip_address: str) -> RiskAssessment:
        """
        Score an IP's recent behaviour.

        Looks at the last hour of attempts across all endpoints: volume,
        failure count and ratio, distinct identities tried, and bursts of
        attempts less than a second apart.
        """
        since = datetime.now(timezone.utc) - RISK_WINDOW
        try:
            attempts = self._store.list_attempts_by_ip(ip_address, since)
        except Exception:
            logger.exception(f"Failed to load attempts for risk assessment of {ip_address}")
            return RiskAssessment()

        if not attempts:
            return RiskAssessment()

        score = 0
        reasons: list[str] = []
        failures = [a for a in attempts if not a.success]

        if len(attempts) > 20:
            score += 30
            reasons.append("high_volume")
        if len(failures) > 10:
            score += 40
            reasons.append("many_failures")
        if len(failures) / len(attempts) > 0.8:
            score += 35
            reasons.append("high_failure_ratio")

        identities = {a.identity for a in attempts if a.identity}
        if len(identities) > 5:
            score += 25
            reasons.append("many_identities")

        ordered = sorted(a.attempted_at for a in attempts)
        rapid = sum(
            1 for earlier, later in zip(ordered, ordered[1:])
            if (later - earlier).total_seconds() < 1
        )
        if rapid > 5:
            score += 30
            reasons.append("rapid_attempts")

        return RiskAssessment(
            score=score,
            suspicious=score >= SUSPICIOUS_THRESHOLD,
            reasons=reasons,
        )
