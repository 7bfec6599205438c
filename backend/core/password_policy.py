# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Password lifecycle policy.

Two halves live here and nothing in this module touches the database:

1. Expiry evaluation – pure functions over
   ``(password_changed_at, expiry_days, must_change_password, now)``.
   The clock is always passed in; callers use :func:`utc_now`.
2. Format policy – minimum length plus character-class diversity, and the
   temporary-password generator that is guaranteed to satisfy it.

Expiry boundary
---------------
A password changed at *t* with an expiry of *n* days is still valid at
exactly ``t + n days`` and expired one microsecond later.
"""

import math
import random as _rng
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from core.errors import PolicyViolation

_ONE_DAY = timedelta(days=1)
_MAX_PASSWORD_BYTES = 4096

# Policy-violation reason codes (returned to the client as-is)
REASON_TOO_SHORT = "too_short"
REASON_TOO_LONG = "too_long"
REASON_CLASS_DIVERSITY = "insufficient_class_diversity"
REASON_REUSED = "reused"

# Named character classes a policy may count towards its diversity rule
CHARACTER_CLASSES = {
    "letters": re.compile(r"[A-Za-z]"),
    "lowercase": re.compile(r"[a-z]"),
    "uppercase": re.compile(r"[A-Z]"),
    "digits": re.compile(r"[0-9]"),
    "symbols": re.compile(r"[^A-Za-z0-9\s]"),
}


# ---------------------------------------------------------------------------
# 1.  Expiry evaluation
# ---------------------------------------------------------------------------


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat those as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def expires_at(password_changed_at: datetime, expiry_days: int) -> datetime:
    return as_utc(password_changed_at) + timedelta(days=expiry_days)


def is_expired(password_changed_at: datetime, expiry_days: int, now: datetime) -> bool:
    """True iff *now* is strictly after the expiry instant."""
    return as_utc(now) > expires_at(password_changed_at, expiry_days)


def days_until_expiry(password_changed_at: datetime, expiry_days: int, now: datetime) -> int:
    """
    Whole days left, rounded up.  Zero or negative means the password is
    expiring today or already overdue by that many days.
    """
    remaining = expires_at(password_changed_at, expiry_days) - as_utc(now)
    return math.ceil(remaining / _ONE_DAY)


def requires_change(must_change_password: bool, expired: bool) -> bool:
    return bool(must_change_password) or bool(expired)


def should_warn(days_left: int, warning_days: int) -> bool:
    return 0 < days_left <= warning_days


@dataclass(frozen=True)
class PasswordStatus:
    """Read-only projection of a user's password state, used for UI banners."""

    must_change_password: bool
    is_expired: bool
    days_until_expiry: int
    password_expiry_days: int
    expires_at: datetime
    show_warning: bool
    requires_change: bool


def evaluate(
    password_changed_at: datetime,
    expiry_days: int,
    must_change_password: bool,
    now: datetime,
    warning_days: int,
) -> PasswordStatus:
    expired = is_expired(password_changed_at, expiry_days, now)
    days_left = days_until_expiry(password_changed_at, expiry_days, now)
    return PasswordStatus(
        must_change_password=bool(must_change_password),
        is_expired=expired,
        days_until_expiry=days_left,
        password_expiry_days=expiry_days,
        expires_at=expires_at(password_changed_at, expiry_days),
        show_warning=not expired and should_warn(days_left, warning_days),
        requires_change=requires_change(must_change_password, expired),
    )


# ---------------------------------------------------------------------------
# 2.  Format policy + temporary-password generator
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PasswordPolicy:
    """
    The single password policy applied to self-service changes, admin resets
    and user creation alike.  Built once from settings; see
    :func:`get_password_policy`.
    """

    min_length: int = 8
    max_length: int = 128
    required_class_count: int = 2
    character_classes: tuple[str, ...] = ("letters", "digits")
    default_expiry_days: int = 120
    warning_days: int = 7
    prevent_reuse: int = 0
    temp_password_length: int = 8
    temp_password_alphabet: str = "abcdefghijklmnopqrstuvwxyz0123456789"

    def __post_init__(self):
        unknown = [name for name in self.character_classes if name not in CHARACTER_CLASSES]
        if unknown:
            raise ValueError(f"Unknown character classes: {', '.join(unknown)}")
        if self.min_length < 1:
            raise ValueError("min_length must be at least 1")
        # passlib refuses input over 4096 bytes; UTF-8 needs at most 4 per character
        if not self.min_length <= self.max_length <= _MAX_PASSWORD_BYTES // 4:
            raise ValueError(f"max_length must be between min_length and {_MAX_PASSWORD_BYTES // 4}")
        if not 0 <= self.required_class_count <= len(self.character_classes):
            raise ValueError("required_class_count exceeds the number of character classes")
        if not 1 <= self.default_expiry_days <= 365:
            raise ValueError("default_expiry_days must be between 1 and 365")
        if self.prevent_reuse < 0:
            raise ValueError("prevent_reuse cannot be negative")
        # A generated temporary password has to pass check() itself
        if self.temp_password_length < max(self.min_length, self.required_class_count):
            raise ValueError("temp_password_length is shorter than the policy allows")
        if self.temp_password_length > self.max_length:
            raise ValueError("temp_password_length is longer than the policy allows")
        if len(self._generator_pools()) < self.required_class_count:
            raise ValueError("temp_password_alphabet cannot cover the required character classes")

    @classmethod
    def from_settings(cls, settings) -> "PasswordPolicy":
        return cls(
            min_length=settings.password_min_length,
            max_length=settings.password_max_length,
            required_class_count=settings.password_required_class_count,
            character_classes=tuple(settings.password_character_classes),
            default_expiry_days=settings.password_expiry_days_default,
            warning_days=settings.password_warning_days,
            prevent_reuse=settings.password_prevent_reuse,
            temp_password_length=settings.temp_password_length,
            temp_password_alphabet=settings.temp_password_alphabet,
        )

    # -- validation --------------------------------------------------------

    def violations(self, password: str) -> list[str]:
        reasons = []
        if len(password) < self.min_length:
            reasons.append(REASON_TOO_SHORT)
        elif len(password) > self.max_length:
            reasons.append(REASON_TOO_LONG)
        present = sum(
            1 for name in self.character_classes if CHARACTER_CLASSES[name].search(password)
        )
        if present < self.required_class_count:
            reasons.append(REASON_CLASS_DIVERSITY)
        return reasons

    def check(self, password: str) -> None:
        """Raise :class:`PolicyViolation` if *password* fails the policy."""
        reasons = self.violations(password)
        if reasons:
            raise PolicyViolation(reasons, detail=self.describe())

    def describe(self) -> str:
        return (
            f"Password must be {self.min_length} to {self.max_length} characters and contain "
            f"at least {self.required_class_count} of: {', '.join(self.character_classes)}"
        )

    # -- generator ---------------------------------------------------------

    def _generator_pools(self) -> list[str]:
        pools = []
        for name in self.character_classes:
            pool = "".join(ch for ch in self.temp_password_alphabet if CHARACTER_CLASSES[name].match(ch))
            if pool:
                pools.append(pool)
        return pools

    def generate_temporary_password(self) -> str:
        """
        Random password of ``temp_password_length`` characters drawn from
        ``temp_password_alphabet`` only, with one character guaranteed from
        each class the policy requires.
        """
        chars = [secrets.choice(pool) for pool in self._generator_pools()[: self.required_class_count]]
        while len(chars) < self.temp_password_length:
            chars.append(secrets.choice(self.temp_password_alphabet))

        # Shuffle so the guaranteed characters do not sit at fixed positions
        _rng.SystemRandom().shuffle(chars)
        return "".join(chars)


_policy: Optional[PasswordPolicy] = None


def get_password_policy() -> PasswordPolicy:
    """
    FastAPI dependency returning the process-wide policy, built from settings
    on first use.  Override it in tests with ``app.dependency_overrides``.
    """
    global _policy
    if _policy is None:
        from core.config import settings

        _policy = PasswordPolicy.from_settings(settings)
    return _policy
