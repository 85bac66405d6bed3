import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from valuamor.db.models import PremiumBuyer


class DurationKind(str, Enum):
    LIFETIME = "lifetime"
    SECONDS = "seconds"
    DAYS = "days"
    MONTHS = "months"
    YEARS = "years"


# Fixed-length units: a month is 30 days and a year is 365 days, no calendar math.
UNIT_DURATIONS: dict[DurationKind, timedelta] = {
    DurationKind.SECONDS: timedelta(seconds=1),
    DurationKind.DAYS: timedelta(days=1),
    DurationKind.MONTHS: timedelta(days=30),
    DurationKind.YEARS: timedelta(days=365),
}

_UNIT_WORDS: dict[str, DurationKind] = {
    "s": DurationKind.SECONDS,
    "sec": DurationKind.SECONDS,
    "second": DurationKind.SECONDS,
    "seconds": DurationKind.SECONDS,
    "detik": DurationKind.SECONDS,
    "d": DurationKind.DAYS,
    "day": DurationKind.DAYS,
    "days": DurationKind.DAYS,
    "hari": DurationKind.DAYS,
    "month": DurationKind.MONTHS,
    "months": DurationKind.MONTHS,
    "bulan": DurationKind.MONTHS,
    "y": DurationKind.YEARS,
    "year": DurationKind.YEARS,
    "years": DurationKind.YEARS,
    "tahun": DurationKind.YEARS,
}

_LABELS: dict[DurationKind, str] = {
    DurationKind.SECONDS: "Detik",
    DurationKind.DAYS: "Hari",
    DurationKind.MONTHS: "Bulan",
    DurationKind.YEARS: "Tahun",
}

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([a-zA-Z]+)\s*$")


@dataclass(frozen=True)
class Duration:
    kind: DurationKind
    value: int = 0

    def __post_init__(self) -> None:
        if self.kind != DurationKind.LIFETIME and self.value <= 0:
            raise ValueError("Duration value must be a positive integer")

    @classmethod
    def lifetime(cls) -> "Duration":
        return cls(DurationKind.LIFETIME)

    @classmethod
    def parse(cls, text: str) -> "Duration":
        """Parse ``"30 days"``, ``"1 bulan"``, ``"lifetime"`` and friends."""
        raw = text.strip().lower()
        if raw in ("lifetime", "permanent", "selamanya"):
            return cls.lifetime()
        match = _DURATION_RE.match(raw)
        if not match:
            raise ValueError(f"Unrecognised duration: {text!r}")
        kind = _UNIT_WORDS.get(match.group(2))
        if kind is None:
            raise ValueError(f"Unrecognised duration unit: {match.group(2)!r}")
        return cls(kind, int(match.group(1)))

    @property
    def is_lifetime(self) -> bool:
        return self.kind == DurationKind.LIFETIME

    def as_timedelta(self) -> timedelta:
        if self.is_lifetime:
            raise ValueError("Lifetime duration has no length")
        return UNIT_DURATIONS[self.kind] * self.value

    def label(self) -> str:
        if self.is_lifetime:
            return "Lifetime"
        return f"{self.value} {_LABELS[self.kind]}"


def compute_expiry(
    lifetime: bool,
    expiry_date: datetime | None,
    duration: Duration,
    now: datetime,
) -> tuple[bool, datetime | None]:
    if duration.is_lifetime or lifetime:
        # Lifetime only goes away with the record itself.
        return True, None
    # Stacks on top of a future expiry; a lapsed one restarts from now.
    base = max(now, expiry_date or now)
    return False, base + duration.as_timedelta()


def accrue(
    buyer: PremiumBuyer, duration: Duration, granted_by: str, now: datetime
) -> PremiumBuyer:
    lifetime, expiry_date = compute_expiry(
        buyer.lifetime, buyer.expiry_date, duration, now
    )
    buyer.lifetime = lifetime
    buyer.expiry_date = expiry_date
    buyer.expired = False
    buyer.granted_by = granted_by
    buyer.last_update = now
    return buyer


def is_active(buyer: PremiumBuyer | None, now: datetime) -> bool:
    if buyer is None:
        return False
    if buyer.lifetime:
        return True
    return buyer.expiry_date is not None and now < buyer.expiry_date


def remaining_time_label(buyer: PremiumBuyer | None, now: datetime) -> str | None:
    if buyer is None:
        return None
    if buyer.lifetime:
        return "Lifetime"
    if not is_active(buyer, now):
        return "Expired / Berakhir"

    remaining = buyer.expiry_date - now
    days = remaining.days
    hours = remaining.seconds // 3600
    if days > 0:
        return f"{days} days {hours} hours / {days} hari {hours} jam"
    return f"{hours} hours / {hours} jam"
