from __future__ import annotations
from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional


# ---------- persisted entities ----------


@dataclass
class Product:
    id: Optional[int]
    label: str
    unit: str = "pcs"


@dataclass
class PurchaseList:
    id: Optional[int]
    name: Optional[str]
    date: str  # ISO-8601, may carry a time part
    total_amount: float = 0.0
    notes: Optional[str] = None
    status: int = 0  # 0 draft, 1 validated


@dataclass
class LineItem:
    id: Optional[int]
    list_id: int
    product_id: int
    quantity: float = 1.0
    unit_price: float = 0.0
    line_total: float = 0.0
    unit: str = "pcs"
    checked: bool = False


@dataclass
class Reminder:
    id: Optional[int]
    list_id: Optional[int]
    title: str
    reminder_date: str
    reminder_time: str
    message: Optional[str] = None
    type: str = "rappel"
    read: bool = False
    deleted: bool = False
    displayed: bool = False
    notification_id: Optional[str] = None
    created_at: Optional[str] = None


LIST_STATUS_DRAFT = 0
LIST_STATUS_VALIDATED = 1


# ---------- analytics results ----------


class Granularity(str, Enum):
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar interval [start, end]."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Inverted date range: {self.start} > {self.end}")

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass
class Bucket:
    key: str
    label: str
    start: date
    end: date
    amount: float = 0.0
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["start"] = self.start.isoformat()
        d["end"] = self.end.isoformat()
        return d


@dataclass
class ProductBreakdown:
    product_id: int
    label: str
    unit: str
    quantity: float
    amount: float
    count: int
    avg_unit_price: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PeriodAggregate:
    period: DateRange
    granularity: Granularity
    total: float = 0.0
    count: int = 0
    list_count: int = 0
    per_product: List[ProductBreakdown] = field(default_factory=list)
    buckets: List[Bucket] = field(default_factory=list)

    def series(self) -> List[float]:
        """Bucket amounts in order, ready for trend fitting or charting."""
        return [b.amount for b in self.buckets]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period.to_dict(),
            "granularity": self.granularity.value,
            "total": self.total,
            "count": self.count,
            "list_count": self.list_count,
            "per_product": [p.to_dict() for p in self.per_product],
            "buckets": [b.to_dict() for b in self.buckets],
        }


@dataclass
class Comparison:
    current: float
    previous: float
    delta: float
    percentage: float
    trend: str  # 'up' | 'down' | 'stable'

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DailyTotal:
    day: date
    amount: float


@dataclass
class PerformanceScore:
    label: str
    score: int
    ratio: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------- migration bookkeeping ----------


class StoreState(str, Enum):
    UNINITIALIZED = "uninitialized"
    SCHEMA_ENSURED = "schema_ensured"
    MIGRATED = "migrated"
    SEEDED = "seeded"
    READY = "ready"


class LegacyShape(str, Enum):
    """Historical layouts of the line-item table."""

    DENORMALIZED = "denormalized"  # free-text product label, no product FK
    ALREADY_NORMALIZED = "already_normalized"  # product FK, legacy key names
    FRESH = "fresh"  # current layout, nothing to migrate


STEP_APPLIED = "applied"
STEP_SKIPPED = "skipped"
STEP_FAILED = "failed"


@dataclass
class StepOutcome:
    name: str
    status: str
    detail: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != STEP_FAILED

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MigrationReport:
    state: StoreState = StoreState.UNINITIALIZED
    steps: List[StepOutcome] = field(default_factory=list)
    legacy_shape: Optional[LegacyShape] = None
    products_seeded: int = 0

    @property
    def failed(self) -> List[StepOutcome]:
        return [s for s in self.steps if not s.ok]

    @property
    def applied(self) -> List[str]:
        return [s.name for s in self.steps if s.status == STEP_APPLIED]

    def step(self, name: str) -> Optional[StepOutcome]:
        return next((s for s in self.steps if s.name == name), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "legacy_shape": self.legacy_shape.value if self.legacy_shape else None,
            "products_seeded": self.products_seeded,
            "steps": [s.to_dict() for s in self.steps],
        }
