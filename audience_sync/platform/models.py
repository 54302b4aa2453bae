from dataclasses import dataclass


@dataclass(frozen=True)
class ReplaceSession:
    """Session block sent with every batch of a replace upload."""

    session_id: int
    batch_seq: int
    last_batch_flag: bool
    estimated_num_total: int


@dataclass(frozen=True)
class DeliveryStatus:
    code: int | None = None
    description: str = ""


@dataclass(frozen=True)
class AudienceStatus:
    """Audience size estimate and delivery status reported by the platform."""

    id: str
    name: str = ""
    description: str = ""
    approximate_count_lower_bound: int | None = None
    approximate_count_upper_bound: int | None = None
    delivery_status: DeliveryStatus | None = None
