from dataclasses import dataclass


@dataclass
class DeliveryStats:
    """Aggregated delivery counters for one hub."""
    published: int = 0
    scheduled: int = 0
    delivered: int = 0
    failed: int = 0
    duplicates: int = 0

    def record_publish(self, scheduled: int) -> None:
        self.published += 1
        self.scheduled += scheduled

    def record_invocation(self, ok: bool) -> None:
        if ok:
            self.delivered += 1
        else:
            self.failed += 1

    def record_duplicate(self) -> None:
        self.duplicates += 1

    @property
    def in_flight(self) -> int:
        return self.scheduled - self.delivered - self.failed

    def reset(self) -> None:
        self.published = self.scheduled = 0
        self.delivered = self.failed = self.duplicates = 0
