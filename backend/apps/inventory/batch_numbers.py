import re
from dataclasses import dataclass, replace
from datetime import date, datetime


class BatchKind:
    PRODUCTION = "B"
    CARRYOVER = "CARRYOVER"
    RESTORED = "RESTORED"
    ADJUSTMENT = "ADJ"

    ALL = (PRODUCTION, CARRYOVER, RESTORED, ADJUSTMENT)


BATCH_KEY_PATTERN = re.compile(
    r"^(?P<kind>B|CARRYOVER|RESTORED|ADJ)-(?P<code>[A-Z0-9_]+)-(?P<day>\d{8})(?:-(?P<sequence>\d+))?$"
)


def normalize_code(raw: str) -> str:
    code = re.sub(r"[^A-Za-z0-9]+", "_", (raw or "").strip()).strip("_").upper()
    return code or "ITEM"


@dataclass(frozen=True)
class BatchKey:
    """Structured batch number: `<kind>-<code>-<yyyymmdd>[-<sequence>]`."""

    kind: str
    code: str
    day: date
    sequence: int | None = None

    def render(self) -> str:
        value = f"{self.kind}-{normalize_code(self.code)}-{self.day.strftime('%Y%m%d')}"
        if self.sequence:
            value = f"{value}-{self.sequence}"
        return value

    def with_sequence(self, sequence: int) -> "BatchKey":
        return replace(self, sequence=sequence)

    @classmethod
    def parse(cls, value: str) -> "BatchKey | None":
        match = BATCH_KEY_PATTERN.match((value or "").strip())
        if not match:
            return None
        sequence = match.group("sequence")
        return cls(
            kind=match.group("kind"),
            code=match.group("code"),
            day=datetime.strptime(match.group("day"), "%Y%m%d").date(),
            sequence=int(sequence) if sequence else None,
        )

    @classmethod
    def production(cls, code: str, day: date) -> "BatchKey":
        return cls(kind=BatchKind.PRODUCTION, code=code, day=day)

    @classmethod
    def carryover(cls, code: str, day: date) -> "BatchKey":
        return cls(kind=BatchKind.CARRYOVER, code=code, day=day)

    @classmethod
    def restored(cls, code: str, day: date) -> "BatchKey":
        return cls(kind=BatchKind.RESTORED, code=code, day=day)

    @classmethod
    def adjustment(cls, code: str, day: date) -> "BatchKey":
        return cls(kind=BatchKind.ADJUSTMENT, code=code, day=day)


def next_free_key(key: BatchKey, taken: set[str]) -> BatchKey:
    """Return `key`, or the first sequence-suffixed variant not in `taken`."""
    if key.render() not in taken:
        return key
    sequence = 2
    while key.with_sequence(sequence).render() in taken:
        sequence += 1
    return key.with_sequence(sequence)
