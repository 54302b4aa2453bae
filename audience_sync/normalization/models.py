from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from typing import Any

AUDIENCE_SCHEMA: tuple[str, ...] = (
    "EMAIL", "EMAIL", "EMAIL",
    "PHONE", "PHONE", "PHONE",
    "FN", "LN", "ZIP",
    "CT", "ST", "COUNTRY",
    "DOBY", "GEN",
)

NormalizedRow = tuple[str, ...]


@dataclass(frozen=True)
class CustomerRecord:
    """Identity fields for one customer, as produced by the warehouse query.

    Absent or NULL columns are stored as empty strings.
    """

    email1: str = ""
    email2: str = ""
    email3: str = ""
    phone1: str = ""
    phone2: str = ""
    phone3: str = ""
    fn: str = ""
    ln: str = ""
    zip: str = ""
    ct: str = ""
    st: str = ""
    country: str = ""
    doby: str = ""
    gen: str = ""

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "CustomerRecord":
        """Build a record from a row or partition-file entry.

        Keys are matched case-insensitively; unknown keys (e.g. ``age``) are ignored.
        """
        lowered = {str(key).lower(): value for key, value in row.items()}
        values = {}
        for f in fields(cls):
            raw = lowered.get(f.name)
            values[f.name] = "" if raw is None else str(raw)
        return cls(**values)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)
