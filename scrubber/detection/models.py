from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar


class PiiCategory(str, Enum):
    """PII category; the value is the label used inside placeholders."""

    PERSON = "PERSON"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    COMPANY = "COMPANY"
    ADDRESS = "ADDRESS"


@dataclass(frozen=True)
class DetectionOptions:
    """Which categories the detector looks for."""

    detect_names: bool = True
    detect_emails: bool = True
    detect_phones: bool = True
    detect_companies: bool = True
    detect_addresses: bool = True

    @classmethod
    def from_config(cls, config: Any) -> "DetectionOptions":
        """Build options from any object exposing the detect_* flags."""
        return cls(
            detect_names=bool(config.detect_names),
            detect_emails=bool(config.detect_emails),
            detect_phones=bool(config.detect_phones),
            detect_companies=bool(config.detect_companies),
            detect_addresses=bool(config.detect_addresses),
        )


@dataclass
class PiiCounts:
    """Distinct PII values found, per category."""

    names: int = 0
    emails: int = 0
    phones: int = 0
    companies: int = 0
    addresses: int = 0

    _FIELDS: ClassVar[dict[PiiCategory, str]] = {
        PiiCategory.PERSON: "names",
        PiiCategory.EMAIL: "emails",
        PiiCategory.PHONE: "phones",
        PiiCategory.COMPANY: "companies",
        PiiCategory.ADDRESS: "addresses",
    }

    def increment(self, category: PiiCategory) -> None:
        name = self._FIELDS[category]
        setattr(self, name, getattr(self, name) + 1)

    def add(self, other: "PiiCounts") -> None:
        self.names += other.names
        self.emails += other.emails
        self.phones += other.phones
        self.companies += other.companies
        self.addresses += other.addresses

    def total(self) -> int:
        return self.names + self.emails + self.phones + self.companies + self.addresses

    def as_dict(self) -> dict[str, int]:
        return {
            "names": self.names,
            "emails": self.emails,
            "phones": self.phones,
            "companies": self.companies,
            "addresses": self.addresses,
        }


@dataclass
class DetectionResult:
    """Output of one detector call."""

    text: str
    pii_mappings: dict[str, str] = field(default_factory=dict)  # original -> placeholder
    counts: PiiCounts = field(default_factory=PiiCounts)
