"""Data models used across the ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pricepaid.common.geo import GeoPoint


class PropertyType(Enum):
    DETACHED = "D"
    SEMI_DETACHED = "S"
    TERRACED = "T"
    FLATS_MAISONETTES = "F"
    OTHER = "O"

    @property
    def description(self) -> str:
        return _PROPERTY_TYPE_DESCRIPTIONS[self]

    @classmethod
    def parse(cls, code: str | None) -> "PropertyType | None":
        try:
            return cls(code)
        except ValueError:
            return None


_PROPERTY_TYPE_DESCRIPTIONS = {
    PropertyType.DETACHED: "Detached",
    PropertyType.SEMI_DETACHED: "Semi Detached",
    PropertyType.TERRACED: "Terraced",
    PropertyType.FLATS_MAISONETTES: "Flats / Maisonettes",
    PropertyType.OTHER: "Other",
}


class BuildType(Enum):
    NEW_BUILD = "Y"
    OLD_BUILD = "N"

    @property
    def description(self) -> str:
        return "New Build" if self is BuildType.NEW_BUILD else "Old Build"

    @classmethod
    def parse(cls, code: str) -> "BuildType":
        return cls.NEW_BUILD if code == "Y" else cls.OLD_BUILD


class ContractType(Enum):
    FREEHOLD = "F"
    LEASEHOLD = "L"

    @property
    def description(self) -> str:
        return "Freehold" if self is ContractType.FREEHOLD else "Leasehold"

    @classmethod
    def parse(cls, code: str) -> "ContractType":
        return cls.FREEHOLD if code == "F" else cls.LEASEHOLD


@dataclass(frozen=True)
class TransactionRow:
    transaction_id: str
    price: int
    date_of_transfer: datetime
    postcode: str | None
    property_type_code: str | None
    build_code: str
    contract_code: str
    paon: str | None
    saon: str | None
    street: str | None
    locality: str | None
    town: str | None
    district: str | None
    county: str | None
    ppd_category: str | None = None
    record_status: str | None = None

    @property
    def property_type(self) -> PropertyType | None:
        return PropertyType.parse(self.property_type_code)

    @property
    def build(self) -> BuildType:
        return BuildType.parse(self.build_code)

    @property
    def contract(self) -> ContractType:
        return ContractType.parse(self.contract_code)

    @property
    def building(self) -> str:
        return " ".join(part for part in (self.paon, self.saon) if part)


@dataclass(frozen=True)
class EnrichedRow:
    row: TransactionRow
    geo: GeoPoint | None


@dataclass(frozen=True)
class RefreshType:
    """Dataset selector: the latest monthly update, or a full calendar year."""

    year: int | None = None

    @classmethod
    def latest_month(cls) -> "RefreshType":
        return cls()

    @classmethod
    def for_year(cls, year: int) -> "RefreshType":
        return cls(year=year)

    @property
    def is_latest_month(self) -> bool:
        return self.year is None

    def label(self) -> str:
        return "latest-month" if self.year is None else f"year-{self.year}"


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of one ingestion attempt. ``completed`` is False for "nothing to do"."""

    selector: RefreshType
    completed: bool
    dataset_hash: str
    rows: int = 0
    chunks_written: int = 0

    @classmethod
    def nothing_to_do(cls, selector: RefreshType, dataset_hash: str) -> "RefreshResult":
        return cls(selector=selector, completed=False, dataset_hash=dataset_hash)
