"""Directory records and maintenance report models."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class IdentifierKind(str, Enum):
    CONTRACT = "contract"
    PERMIT = "permit"
    COMPLAINT = "complaint"


class DirectoryKind(str, Enum):
    NATIONAL = "national"
    LOCAL = "local"
    HOTSPOTS = "hotspots"


# Each directory owns exactly one unique identifier field.
IDENTIFIER_FIELDS: Dict[DirectoryKind, str] = {
    DirectoryKind.NATIONAL: "contractNumber",
    DirectoryKind.LOCAL: "permitNumber",
    DirectoryKind.HOTSPOTS: "complaintNumber",
}

IDENTIFIER_KINDS: Dict[DirectoryKind, IdentifierKind] = {
    DirectoryKind.NATIONAL: IdentifierKind.CONTRACT,
    DirectoryKind.LOCAL: IdentifierKind.PERMIT,
    DirectoryKind.HOTSPOTS: IdentifierKind.COMPLAINT,
}

DIRECTORY_LABELS: Dict[DirectoryKind, str] = {
    DirectoryKind.NATIONAL: "National",
    DirectoryKind.LOCAL: "Local",
    DirectoryKind.HOTSPOTS: "Hotspots",
}


# ---------------------------------------------------------------------------
# Directory records (stored with camelCase keys)
# ---------------------------------------------------------------------------
class DirectoryRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = Field(default=None, alias="_id")
    province: str = "Unknown"
    municipality: str = "Unknown"
    google_map_link: str = Field(default="", alias="googleMapLink")

    @classmethod
    def from_document(cls, document: dict) -> "DirectoryRecord":
        data = dict(document)
        if data.get("_id") is not None:
            data["_id"] = str(data["_id"])
        return cls.model_validate(data)


class DirectoryNational(DirectoryRecord):
    classification: str = "Unknown"
    type: str = "Unknown"
    contract_number: str = Field(alias="contractNumber")
    contractor: str
    proponent: str = ""
    contact_number: str = Field(default="", alias="contactNumber")
    operator: str = ""
    area: float = 0  # hectares
    date_filed: str = Field(default="", alias="dateFiled")
    approval_date: str = Field(default="", alias="approvalDate")
    renewal_date: str = Field(default="", alias="renewalDate")
    expiration_date: str = Field(default="", alias="expirationDate")
    barangay: str = "Unknown"
    commodity: str = "Unknown"
    status: str = "Unknown"
    source_of_raw_materials: str = Field(default="N/A", alias="sourceOfRawMaterials")

    def summary(self) -> str:
        return f"[{self.classification}] {self.contract_number} - {self.contractor} ({self.province})"


class DirectoryLocal(DirectoryRecord):
    classification: str = "Unknown"
    type: str = "Unknown"
    permit_number: str = Field(alias="permitNumber")
    permit_holder: str = Field(alias="permitHolder")
    commodities: str = "Unknown"
    area: str = ""
    barangays: str = "Unknown"
    date_filed: str = Field(default="", alias="dateFiled")
    date_approved: str = Field(default="", alias="dateApproved")
    date_of_expiry: str = Field(default="", alias="dateOfExpiry")
    number_of_renewal: int = Field(default=0, alias="numberOfRenewal")
    date_of_first_issuance: str = Field(default="", alias="dateOfFirstIssuance")
    status: str = "Unknown"

    def summary(self) -> str:
        return f"[{self.classification}] {self.permit_number} - {self.permit_holder} ({self.province})"


class DirectoryHotspots(DirectoryRecord):
    subject: str
    complaint_number: str = Field(alias="complaintNumber")
    barangay: str = "Unknown"
    sitio: str = ""
    longitude: str = ""
    latitude: str = ""
    nature_of_reported_illegal_act: str = Field(alias="natureOfReportedIllegalAct")
    type_of_commodity: str = Field(alias="typeOfCommodity")
    actions_taken: str = Field(alias="actionsTaken")
    details: str = ""
    date_of_action_taken: str = Field(default="", alias="dateOfActionTaken")
    laws_violated: str = Field(default="", alias="lawsViolated")
    number_of_cdo_issued: int = Field(default=0, alias="numberOfCDOIssued")
    date_issued: str = Field(default="", alias="dateIssued")
    remarks: str = ""

    def summary(self) -> str:
        return f"{self.complaint_number} - {self.subject} ({self.municipality}, {self.province})"


RECORD_MODELS = {
    DirectoryKind.NATIONAL: DirectoryNational,
    DirectoryKind.LOCAL: DirectoryLocal,
    DirectoryKind.HOTSPOTS: DirectoryHotspots,
}


# ---------------------------------------------------------------------------
# Maintenance reports
# ---------------------------------------------------------------------------
class IdentifierChange(BaseModel):
    document_id: str
    field: str
    original: str
    cleaned: str
    final: str

    @property
    def suffixed(self) -> bool:
        return self.final != self.cleaned


class RewriteStats(BaseModel):
    collection: str
    field: str
    updated: int = 0
    errors: int = 0
    total: int = 0
    dry_run: bool = False
    changes: List[IdentifierChange] = Field(default_factory=list)


class DirectoryCleanupResult(BaseModel):
    kind: DirectoryKind
    collections: List[RewriteStats] = Field(default_factory=list)

    @property
    def updated(self) -> int:
        return sum(stats.updated for stats in self.collections)

    @property
    def errors(self) -> int:
        return sum(stats.errors for stats in self.collections)

    @property
    def total(self) -> int:
        return sum(stats.total for stats in self.collections)


class CleanupReport(BaseModel):
    results: Dict[DirectoryKind, DirectoryCleanupResult] = Field(default_factory=dict)

    @property
    def updated(self) -> int:
        return sum(result.updated for result in self.results.values())

    @property
    def errors(self) -> int:
        return sum(result.errors for result in self.results.values())


class CorruptedRecord(BaseModel):
    document_id: str
    field: str
    original: str
    cleaned: Optional[str] = None


class CollectionScan(BaseModel):
    collection: str
    total_count: int = 0
    corrupted: List[CorruptedRecord] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def corrupted_count(self) -> int:
        return len(self.corrupted)

    @property
    def affected_count(self) -> int:
        # a document can carry more than one bad identifier field
        return len({record.document_id for record in self.corrupted})

    @property
    def corruption_rate(self) -> float:
        if not self.total_count:
            return 0.0
        return self.affected_count / self.total_count * 100


class ScanReport(BaseModel):
    collections: List[CollectionScan] = Field(default_factory=list)

    @property
    def total_documents(self) -> int:
        return sum(scan.total_count for scan in self.collections)

    @property
    def total_corrupted(self) -> int:
        return sum(scan.corrupted_count for scan in self.collections)

    @property
    def total_affected(self) -> int:
        return sum(scan.affected_count for scan in self.collections)

    @property
    def corruption_rate(self) -> float:
        if not self.total_documents:
            return 0.0
        return self.total_affected / self.total_documents * 100


class PreviewEntry(BaseModel):
    document_id: str
    original: str
    cleaned: str


class CollectionPreview(BaseModel):
    kind: DirectoryKind
    collection: str
    field: str
    document_count: int = 0
    entries: List[PreviewEntry] = Field(default_factory=list)


class PreviewReport(BaseModel):
    collections: List[CollectionPreview] = Field(default_factory=list)


class DuplicateValue(BaseModel):
    collection: str
    field: str
    value: str
    count: int


__all__ = [
    "CleanupReport",
    "CollectionPreview",
    "CollectionScan",
    "CorruptedRecord",
    "DIRECTORY_LABELS",
    "DirectoryCleanupResult",
    "DirectoryHotspots",
    "DirectoryKind",
    "DirectoryLocal",
    "DirectoryNational",
    "DirectoryRecord",
    "DuplicateValue",
    "IDENTIFIER_FIELDS",
    "IDENTIFIER_KINDS",
    "IdentifierChange",
    "IdentifierKind",
    "PreviewEntry",
    "PreviewReport",
    "RECORD_MODELS",
    "RewriteStats",
    "ScanReport",
]
