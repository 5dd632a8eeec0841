# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Result types returned by the rule engine.

Every rejection is a ``Deficiency``: a machine-matchable ``kind`` plus the
human-readable message shown to crews and back-office users.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class DeficiencyKind(str, Enum):
    """Closed set of business-rule rejections."""
    MISSING_EVIDENCE = "missing_evidence"
    OUTSIDE_GEOFENCE = "outside_geofence"
    PHOTO_ORDER = "photo_order"
    INCOMPLETE_CHECKLIST = "incomplete_checklist"
    INVALID_EXIF = "invalid_exif"
    MISSING_PERMIT = "missing_permit"
    MISSING_BUNDLE = "missing_bundle"
    TERMINAL_STATE = "terminal_state"
    INVALID_TRANSITION = "invalid_transition"
    TIMESTAMP_ORDER = "timestamp_order"
    SITE_MISMATCH = "site_mismatch"
    CONTENT_HASH_MISMATCH = "content_hash_mismatch"


@dataclass(frozen=True)
class Deficiency:
    """A single reason a record fails a business rule."""
    kind: DeficiencyKind
    message: str
    subject: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __str__(self) -> str:
        return self.message

    def with_prefix(self, prefix: str) -> "Deficiency":
        """Copy of this deficiency with its message prefixed."""
        return Deficiency(
            kind=self.kind,
            message=f"{prefix}{self.message}",
            subject=self.subject,
            context=dict(self.context)
        )


@dataclass
class ValidationResult:
    """Result of a validator: valid iff no deficiencies were found."""
    deficiencies: List[Deficiency] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.deficiencies) == 0

    @property
    def errors(self) -> List[str]:
        return [d.message for d in self.deficiencies]

    @property
    def kinds(self) -> List[DeficiencyKind]:
        return [d.kind for d in self.deficiencies]

    def add(
        self,
        kind: DeficiencyKind,
        message: str,
        subject: Optional[str] = None,
        **context: Any
    ) -> None:
        """Record a deficiency."""
        self.deficiencies.append(Deficiency(kind, message, subject, context))

    def merge(self, other: "ValidationResult", prefix: str = "") -> None:
        """Fold another result's deficiencies and warnings into this one."""
        for deficiency in other.deficiencies:
            self.deficiencies.append(deficiency.with_prefix(prefix) if prefix else deficiency)
        self.warnings.extend(other.warnings)

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.is_valid, "errors": self.errors}


@dataclass
class NeutralizationVerdict:
    """Outcome of the neutralization guard."""
    deficiencies: List[Deficiency] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def can_neutralize(self) -> bool:
        return len(self.deficiencies) == 0

    @property
    def reasons(self) -> List[str]:
        return [d.message for d in self.deficiencies]

    @property
    def kinds(self) -> List[DeficiencyKind]:
        return [d.kind for d in self.deficiencies]

    def add(
        self,
        kind: DeficiencyKind,
        message: str,
        subject: Optional[str] = None,
        **context: Any
    ) -> None:
        """Record a blocking reason."""
        self.deficiencies.append(Deficiency(kind, message, subject, context))

    def merge(self, result: ValidationResult) -> None:
        """Fold a validator result into the verdict."""
        self.deficiencies.extend(result.deficiencies)
        self.warnings.extend(result.warnings)

    def to_dict(self) -> Dict[str, Any]:
        return {"can_neutralize": self.can_neutralize, "reasons": self.reasons}


@dataclass(frozen=True)
class SLAStatus:
    """Remaining SLA time for display."""
    remaining_minutes: int
    is_overdue: bool


@dataclass
class WorkflowResult:
    """Result of a lifecycle operation that yields an updated record copy."""
    success: bool
    record: Optional[Any] = None
    error_message: Optional[str] = None
    deficiencies: List[Deficiency] = field(default_factory=list)

    @property
    def validation_errors(self) -> List[str]:
        return [d.message for d in self.deficiencies]
