# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic record shapes and rule-engine result types.
"""

# Base models
from .base import BaseEntity, GeoPoint

# Enumerations
from .enums import (
    Priority,
    TicketStatus,
    EvidenceType,
    HSEPermitType,
    HSEPermitStatus
)

# Core entities
from .entities import (
    Site,
    Ticket,
    EvidenceBundle,
    ExifData,
    ChecklistData,
    EvidenceItem,
    HSEPermit
)

# Result types
from .results import (
    DeficiencyKind,
    Deficiency,
    ValidationResult,
    NeutralizationVerdict,
    SLAStatus,
    WorkflowResult
)

__all__ = [
    # Base models
    "BaseEntity",
    "GeoPoint",
    
    # Enumerations
    "Priority",
    "TicketStatus",
    "EvidenceType",
    "HSEPermitType",
    "HSEPermitStatus",
    
    # Core entities
    "Site",
    "Ticket",
    "EvidenceBundle",
    "ExifData",
    "ChecklistData",
    "EvidenceItem",
    "HSEPermit",
    
    # Result types
    "DeficiencyKind",
    "Deficiency",
    "ValidationResult",
    "NeutralizationVerdict",
    "SLAStatus",
    "WorkflowResult"
]
