# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the field-service ticket lifecycle.
"""

from enum import Enum


class Priority(str, Enum):
    """Ticket priority, P0 being the most severe."""
    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"


class TicketStatus(str, Enum):
    """Ticket lifecycle status enumeration."""
    RECEPTION = "reception"
    ASSIGNMENT = "assignment"
    ARRIVAL = "arrival"
    NEUTRALIZED = "neutralized"
    VALIDATED = "validated"
    CLOSED = "closed"


class EvidenceType(str, Enum):
    """Kinds of evidence a crew can submit for a ticket."""
    PHOTO_BEFORE = "photo_before"
    PHOTO_AFTER = "photo_after"
    SIGNATURE = "signature"
    CHECKLIST = "checklist"
    GEO = "geo"
    OTHER = "other"


class HSEPermitType(str, Enum):
    """Hazard categories that require a safety permit."""
    CORTE_ENERGIA = "CORTE ENERGIA"
    ENERGIA = "ENERGIA"
    MBTS = "MBTS"
    PEXT_ATENUACION_FO = "PEXT - Atenuacion de FO"
    PEXT_CORTE_FO = "PEXT - Corte de FO"
    PEXT_FALSA_AVERIA = "PEXT - Falsa Averia"
    RADIO = "RADIO"
    RED_TRANSPORTE = "RED - TRANSPORTE DE RED"
    SEGURIDAD = "SEGURIDAD"
    SISTEMA_ELECTRICO = "SISTEMA ELECTRICO"
    TX = "TX"


class HSEPermitStatus(str, Enum):
    """HSE permit approval status."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
