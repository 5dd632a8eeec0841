# SPDX-License-Identifier: Apache-2.0

"""
Neutralization guard for tickets.

Composes the permit gate and the evidence validator into a single verdict.
The guard is advisory: it never mutates its inputs, and the caller decides
whether to apply the transition.
"""

import logging
from typing import Optional, Sequence

from ..models.entities import EvidenceBundle, EvidenceItem, HSEPermit, Site, Ticket
from ..models.results import DeficiencyKind, NeutralizationVerdict
from .evidence import validate_evidence
from .permits import validate_permits

logger = logging.getLogger(__name__)


def can_neutralize(
    ticket: Ticket,
    evidence_bundle: Optional[EvidenceBundle],
    evidence_items: Sequence[EvidenceItem],
    hse_permits: Sequence[HSEPermit],
    site: Site
) -> NeutralizationVerdict:
    """
    Decide whether a ticket may move to neutralized.

    Every rule is evaluated so the caller sees all blocking reasons at once,
    except for two short-circuits: a ticket already in a terminal state, and
    a ticket without an evidence bundle.

    Args:
        ticket: Ticket to neutralize
        evidence_bundle: The ticket's evidence bundle, if one was created
        evidence_items: Items of that bundle
        hse_permits: Permits to search for an approved one
        site: Site the ticket belongs to

    Returns:
        NeutralizationVerdict with every blocking reason
    """
    verdict = NeutralizationVerdict()

    # Re-neutralization is never allowed
    if ticket.is_terminal():
        verdict.add(DeficiencyKind.TERMINAL_STATE, "Ticket is already neutralized or closed", subject="status")
        return verdict

    verdict.merge(validate_permits(ticket, hse_permits))

    if evidence_bundle is None:
        verdict.add(DeficiencyKind.MISSING_BUNDLE, "No evidence bundle", subject="evidence_bundle")
        return verdict

    verdict.merge(validate_evidence(evidence_items, site))

    logger.debug(
        "Neutralization guard evaluated",
        extra={
            "extra_fields": {
                "ticket_id": ticket.id,
                "can_neutralize": verdict.can_neutralize,
                "reasons": [kind.value for kind in verdict.kinds]
            }
        }
    )

    return verdict
