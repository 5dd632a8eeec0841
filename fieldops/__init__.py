# SPDX-License-Identifier: Apache-2.0

"""
fieldops - rule engine for field-service repair tickets.

Tracks tickets through reception, assignment, arrival, neutralization,
validation and closure, and decides whether each transition may happen.
"""

__version__ = "1.0.0"
