# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package for the fieldops rule engine.
"""

from .ticket_workflow import TicketWorkflowService

__all__ = [
    'TicketWorkflowService',
]
