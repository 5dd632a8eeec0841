# SPDX-License-Identifier: Apache-2.0

"""
Observability setup: OpenTelemetry tracing and structured logging.
"""

from .config import setup_observability, setup_structured_logging, StructuredFormatter

__all__ = ["setup_observability", "setup_structured_logging", "StructuredFormatter"]
