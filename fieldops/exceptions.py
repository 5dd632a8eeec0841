# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Exception hierarchy for the service layer.

The rule engine itself never raises for business-rule failures; these
exceptions cover records that cannot be resolved at all.
"""


class FieldOpsException(Exception):
    """Base class for custom application exceptions."""
    
    def __init__(self, message: str, error_type: str = "application-error"):
        super().__init__(message)
        self.message = message
        self.error_type = error_type


class ValidationException(FieldOpsException):
    """Exception for validation errors."""
    
    def __init__(self, message: str, validation_errors: list = None):
        super().__init__(message, "validation-error")
        self.validation_errors = validation_errors or []


class NotFoundException(FieldOpsException):
    """Exception for resource not found errors."""
    
    def __init__(self, message: str):
        super().__init__(message, "resource-not-found")


class ConflictException(FieldOpsException):
    """Exception for resource conflict errors."""
    
    def __init__(self, message: str):
        super().__init__(message, "resource-conflict")
