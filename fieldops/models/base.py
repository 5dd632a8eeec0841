# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Base entity models with common fields and validation.
"""

from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict
from bson import ObjectId

from ..utils.clock import utc_now


def generate_object_id() -> str:
    """Generate a new ObjectId as string."""
    return str(ObjectId())


class BaseEntity(BaseModel):
    """Base entity with common fields for all field-service records."""
    
    model_config = ConfigDict(
        # Allow population by field name or alias
        populate_by_name=True,
        # Use enum values instead of enum objects
        use_enum_values=True,
        # Validate assignment
        validate_assignment=True
    )
    
    id: str = Field(default_factory=generate_object_id, description="Unique identifier")
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt", description="Creation timestamp")
    updated_at: datetime = Field(default_factory=utc_now, alias="updatedAt", description="Last update timestamp")
    schema_version: int = Field(default=1, description="Schema version for migrations")
    
    def update_timestamp(self, at: datetime) -> None:
        """Update the last-modified timestamp."""
        self.updated_at = at


class GeoPoint(BaseModel):
    """Geographic coordinate in decimal degrees."""
    
    model_config = ConfigDict(frozen=True)
    
    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude in decimal degrees")
    lng: float = Field(..., ge=-180.0, le=180.0, description="Longitude in decimal degrees")
