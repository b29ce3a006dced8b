"""
Column schema models produced by schema inference.
"""

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class ColumnType(str, Enum):
    """
    Columnar type of one attribute.

    BIGINT only ever appears as a declared type read back from a legacy
    file; it is never produced on write.
    """

    DOUBLE = "DOUBLE"
    BOOLEAN = "BOOLEAN"
    UTF8 = "UTF8"
    BIGINT = "BIGINT"


WRITABLE_TYPES = frozenset({ColumnType.DOUBLE, ColumnType.BOOLEAN, ColumnType.UTF8})


class ColumnSchema(BaseModel):
    """
    Mapping from attribute name to columnar type for one batch.

    Attributes:
        fields: Attribute name -> column type, in column order
    """

    fields: dict[str, ColumnType] = Field(default_factory=dict)

    @field_validator("fields")
    @classmethod
    def check_no_integer_columns(cls, v):
        """Output schemas never declare a 64-bit integer column."""
        for name, column_type in v.items():
            if column_type not in WRITABLE_TYPES:
                raise ValueError(f"Column '{name}' cannot be written as {column_type.value}")
        return v

    @property
    def names(self) -> list[str]:
        return list(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def __getitem__(self, name: str) -> ColumnType:
        return self.fields[name]

    class Config:
        json_schema_extra = {
            "example": {
                "fields": {
                    "context": "UTF8",
                    "path": "UTF8",
                    "received_timestamp": "UTF8",
                    "signalk_timestamp": "UTF8",
                    "value": "DOUBLE",
                }
            }
        }


class SchemaDetectionResult(BaseModel):
    """
    Outcome of inferring a schema for one batch.

    Attributes:
        column_schema: Resolved column schema
        is_exploded_file: Whether the batch carries value_<component> columns
        field_count: Number of resolved columns
    """

    column_schema: ColumnSchema
    is_exploded_file: bool = False
    field_count: int = 0
