"""
Validation outcome models for existing data files (ephemeral).
"""

from pydantic import BaseModel, Field, field_validator


class FileCheckResult(BaseModel):
    """
    Outcome of structurally validating one data file.

    Attributes:
        path: File that was checked
        is_valid: Whether the file passed every check
        reason: Why the file failed (None when valid)
        file_size: Size in bytes (0 when missing)
    """

    path: str
    is_valid: bool
    reason: str | None = None
    file_size: int = 0


class SchemaValidationResult(BaseModel):
    """
    Outcome of auditing an existing file's declared schema.

    Note: schema violations are findings, not errors. They are acted on only
    when the caller explicitly asks for a repair.

    Attributes:
        is_valid: No violations were found
        violations: Human-readable violation strings
        is_exploded_file: Whether the file has value_<component> columns
        has_schema: Whether a schema could be read from the file
    """

    is_valid: bool
    violations: list[str] = Field(default_factory=list)
    is_exploded_file: bool = False
    has_schema: bool = True

    @field_validator("violations")
    @classmethod
    def check_valid_consistency(cls, v, info):
        """is_valid=True implies no violations."""
        if info.data.get("is_valid") and len(v) > 0:
            raise ValueError("is_valid=True but violations is not empty")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "is_valid": False,
                "violations": ["value is BIGINT, should be DOUBLE"],
                "is_exploded_file": False,
                "has_schema": True,
            }
        }
