"""
Repair and audit report models.
"""

from pydantic import BaseModel, Field


class RepairResult(BaseModel):
    """
    Outcome of repairing one file.

    Attributes:
        needs_repair: Whether the file was rewritten
        violations: Violations that triggered the repair (or the error)
        repaired_file_path: Rewritten replacement, if any
        backup_file_path: Byte-for-byte backup of the original, if any
    """

    needs_repair: bool
    violations: list[str] = Field(default_factory=list)
    repaired_file_path: str | None = None
    backup_file_path: str | None = None

    class Config:
        json_schema_extra = {
            "example": {
                "needs_repair": True,
                "violations": ["value is BIGINT, should be DOUBLE"],
                "repaired_file_path": "/data/vessels/self/navigation/speedOverGround/repaired/signalk_data_2025-07-14T1847_REPAIRED.parquet",
                "backup_file_path": "/data/vessels/self/navigation/speedOverGround/repaired/signalk_data_2025-07-14T1847_BACKUP.parquet",
            }
        }


class SchemaAuditReport(BaseModel):
    """
    Summary of auditing every data file under a directory.

    Attributes:
        total_files: Data files scanned
        contexts: Distinct context directories seen (e.g. vessel ids)
        schemas_found: Files whose schema could be read
        no_schema_found: Files without a readable schema
        correct_schemas: Files without violations
        violation_files: Files with at least one violation
        violation_details: "<file>: <violation>" strings
    """

    total_files: int = 0
    contexts: list[str] = Field(default_factory=list)
    schemas_found: int = 0
    no_schema_found: int = 0
    correct_schemas: int = 0
    violation_files: int = 0
    violation_details: list[str] = Field(default_factory=list)


class RepairReport(BaseModel):
    """
    Summary of repairing every data file under a directory.

    Attributes:
        total_files: Data files scanned
        files_repaired: Files rewritten with a corrected schema
        backups_created: Backups written to repaired/ archives
        files_swapped: Repaired files moved over their originals
        errors: "<file>: <error>" strings
    """

    total_files: int = 0
    files_repaired: int = 0
    backups_created: int = 0
    files_swapped: int = 0
    errors: list[str] = Field(default_factory=list)
