"""
telemetry-store: adaptive schema storage engine for telemetry samples.

Infers column types for schemaless telemetry batches, writes typed Parquet
files with a JSON fallback, quarantines invalid files, audits and repairs
legacy schemas, and consolidates interval files per day.
"""

__version__ = "0.1.0"
