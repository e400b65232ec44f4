"""
Record Schemas

Draft-07 JSON Schemas for vendor, product and EQ info.json files, plus the
validator that loads them.
"""

from rohdb.schemas.validator import SchemaValidator

__all__ = ["SchemaValidator"]
