"""
Output Module.

Report rendering and persistence of grading outcomes and audit records.
"""

from submission_grader.output.report import ReportFormat, ReportGenerator
from submission_grader.output.store import AuditTrail, JsonResultStore, ResultStore

__all__ = [
    "AuditTrail",
    "JsonResultStore",
    "ReportFormat",
    "ReportGenerator",
    "ResultStore",
]
