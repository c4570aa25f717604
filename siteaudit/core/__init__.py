"""
Core components for siteaudit.

Contains:
- Data models (AuditRequest, AuditResult, GradedCell, ...)
- Exception hierarchy
- Base class for audit engines
"""
