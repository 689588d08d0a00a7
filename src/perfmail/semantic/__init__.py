"""Semantic payload adapters between LLM output and email rendering."""

from perfmail.semantic.adapters import (
    DEFAULT_ACTIUNE,
    DEPARTMENT_RULES,
    EMPLOYEE_RULES,
    FieldRule,
    department_to_semantic_payload,
    employee_to_semantic_payload,
    to_semantic_payload,
)
from perfmail.semantic.models import (
    CheckIn,
    DepartmentPayload,
    EmployeePayload,
    SemanticPayload,
)

__all__ = [
    "DEFAULT_ACTIUNE",
    "DEPARTMENT_RULES",
    "EMPLOYEE_RULES",
    "CheckIn",
    "DepartmentPayload",
    "EmployeePayload",
    "FieldRule",
    "SemanticPayload",
    "department_to_semantic_payload",
    "employee_to_semantic_payload",
    "to_semantic_payload",
]
