"""Interactive ID assignment with collision checks and history."""

from objid.core.assignment.manager import AssignmentManager, generate_assignment_message
from objid.core.assignment.models import (
    AssignmentOptions,
    AssignmentResult,
    FreeRange,
    IdCollision,
    PatternHint,
    RangeReservation,
    Suggestions,
)
from objid.core.assignment.patterns import analyze_patterns, find_sequential_pattern

__all__ = [
    "AssignmentManager",
    "AssignmentOptions",
    "AssignmentResult",
    "FreeRange",
    "IdCollision",
    "PatternHint",
    "RangeReservation",
    "Suggestions",
    "analyze_patterns",
    "find_sequential_pattern",
    "generate_assignment_message",
]
