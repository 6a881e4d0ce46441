"""Timeline package - renovation schedule optimization.

This package turns a list of renovation tasks with trade dependencies into a
dated schedule:
- TaskGraph: arena-stored dependency graph with cycle detection
- DependencyAnalyzer: critical path method (forward/backward pass, float)
- ParallelWorkDetector: intra-trade groups plus cross-trade advisor or heuristic
- CalendarScheduler: working-day calendar placement with max-duration compression
- OptimizationReporter: prioritized recommendations

Main entry point:
- TimelineOptimizationService: optimize() and regenerate()

Configuration:
- EngineConfig: pipeline tunables
- AdvisorConfig: cross-trade advisor selection
"""

# Advisors
from .advisors import (
    AdvisorSuggestion,
    CallableBackend,
    CommandBackend,
    PromptAdvisor,
    StaticAdvisor,
    create_advisor,
    extract_json,
    parse_suggestions,
)

# Components
from .analyzer import DependencyAnalyzer, dependency_reason
from .calendar import WorkingCalendar

# Configuration
from .config import AdvisorConfig, AdvisorType, EngineConfig

# Core dataclasses
from .core import (
    AdvisorStatus,
    DependencyAnalysis,
    DependencyAnalysisResult,
    DependencyLink,
    GanttChart,
    GanttTask,
    OptimizationRecommendation,
    OptimizationResult,
    ParallelWorkGroup,
    ParallelWorkResult,
    Priority,
    RecommendationType,
    ScheduleResult,
)
from .graph import TaskGraph
from .parallel import ParallelWorkDetector

# Protocols
from .protocols import CrossTradeAdvisor, LLMBackend
from .reporter import OptimizationReporter
from .scheduler import CalendarScheduler

# High-level service
from .service import TimelineOptimizationService, apply_modifications

__all__ = [
    # Core dataclasses
    "AdvisorStatus",
    "DependencyAnalysis",
    "DependencyAnalysisResult",
    "DependencyLink",
    "GanttChart",
    "GanttTask",
    "OptimizationRecommendation",
    "OptimizationResult",
    "ParallelWorkGroup",
    "ParallelWorkResult",
    "Priority",
    "RecommendationType",
    "ScheduleResult",
    # Configuration
    "AdvisorConfig",
    "AdvisorType",
    "EngineConfig",
    # Protocols
    "CrossTradeAdvisor",
    "LLMBackend",
    # Components
    "TaskGraph",
    "DependencyAnalyzer",
    "dependency_reason",
    "WorkingCalendar",
    "ParallelWorkDetector",
    "CalendarScheduler",
    "OptimizationReporter",
    # Advisors
    "AdvisorSuggestion",
    "StaticAdvisor",
    "PromptAdvisor",
    "CallableBackend",
    "CommandBackend",
    "create_advisor",
    "extract_json",
    "parse_suggestions",
    # High-level service
    "TimelineOptimizationService",
    "apply_modifications",
]
