"""Rule analyzers and the registry that runs them."""

from .architecture import ArchitectureAnalyzer
from .base import Analyzer
from .class_conflicts import ClassConflictAnalyzer
from .code_smell import CodeSmellDetector
from .cross_file import CrossFileDuplicationDetector
from .docblock import DocBlockAnalyzer
from .duplication import DuplicationDetector
from .logic import LogicAnalyzer
from .method_size import MethodSizeAnalyzer
from .n_plus_one import NPlusOneDetector
from .performance import PerformanceAnalyzer
from .registry import AnalyzerRegistry, get_default_analyzers
from .security import SecurityAnalyzer
from .trait_scope import TraitScopeAnalyzer
from .type_checker import TypeChecker

__all__ = [
    "Analyzer",
    "AnalyzerRegistry",
    "get_default_analyzers",
    "MethodSizeAnalyzer",
    "LogicAnalyzer",
    "TypeChecker",
    "DocBlockAnalyzer",
    "ArchitectureAnalyzer",
    "TraitScopeAnalyzer",
    "SecurityAnalyzer",
    "PerformanceAnalyzer",
    "NPlusOneDetector",
    "CodeSmellDetector",
    "ClassConflictAnalyzer",
    "DuplicationDetector",
    "CrossFileDuplicationDetector",
]
