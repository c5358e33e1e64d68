from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from loguru import logger

from spdf_compiler.analysis.param_comm import ParamComm
from spdf_compiler.analysis.rates import GraphExpressions
from spdf_compiler.analysis.solutions import Solutions
from spdf_compiler.core.result import Violation
from spdf_compiler.ir.graph import Graph


class DiagnosticSeverity(Enum):
    ERROR = "ERROR"
    WARNING = "WARNING"


@dataclass
class Diagnostic:
    severity: DiagnosticSeverity
    code: str
    message: str
    location: Optional[str] = None
    payload: Any = None


class DiagnosticSink:
    def __init__(self):
        self.diagnostics: List[Diagnostic] = []

    def error(self, code: str, message: str, location: Optional[str] = None, payload: Any = None):
        self.diagnostics.append(Diagnostic(DiagnosticSeverity.ERROR, code, message, location, payload))

    def warning(self, code: str, message: str, location: Optional[str] = None, payload: Any = None):
        self.diagnostics.append(Diagnostic(DiagnosticSeverity.WARNING, code, message, location, payload))

    @property
    def has_errors(self) -> bool:
        return any(d.severity == DiagnosticSeverity.ERROR for d in self.diagnostics)


@dataclass
class CompilerConfig:
    stop_on_error: bool = True
    start_actor: Optional[str] = None
    connect_users: bool = True
    check_liveness: bool = True


@dataclass
class AnalysisContext:
    """State shared by the passes of one analysis run over one graph."""

    graph: Graph
    config: CompilerConfig
    rates: GraphExpressions = field(default_factory=GraphExpressions)
    param_comm: Optional[ParamComm] = None
    solutions: Optional[Solutions] = None
    safe: bool = False
    violations: List[Violation] = field(default_factory=list)

    def __post_init__(self):
        if self.param_comm is None:
            self.param_comm = ParamComm(self.graph)


@dataclass
class CompileResult:
    success: bool
    diagnostics: List[Diagnostic]
    context: Optional[AnalysisContext] = None


class Pass(ABC):
    name: str

    @abstractmethod
    def run(self, ctx: AnalysisContext, diag: DiagnosticSink) -> None:
        ...


class CompilerPipeline:
    def __init__(self, config: CompilerConfig):
        self.config = config
        self.passes: List[Pass] = []

    def add_pass(self, p: Pass):
        self.passes.append(p)

    def build_context(self, graph: Graph) -> AnalysisContext:
        return AnalysisContext(graph=graph, config=self.config)

    def run_passes(self, ctx: AnalysisContext) -> CompileResult:
        diag = DiagnosticSink()

        for p in self.passes:
            logger.debug("Running pass {name}", name=p.name)
            p.run(ctx, diag)
            if self.config.stop_on_error and diag.has_errors:
                logger.debug("Pass {name} reported errors, stopping", name=p.name)
                break

        return CompileResult(success=not diag.has_errors, diagnostics=diag.diagnostics, context=ctx)
