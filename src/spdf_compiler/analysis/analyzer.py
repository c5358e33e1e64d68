from dataclasses import dataclass
from typing import List, Optional

from loguru import logger

from spdf_compiler.analysis.param_comm import ParamComm
from spdf_compiler.analysis.rates import GraphExpressions
from spdf_compiler.analysis.solutions import Solutions
from spdf_compiler.compiler.passes import (
    BalanceEquationPass,
    LivenessPass,
    ParameterSourcePass,
    ParameterUserPass,
    ParameterWiringPass,
    PeriodActorPass,
    RateParsePass,
    SafetyPass,
    StructuralPass,
)
from spdf_compiler.compiler.pipeline import (
    CompilerConfig,
    CompilerPipeline,
    Diagnostic,
    DiagnosticSeverity,
)
from spdf_compiler.compiler.report import CompilationReport
from spdf_compiler.core.result import Violation
from spdf_compiler.ir.graph import Graph


@dataclass
class AnalysisReport:
    success: bool
    diagnostics: List[Diagnostic]
    violations: List[Violation]
    graph: Graph
    solutions: Optional[Solutions]
    param_comm: ParamComm
    rates: GraphExpressions

    @property
    def ok(self) -> bool:
        return self.success

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == DiagnosticSeverity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == DiagnosticSeverity.WARNING]

    def codes(self) -> List[str]:
        return [d.code for d in self.diagnostics]

    def get_solutions(self) -> Solutions:
        if self.solutions is None:
            raise RuntimeError("Balance equations have no solution for this graph")
        return self.solutions

    def raise_for_violation(self) -> None:
        """Raise the exception of the first recorded violation, if any."""
        for violation in self.violations:
            raise violation.to_error()

    def __str__(self):
        return str(CompilationReport(self.graph, self.diagnostics, self.solutions))


class SpdfAnalyzer:
    """
    Runs the SPDF checks over one graph:

    1. insert period actors for every modifier
    2. parse port rates
    3. identify parameter sources (modifiers, environment parameters)
    4. solve the balance equations
    5. identify parameter users
    6. check safety of parameter modification
    7. wire period actors to the users
    8. check liveness

    The graph is mutated in place (period actors and their channels), so an
    analyzer runs once. Structural problems raise; rate, safety and liveness
    violations are reported as error diagnostics carrying the violation.
    """

    def __init__(self, graph: Graph, config: Optional[CompilerConfig] = None):
        self.graph = graph
        self.config = config or CompilerConfig()
        self.pipeline = CompilerPipeline(self.config)
        self.pipeline.add_pass(PeriodActorPass())
        self.pipeline.add_pass(StructuralPass())
        self.pipeline.add_pass(RateParsePass())
        self.pipeline.add_pass(ParameterSourcePass())
        self.pipeline.add_pass(BalanceEquationPass())
        self.pipeline.add_pass(ParameterUserPass())
        self.pipeline.add_pass(SafetyPass())
        self.pipeline.add_pass(ParameterWiringPass())
        self.pipeline.add_pass(LivenessPass())
        self._report: Optional[AnalysisReport] = None
        self._started = False

    def run(self) -> AnalysisReport:
        if self._started:
            raise RuntimeError("Analyzer already ran; the graph has been modified")
        self._started = True

        with logger.contextualize(graph=self.graph.name):
            return self._run()

    def _run(self) -> AnalysisReport:
        logger.info(
            "Analyzing graph {name}: {actors} actors, {channels} channels",
            name=self.graph.name,
            actors=self.graph.count_actors(),
            channels=self.graph.count_channels(),
        )
        ctx = self.pipeline.build_context(self.graph)
        res = self.pipeline.run_passes(ctx)

        self._report = AnalysisReport(
            success=res.success,
            diagnostics=res.diagnostics,
            violations=list(ctx.violations),
            graph=self.graph,
            solutions=ctx.solutions,
            param_comm=ctx.param_comm,
            rates=ctx.rates,
        )
        if res.success:
            logger.info("Analysis succeeded: {solutions}", solutions=str(ctx.solutions))
        else:
            logger.error("Analysis failed with {count} error(s)", count=len(self._report.errors))
        return self._report

    @property
    def report(self) -> Optional[AnalysisReport]:
        return self._report

    def get_solutions(self) -> Solutions:
        if self._report is None:
            raise RuntimeError("Analyzer has not run yet")
        return self._report.get_solutions()
