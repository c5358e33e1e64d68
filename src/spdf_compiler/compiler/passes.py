from collections import defaultdict
from typing import Dict, List, Set

from loguru import logger

from spdf_compiler.analysis.liveness import LivenessAcyclic
from spdf_compiler.analysis.safety import Safety
from spdf_compiler.analysis.solutions import Solutions
from spdf_compiler.compiler.pipeline import AnalysisContext, DiagnosticSink, Pass
from spdf_compiler.core.types import PortId


class PeriodActorPass(Pass):
    name = "PeriodActorPass"

    def run(self, ctx: AnalysisContext, diag: DiagnosticSink) -> None:
        ctx.param_comm.insert_period_actors()


class StructuralPass(Pass):
    name = "StructuralPass"

    def run(self, ctx: AnalysisContext, diag: DiagnosticSink) -> None:
        connected: Set[PortId] = set()
        for channel in ctx.graph.channels:
            connected.add(channel.src.port.id)
            connected.add(channel.dst.port.id)

        # Connected ports without a rate are fatal later; only dangling ones are reported here.
        for port in ctx.graph.ports:
            if port.rate is None and port.id not in connected:
                diag.warning(
                    "STRUCT001",
                    f"Port '{port.name}' of '{port.func}' is unconnected and has no rate",
                    location=port.func,
                )


class RateParsePass(Pass):
    name = "RateParsePass"

    def run(self, ctx: AnalysisContext, diag: DiagnosticSink) -> None:
        ctx.rates.parse(ctx.graph)


class ParameterSourcePass(Pass):
    name = "ParameterSourcePass"

    def run(self, ctx: AnalysisContext, diag: DiagnosticSink) -> None:
        ctx.param_comm.identify_parameter_sources(ctx.rates)
        for param in ctx.param_comm.environment_parameters:
            diag.warning(
                "SPDF004",
                f"Parameter '{param}' has no modifier and is treated as an environment constant",
                location=param,
            )


class BalanceEquationPass(Pass):
    name = "BalanceEquationPass"

    def run(self, ctx: AnalysisContext, diag: DiagnosticSink) -> None:
        start = None
        if ctx.config.start_actor is not None:
            start = ctx.graph.get_actor(ctx.config.start_actor)

        result = Solutions.solve(ctx.graph, ctx.rates, start)
        if result.ok:
            ctx.solutions = result.value
            return

        proof = result.violation
        ctx.violations.append(proof)
        diag.error("SPDF001", proof.diagnostics(), location=str(proof.reference), payload=proof)


class ParameterUserPass(Pass):
    name = "ParameterUserPass"

    def run(self, ctx: AnalysisContext, diag: DiagnosticSink) -> None:
        if ctx.solutions is None:
            return
        ctx.param_comm.identify_parameter_users(ctx.rates, ctx.solutions)


class SafetyPass(Pass):
    name = "SafetyPass"

    def run(self, ctx: AnalysisContext, diag: DiagnosticSink) -> None:
        if ctx.solutions is None:
            return

        result = Safety().check(ctx.param_comm, ctx.solutions)
        ctx.safe = result.ok
        if result.ok:
            return

        violation = result.violation
        ctx.violations.append(violation)
        diag.error("SPDF002", violation.diagnostics(), location=violation.parameter, payload=violation)


class ParameterWiringPass(Pass):
    name = "ParameterWiringPass"

    def run(self, ctx: AnalysisContext, diag: DiagnosticSink) -> None:
        if not ctx.config.connect_users:
            return
        if not ctx.safe:
            logger.debug("Skipping parameter wiring: graph is not known to be safe")
            return

        created = ctx.param_comm.connect_sources_to_users(ctx.solutions)
        per_source: Dict[str, List[str]] = defaultdict(list)
        for channel in created:
            per_source[channel.src.actor.func].append(channel.dst.actor.name)
        for func, users in per_source.items():
            logger.info("Wired {func} to {users}", func=func, users=users)


class LivenessPass(Pass):
    name = "LivenessPass"

    def run(self, ctx: AnalysisContext, diag: DiagnosticSink) -> None:
        if not ctx.config.check_liveness:
            return

        result = LivenessAcyclic().check(ctx.graph)
        if result.ok:
            return

        cycle = result.violation
        ctx.violations.append(cycle)
        diag.error("SPDF003", cycle.diagnostics(), location=cycle.start.name, payload=cycle)
