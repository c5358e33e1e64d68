import pytest

from spdf_compiler.compiler.passes import (
    BalanceEquationPass,
    LivenessPass,
    PeriodActorPass,
    RateParsePass,
    StructuralPass,
)
from spdf_compiler.compiler.pipeline import CompilerConfig, CompilerPipeline, DiagnosticSeverity, DiagnosticSink
from spdf_compiler.compiler.report import CompilationReport
from spdf_compiler.core.types import PortDir
from spdf_compiler.ir.graph import Graph


def build_sdf(prod_rate="2", cons_rate="3"):
    g = Graph("sdf")
    g.add_actor("P", "Producer")
    g.add_actor("C", "Consumer")
    g.add_port("Producer", "out", PortDir.OUT, prod_rate)
    g.add_port("Consumer", "inp", PortDir.IN, cons_rate)
    g.add_channel(("P", "out"), ("C", "inp"))
    return g


def build_sdf_with_back_edge():
    g = build_sdf()
    g.add_port("Consumer", "back", PortDir.OUT, "1")
    g.add_port("Producer", "inp", PortDir.IN, "1")
    g.add_channel(("C", "back"), ("P", "inp"))
    return g


def sdf_pipeline(config=None):
    compiler = CompilerPipeline(config or CompilerConfig())
    compiler.add_pass(RateParsePass())
    compiler.add_pass(BalanceEquationPass())
    return compiler


def test_sdf_consistent():
    # P (rate 2) -> C (rate 3): q_p * 2 = q_c * 3 => q_p=3, q_c=2
    compiler = sdf_pipeline()
    ctx = compiler.build_context(build_sdf())
    res = compiler.run_passes(ctx)

    assert res.success
    assert res.diagnostics == []
    assert str(res.context.solutions) == "P(3) C(2)"


def test_sdf_inconsistent():
    # A (out:2) -> B (in:1, out:1) -> A (in:1): only the trivial solution
    g = Graph()
    g.add_actor("A", "NodeA")
    g.add_actor("B", "NodeB")
    g.add_port("NodeA", "inp", PortDir.IN, "1")
    g.add_port("NodeA", "out", PortDir.OUT, "2")
    g.add_port("NodeB", "inp", PortDir.IN, "1")
    g.add_port("NodeB", "out", PortDir.OUT, "1")
    g.add_channel(("A", "out"), ("B", "inp"))
    g.add_channel(("B", "out"), ("A", "inp"))

    compiler = sdf_pipeline()
    res = compiler.run_passes(compiler.build_context(g))

    assert not res.success
    assert res.diagnostics[0].code == "SPDF001"
    assert res.diagnostics[0].severity == DiagnosticSeverity.ERROR
    assert res.diagnostics[0].payload is res.context.violations[0]


def test_stop_on_error_skips_later_passes():
    compiler = sdf_pipeline()
    compiler.add_pass(LivenessPass())
    res = compiler.run_passes(compiler.build_context(build_sdf_with_back_edge()))
    assert [d.code for d in res.diagnostics] == ["SPDF001"]

    compiler = sdf_pipeline(CompilerConfig(stop_on_error=False))
    compiler.add_pass(LivenessPass())
    res = compiler.run_passes(compiler.build_context(build_sdf_with_back_edge()))
    assert [d.code for d in res.diagnostics] == ["SPDF001", "SPDF003"]


def test_structural_pass_reports_dangling_ports():
    g = build_sdf()
    g.add_port("Consumer", "aux", PortDir.IN)
    g.add_port("Consumer", "spare", PortDir.IN, "4")

    compiler = CompilerPipeline(CompilerConfig())
    compiler.add_pass(StructuralPass())
    res = compiler.run_passes(compiler.build_context(g))

    # warnings do not fail the compilation
    assert res.success
    assert [(d.code, d.severity) for d in res.diagnostics] == [("STRUCT001", DiagnosticSeverity.WARNING)]
    assert "aux" in res.diagnostics[0].message
    assert res.diagnostics[0].location == "Consumer"


def test_period_actor_pass_extends_graph():
    g = build_sdf()
    g.add_modifier("Producer", "p", "int", "2")

    compiler = CompilerPipeline(CompilerConfig())
    compiler.add_pass(PeriodActorPass())
    compiler.add_pass(RateParsePass())
    compiler.add_pass(BalanceEquationPass())
    res = compiler.run_passes(compiler.build_context(g))

    assert res.success
    period = g.get_actor("<p>")
    assert period.auto
    # P fires 3 times, <p> once every 2 firings of P
    assert str(res.context.solutions.get_solution(period)) == "3"
    assert str(res.context.solutions.get_solution(g.get_actor("P"))) == "6"


def test_diagnostic_sink():
    diag = DiagnosticSink()
    diag.warning("SPDF004", "environment parameter", location="n")
    diag.warning("STRUCT001", "dangling")
    assert not diag.has_errors

    diag.error("SPDF002", "unsafe", location="p", payload=42)
    assert diag.has_errors
    assert diag.diagnostics[-1].payload == 42


def test_report_format():
    g = build_sdf()
    compiler = sdf_pipeline()
    res = compiler.run_passes(compiler.build_context(g))
    text = str(CompilationReport(g, res.diagnostics, res.context.solutions))

    assert text.startswith("SPDF Analysis Report")
    assert "Actors: 2" in text
    assert "Errors: 0" in text
    assert "Solutions: P(3) C(2)" in text


def test_report_lists_errors():
    g = build_sdf_with_back_edge()
    compiler = sdf_pipeline()
    res = compiler.run_passes(compiler.build_context(g))
    text = str(CompilationReport(g, res.diagnostics))

    assert "Errors: 1" in text
    assert "[SPDF001] This undirected cycle has a problem:" in text
    assert "@ P.out --> C.inp" in text


@pytest.mark.parametrize("rates", [("2", "3"), ("4", "6"), ("n", "n")])
def test_two_actor_ratio(rates):
    compiler = sdf_pipeline()
    res = compiler.run_passes(compiler.build_context(build_sdf(*rates)))
    assert res.success


def test_report_counts_every_diagnostic():
    g = build_sdf_with_back_edge()
    g.add_port("Producer", "spare", PortDir.OUT)

    compiler = CompilerPipeline(CompilerConfig(stop_on_error=False))
    for p in (StructuralPass(), RateParsePass(), BalanceEquationPass(), LivenessPass()):
        compiler.add_pass(p)
    res = compiler.run_passes(compiler.build_context(g))

    assert [d.code for d in res.diagnostics] == ["STRUCT001", "SPDF001", "SPDF003"]
    assert set(DiagnosticSeverity) == {DiagnosticSeverity.ERROR, DiagnosticSeverity.WARNING}
    text = str(CompilationReport(g, res.diagnostics))
    assert "Errors: 2" in text
    assert "Warnings: 1" in text
    for d in res.diagnostics:
        assert f"[{d.code}]" in text
