import pytest

from spdf_compiler import Application, CompilerConfig, Expression, PortDir
from spdf_compiler.core.errors import GraphStructureError


def E(text):
    return Expression.parse(text)


def test_application_facade():
    app = Application("codec")
    app.actor("prod").actor("cons")
    app.connect("prod.out", "cons.in", src_rate="5*p", dst_rate="5")
    app.modify("prod", "p", period="2")

    report = app.analyze()
    assert report.ok
    assert app.solutions.get_solution(app.graph.get_actor("cons")) == E("2*p")
    assert "SPDF Analysis Report" in str(report)


def test_declared_ports_are_reused():
    app = Application()
    app.actor("a", "Stage").actor("b", "Stage").actor("sink")
    app.port("Stage", "in", "in", "1")
    app.port("Stage", "out", PortDir.OUT, "2")

    app.connect("a.out", "b.in")
    app.connect("b.out", "sink.in", dst_rate="4")

    report = app.analyze()
    assert report.ok
    assert str(app.solutions) == "a(1) b(2) sink(1)"


def test_conflicting_rate_is_rejected():
    app = Application()
    app.actor("a").actor("b").actor("c")
    app.connect("a.out", "b.in", src_rate="1", dst_rate="1")
    with pytest.raises(GraphStructureError):
        app.connect("a.out", "c.in", src_rate="2", dst_rate="1")


def test_bad_reference():
    app = Application()
    app.actor("a")
    with pytest.raises(ValueError):
        app.connect("a", "a.in")


def test_solutions_before_analysis():
    app = Application()
    with pytest.raises(RuntimeError):
        app.solutions


def test_unsafe_application_keeps_going():
    app = Application()
    for name in ("a1", "a2", "a3", "a4"):
        app.actor(name)
    app.connect("a1.out1", "a2.in1", src_rate="2*p", dst_rate="1")
    app.connect("a2.out1", "a3.in1", src_rate="q", dst_rate="p")
    app.connect("a4.out1", "a3.in2", src_rate="3*q", dst_rate="1")
    app.modify("a1", "p", period="1")
    app.modify("a2", "q", period="3*p")

    report = app.analyze(CompilerConfig(stop_on_error=False))
    assert not report.ok
    assert [d.code for d in report.errors] == ["SPDF002"]
    assert report.errors[0].location == "p"
