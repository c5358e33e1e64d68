import pytest

from spdf_compiler.analysis.liveness import LivenessAcyclic
from spdf_compiler.core.errors import LivenessViolationError
from spdf_compiler.core.types import PortDir
from spdf_compiler.ir.graph import Graph


def build_chain(names):
    g = Graph()
    for name in names:
        g.add_actor(name, name)
        g.add_port(name, "in", PortDir.IN, "1")
        g.add_port(name, "out", PortDir.OUT, "1")
    for src, dst in zip(names, names[1:]):
        g.add_channel((src, "out"), (dst, "in"))
    return g


def test_acyclic_graph_is_live():
    g = build_chain(["vld", "iq", "idct", "mc"])
    result = LivenessAcyclic().check(g)
    assert result.ok
    assert result.unwrap() is None


def test_diamond_is_live():
    # two paths into the same actor are not a cycle
    g = build_chain(["a", "b", "d"])
    g.add_actor("c", "c")
    g.add_port("c", "in", PortDir.IN, "1")
    g.add_port("c", "out", PortDir.OUT, "1")
    g.add_port("d", "in2", PortDir.IN, "1")
    g.add_port("a", "out2", PortDir.OUT, "1")
    g.add_channel(("a", "out2"), ("c", "in"))
    g.add_channel(("c", "out"), ("d", "in2"))

    assert LivenessAcyclic().check(g).ok


def test_back_edge_is_reported_as_cycle():
    g = build_chain(["vld", "iq", "idct", "mc"])
    g.add_port("vld", "back", PortDir.IN, "1")
    back = g.add_channel(("mc", "out"), ("vld", "back"))

    result = LivenessAcyclic().check(g)
    assert not result.ok

    cycle = result.violation
    assert cycle.channels[-1] is back
    assert [a.name for a in cycle.actors] == ["vld", "iq", "idct", "mc"]
    # consecutive channels connect, and the walk returns to its start
    for prev, nxt in zip(cycle.channels, cycle.channels[1:]):
        assert prev.dst.actor is nxt.src.actor
    assert cycle.channels[-1].dst.actor is cycle.start
    assert cycle.diagnostics().startswith("Cycle found: vld -> iq -> idct -> mc -> vld")

    with pytest.raises(LivenessViolationError) as exc:
        result.unwrap()
    assert exc.value.cycle is cycle


def test_cycle_not_through_first_actor():
    g = build_chain(["src", "a", "b"])
    g.add_port("a", "loop", PortDir.IN, "1")
    g.add_channel(("b", "out"), ("a", "loop"))

    cycle = LivenessAcyclic().check(g).violation
    assert cycle.start.name == "a"
    assert [a.name for a in cycle.actors] == ["a", "b"]


def test_self_loop_is_a_cycle():
    g = Graph()
    g.add_actor("a", "A")
    g.add_port("A", "in", PortDir.IN, "1")
    g.add_port("A", "out", PortDir.OUT, "1")
    ch = g.add_channel(("a", "out"), ("a", "in"), initial_tokens=1)

    cycle = LivenessAcyclic().check(g).violation
    assert cycle.channels == [ch]
    assert cycle.start.name == "a"
