"""
Balance equations of SPDF graphs.

Generalizes the SDF repetition-vector method ("Software Synthesis from
Dataflow Graphs", Bhattacharyya et al.) to symbolic rates: fractional
solutions are propagated along a spanning tree of the undirected graph, every
remaining channel is checked, and the fractions are scaled by the least common
multiple of their denominators.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from loguru import logger

from spdf_compiler.analysis.inconsistency import InconsistencyProof
from spdf_compiler.analysis.rates import GraphExpressions
from spdf_compiler.core.errors import GraphDisconnectedError
from spdf_compiler.core.expression import Expression, divide, gcd, multiply
from spdf_compiler.core.fraction import Fraction
from spdf_compiler.core.result import Result
from spdf_compiler.core.types import ActorId, ChannelId
from spdf_compiler.ir.graph import Actor, Channel, Graph


@dataclass
class _Propagation:
    graph: Graph
    rates: GraphExpressions
    fractions: Dict[ActorId, Fraction] = field(default_factory=dict)
    visited: Set[ChannelId] = field(default_factory=set)
    # channel through which the solver entered each actor (start actor has none)
    predecessors: Dict[ActorId, Channel] = field(default_factory=dict)


class Solutions:
    """Repetition table: one integer monomial per actor."""

    def __init__(self, graph: Graph, solutions: Optional[Dict[ActorId, Expression]] = None):
        self.graph = graph
        self._solutions: Dict[ActorId, Expression] = dict(solutions or {})

    @classmethod
    def solve(
        cls,
        graph: Graph,
        rates: GraphExpressions,
        start_actor: Optional[Actor] = None,
    ) -> Result["Solutions", InconsistencyProof]:
        """
        Solve the balance equations of `graph`.

        Any start actor gives the same solutions; only the reported
        inconsistency cycle may differ when there are several.
        """
        if graph.count_actors() == 0:
            return Result.success(cls(graph))
        if start_actor is None:
            start_actor = graph.actors[0]

        state = _Propagation(graph, rates)
        state.fractions[start_actor.id] = Fraction.one()
        _propagate(start_actor, state)

        if len(state.fractions) != graph.count_actors():
            raise GraphDisconnectedError(graph.count_actors(), len(state.fractions))

        proof = InconsistencyProof.find(graph, rates, state.fractions, state.visited, state.predecessors)
        if proof is not None:
            logger.warning("Rate inconsistency found from start actor {start}:\n{diag}",
                           start=start_actor.name, diag=proof.diagnostics())
            return Result.failure(proof)

        solutions = cls(graph, _scale_fractions(state))
        logger.debug("Balance equations solved: {solutions}", solutions=str(solutions))
        return Result.success(solutions)

    def get_solution(self, actor: Actor) -> Expression:
        if actor.id not in self._solutions:
            raise KeyError(f"No solution for actor {actor.name}")
        return self._solutions[actor.id]

    def contains(self, actor: Actor) -> bool:
        return actor.id in self._solutions

    def items(self) -> List[Tuple[Actor, Expression]]:
        return [(self.graph.actor(aid), expr) for aid, expr in self._solutions.items()]

    def copy(self) -> "Solutions":
        return Solutions(self.graph, self._solutions)

    def dump(self) -> None:
        logger.info("Solutions: {solutions}", solutions=str(self))

    def __len__(self) -> int:
        return len(self._solutions)

    def __str__(self) -> str:
        return " ".join(f"{actor.name}({expr})" for actor, expr in self.items())


def _propagate(start: Actor, state: _Propagation) -> None:
    # depth-first, same visiting order as the recursive formulation
    stack = [(start, iter(start.all_links()))]
    while stack:
        actor, links = stack[-1]
        for link in links:
            other = link.opposite.actor
            if other.id in state.fractions:
                continue
            rate = state.rates.require_rate(link.port)
            other_rate = state.rates.require_rate(link.opposite.port)
            state.fractions[other.id] = state.fractions[actor.id] * Fraction(rate, other_rate)
            state.visited.add(link.channel.id)
            state.predecessors[other.id] = link.channel
            stack.append((other, iter(other.all_links())))
            break
        else:
            stack.pop()


def _scale_fractions(state: _Propagation) -> Dict[ActorId, Expression]:
    lcm = Expression.one()
    for fraction in state.fractions.values():
        lcm = multiply(divide(lcm, gcd(lcm, fraction.denominator)), fraction.denominator)

    scale = Fraction(lcm)
    scaled: Dict[ActorId, Expression] = {}
    for actor in state.graph.actors:
        scaled[actor.id] = (state.fractions[actor.id] * scale).collapse()
    return scaled
