from typing import Dict, List, Optional, Set

from loguru import logger

from spdf_compiler.analysis.rates import GraphExpressions
from spdf_compiler.core.errors import RateInconsistencyError
from spdf_compiler.core.fraction import Fraction
from spdf_compiler.core.types import ActorId, ChannelId
from spdf_compiler.ir.graph import Actor, Channel, Graph


class InconsistencyProof:
    """
    Counter-example for a set of balance equations: an undirected cycle whose
    rate ratios do not close, plus the mismatch seen on its reference channel.

    The cycle is ordered in the IN-to-OUT direction of the reference channel:
    it starts at the point where the solver's derivation paths diverge, walks to
    the consumer of the reference channel, crosses the reference channel back to
    its producer and returns to the divergence point.
    """

    def __init__(self, cycle: List[Channel], out_to_in_ratio: Fraction, reference: Channel):
        self._cycle = list(cycle)
        self.out_to_in_ratio = out_to_in_ratio
        self.reference = reference

    @property
    def cycle(self) -> List[Channel]:
        return list(self._cycle)

    @classmethod
    def find(
        cls,
        graph: Graph,
        rates: GraphExpressions,
        fractions: Dict[ActorId, Fraction],
        visited: Set[ChannelId],
        predecessors: Dict[ActorId, Channel],
    ) -> Optional["InconsistencyProof"]:
        """
        Check the balance equation of every channel the solver did not follow.
        Returns a proof for the first violated channel, or None if all hold.
        """
        for channel in graph.channels:
            if channel.id in visited:
                continue
            src, dst = channel.src, channel.dst
            v_out = fractions[src.actor.id] * Fraction(rates.require_rate(src.port))
            v_in = fractions[dst.actor.id] * Fraction(rates.require_rate(dst.port))
            ratio = v_out / v_in
            if not ratio.is_one:
                cycle = _splice_cycle(channel, predecessors)
                logger.debug("Balance equation violated on {channel}: ratio {ratio}", channel=str(channel), ratio=str(ratio))
                return cls(cycle, ratio, channel)
        return None

    def diagnostics(self) -> str:
        lines = ["This undirected cycle has a problem:"]
        lines.extend(str(channel) for channel in self._cycle)
        lines.append("Mismatched factors:")
        if not self.out_to_in_ratio.denominator.is_one:
            lines.append(f"IN: {self.out_to_in_ratio.denominator}")
        if not self.out_to_in_ratio.numerator.is_one:
            lines.append(f"OUT: {self.out_to_in_ratio.numerator}")
        return "\n".join(lines)

    def to_error(self) -> RateInconsistencyError:
        return RateInconsistencyError(self)

    def __str__(self) -> str:
        return f"Inconsistency on {len(self._cycle)}-channel cycle, OUT/IN ratio {self.out_to_in_ratio}"


def _path_to_start(actor: Actor, predecessors: Dict[ActorId, Channel]) -> List[Channel]:
    path = []
    while actor.id in predecessors:
        channel = predecessors[actor.id]
        path.append(channel)
        actor = channel.opposite(actor)
    return path


def _splice_cycle(reference: Channel, predecessors: Dict[ActorId, Channel]) -> List[Channel]:
    to_out = list(reversed(_path_to_start(reference.src.actor, predecessors)))
    to_in = list(reversed(_path_to_start(reference.dst.actor, predecessors)))

    common = 0
    while common < min(len(to_out), len(to_in)) and to_out[common] is to_in[common]:
        common += 1

    return to_in[common:] + [reference] + list(reversed(to_out[common:]))
