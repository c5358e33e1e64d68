from dataclasses import dataclass
from typing import Iterator, List, Optional, Set, Tuple

from loguru import logger

from spdf_compiler.core.errors import LivenessViolationError
from spdf_compiler.core.result import Result
from spdf_compiler.core.types import ActorId, PortDir
from spdf_compiler.ir.graph import Actor, Channel, Graph, Link


@dataclass
class DirectedCycle:
    """Channels of a directed cycle, in traversal order, starting and ending at `start`."""

    channels: List[Channel]

    @property
    def start(self) -> Actor:
        return self.channels[0].src.actor

    @property
    def actors(self) -> List[Actor]:
        return [channel.src.actor for channel in self.channels]

    def diagnostics(self) -> str:
        path = " -> ".join([a.name for a in self.actors] + [self.start.name])
        channels = ", ".join(str(c) for c in self.channels)
        return f"Cycle found: {path} [{channels}]"

    def to_error(self) -> LivenessViolationError:
        return LivenessViolationError(self)


_Frame = Tuple[Actor, Iterator[Link], Optional[Channel]]


class LivenessAcyclic:
    """
    The simplest sufficient condition for liveness: the graph must be acyclic.
    """

    def check(self, graph: Graph) -> Result[None, DirectedCycle]:
        visited: Set[ActorId] = set()
        finished: Set[ActorId] = set()

        for root in graph.actors:
            if root.id in visited:
                continue
            cycle = self._visit(root, visited, finished)
            if cycle is not None:
                logger.warning("Graph is not live: {diag}", diag=cycle.diagnostics())
                return Result.failure(cycle)

        logger.debug("Graph is acyclic, {count} actors checked", count=len(finished))
        return Result.success()

    def _visit(self, root: Actor, visited: Set[ActorId], finished: Set[ActorId]) -> Optional[DirectedCycle]:
        visited.add(root.id)
        stack: List[_Frame] = [(root, iter(root.links(PortDir.OUT)), None)]
        while stack:
            actor, links, _ = stack[-1]
            for link in links:
                successor = link.opposite.actor
                if successor.id not in visited:
                    visited.add(successor.id)
                    stack.append((successor, iter(successor.links(PortDir.OUT)), link.channel))
                    break
                if successor.id not in finished:
                    # back edge: successor is still on the stack
                    return DirectedCycle(self._unwind(stack, successor) + [link.channel])
            else:
                finished.add(actor.id)
                stack.pop()
        return None

    @staticmethod
    def _unwind(stack: List[_Frame], target: Actor) -> List[Channel]:
        depth = next(i for i, frame in enumerate(stack) if frame[0] is target)
        return [frame[2] for frame in stack[depth + 1:]]
