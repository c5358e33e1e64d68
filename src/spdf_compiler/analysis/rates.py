from typing import Dict, Optional

from loguru import logger

from spdf_compiler.core.errors import MissingRateError
from spdf_compiler.core.expression import Expression
from spdf_compiler.core.types import PortId
from spdf_compiler.ir.graph import Graph, Port


class GraphExpressions:
    """
    Parsed port rates of one graph, keyed by port handle.

    Periods are not parsed separately: they are the input rates of period actors.
    """

    def __init__(self):
        self._rates: Dict[PortId, Expression] = {}

    def parse(self, graph: Graph) -> None:
        for port in graph.ports:
            self.get_rate(port)
        logger.debug("Parsed {count} port rates", count=len(self._rates))

    def get_rate(self, port: Port) -> Optional[Expression]:
        """Parsed rate of `port`, or None if the port carries no rate."""
        if port.id in self._rates:
            return self._rates[port.id]
        if port.rate is None:
            return None
        expr = Expression.parse(port.rate)
        self._rates[port.id] = expr
        return expr

    def require_rate(self, port: Port) -> Expression:
        rate = self.get_rate(port)
        if rate is None:
            raise MissingRateError(port)
        return rate

    def clear(self) -> None:
        self._rates.clear()

    def __len__(self) -> int:
        return len(self._rates)
