from typing import Optional, Tuple, Union

from loguru import logger

from spdf_compiler.analysis.analyzer import AnalysisReport, SpdfAnalyzer
from spdf_compiler.analysis.solutions import Solutions
from spdf_compiler.compiler.pipeline import CompilerConfig
from spdf_compiler.core.types import PortDir
from spdf_compiler.ir.graph import Channel, Graph, Port
from spdf_compiler.logging_config import configure_logging

configure_logging()


def _split_ref(ref: str) -> Tuple[str, str]:
    actor, sep, port = ref.partition(".")
    if not sep or not actor or not port:
        raise ValueError(f"Expected 'actor.port', got {ref!r}")
    return actor, port


class Application:
    """
    Builder for SPDF applications.

        app = Application("codec")
        app.actor("prod").actor("cons")
        app.connect("prod.out", "cons.in", src_rate="5*p", dst_rate="5")
        app.modify("prod", "p", period="2")
        report = app.analyze()
    """

    def __init__(self, name: Optional[str] = None):
        self.graph = Graph(name)
        self.report: Optional[AnalysisReport] = None

    def actor(self, name: str, func: Optional[str] = None, exec_time: int = 0) -> "Application":
        self.graph.add_actor(name, func or name, exec_time)
        return self

    def port(
        self,
        func: str,
        name: str,
        direction: Union[PortDir, str],
        rate: Optional[str] = None,
    ) -> "Application":
        self.graph.add_port(func, name, PortDir(direction.upper()) if isinstance(direction, str) else direction, rate)
        return self

    def connect(
        self,
        src: str,
        dst: str,
        src_rate: Optional[str] = None,
        dst_rate: Optional[str] = None,
        initial_tokens: int = 0,
    ) -> Channel:
        """
        Connect "actor.port" to "actor.port".
        Missing ports are declared on the actors' types with the given rates.
        """
        src_ref = _split_ref(src)
        dst_ref = _split_ref(dst)
        self._ensure_port(src_ref, PortDir.OUT, src_rate)
        self._ensure_port(dst_ref, PortDir.IN, dst_rate)
        channel = self.graph.add_channel(src_ref, dst_ref, initial_tokens=initial_tokens)
        logger.debug("Connected {channel}", channel=str(channel))
        return channel

    def _ensure_port(self, ref: Tuple[str, str], direction: PortDir, rate: Optional[str]) -> Port:
        func = self.graph.get_actor(ref[0]).func
        if not self.graph.has_port(func, ref[1]):
            return self.graph.add_port(func, ref[1], direction, rate)
        port = self.graph.get_port(func, ref[1])
        if rate is not None and port.rate != rate:
            port.set_rate(rate)
        return port

    def modify(self, actor_name: str, parameter: str, period: str, value_kind: str = "int") -> "Application":
        """Declare that the type of `actor_name` sets `parameter` once every `period` of its firings."""
        func = self.graph.get_actor(actor_name).func
        self.graph.add_modifier(func, parameter, value_kind, period)
        return self

    def analyze(self, config: Optional[CompilerConfig] = None) -> AnalysisReport:
        self.report = SpdfAnalyzer(self.graph, config).run()
        if self.report.ok:
            logger.info("\n{report}", report=str(self.report))
        else:
            logger.error("\n{report}", report=str(self.report))
        return self.report

    @property
    def solutions(self) -> Solutions:
        if self.report is None:
            raise RuntimeError("Application has not been analyzed")
        return self.report.get_solutions()
