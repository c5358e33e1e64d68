from spdf_compiler.logging_config import configure_logging

configure_logging()

from spdf_compiler.analysis.analyzer import AnalysisReport, SpdfAnalyzer  # noqa: E402
from spdf_compiler.api import Application  # noqa: E402
from spdf_compiler.compiler.pipeline import CompilerConfig  # noqa: E402
from spdf_compiler.core.expression import Expression  # noqa: E402
from spdf_compiler.core.fraction import Fraction  # noqa: E402
from spdf_compiler.core.types import PortDir  # noqa: E402
from spdf_compiler.ir.graph import Graph  # noqa: E402

__all__ = [
    "AnalysisReport",
    "Application",
    "CompilerConfig",
    "Expression",
    "Fraction",
    "Graph",
    "PortDir",
    "SpdfAnalyzer",
]
