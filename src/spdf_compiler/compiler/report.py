from typing import List, Optional

from spdf_compiler.analysis.solutions import Solutions
from spdf_compiler.compiler.pipeline import Diagnostic, DiagnosticSeverity
from spdf_compiler.ir.graph import Graph


class CompilationReport:
    def __init__(self, graph: Graph, diagnostics: List[Diagnostic], solutions: Optional[Solutions] = None):
        self.graph = graph
        self.diagnostics = diagnostics
        self.solutions = solutions

    def __str__(self):
        lines = []
        lines.append("SPDF Analysis Report")
        lines.append("====================")
        lines.append(f"Actors: {self.graph.count_actors()}")
        lines.append(f"Channels: {self.graph.count_channels()}")

        errors = [d for d in self.diagnostics if d.severity == DiagnosticSeverity.ERROR]
        warnings = [d for d in self.diagnostics if d.severity == DiagnosticSeverity.WARNING]

        lines.append(f"Errors: {len(errors)}")
        lines.append(f"Warnings: {len(warnings)}")

        if self.solutions is not None:
            lines.append(f"Solutions: {self.solutions}")

        if errors:
            lines.append("\nErrors:")
            for e in errors:
                lines.append(f"  [{e.code}] {e.message} @ {e.location}")

        if warnings:
            lines.append("\nWarnings:")
            for w in warnings:
                lines.append(f"  [{w.code}] {w.message} @ {w.location}")

        return "\n".join(lines)
