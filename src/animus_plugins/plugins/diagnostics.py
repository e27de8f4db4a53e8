"""Diagnostics collection for plugin status reports."""

from __future__ import annotations

from .models import (
    Diagnostic,
    DiagnosticLevel,
    DoctorSummary,
    PluginRecord,
    PluginStatus,
    StatusReport,
)


class DiagnosticsCollector:
    """Accumulates non-fatal findings during a status scan."""

    def __init__(self):
        self._diagnostics: list[Diagnostic] = []

    def add(self, level: DiagnosticLevel, message: str, plugin_id: str | None = None) -> None:
        self._diagnostics.append(Diagnostic(level=level, plugin_id=plugin_id, message=message))

    def info(self, message: str, plugin_id: str | None = None) -> None:
        self.add(DiagnosticLevel.INFO, message, plugin_id)

    def warn(self, message: str, plugin_id: str | None = None) -> None:
        self.add(DiagnosticLevel.WARN, message, plugin_id)

    def error(self, message: str, plugin_id: str | None = None) -> None:
        self.add(DiagnosticLevel.ERROR, message, plugin_id)

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return list(self._diagnostics)

    def __len__(self) -> int:
        return len(self._diagnostics)


def error_records(report: StatusReport) -> list[PluginRecord]:
    return [p for p in report.plugins if p.status == PluginStatus.ERROR]


def error_diagnostics(report: StatusReport) -> list[Diagnostic]:
    return [d for d in report.diagnostics if d.level == DiagnosticLevel.ERROR]


def summarize_issues(report: StatusReport) -> DoctorSummary:
    """Reduce a report to its error-level records and diagnostics. No I/O."""
    return DoctorSummary(errors=error_records(report), diagnostics=error_diagnostics(report))
