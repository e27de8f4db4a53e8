"""Tests for diagnostics collection and the doctor summary."""

from pathlib import Path

from animus_plugins.plugins.diagnostics import DiagnosticsCollector, summarize_issues
from animus_plugins.plugins.models import (
    DiagnosticLevel,
    PluginRecord,
    PluginSource,
    PluginStatus,
    StatusReport,
)


def _record(plugin_id, status, error=None):
    return PluginRecord(
        id=plugin_id,
        display_name=plugin_id,
        status=status,
        source=PluginSource.ARCHIVE_INSTALL,
        origin=f"/ext/{plugin_id}",
        error=error,
    )


class TestDiagnosticsCollector:
    def test_collects_in_order(self):
        collector = DiagnosticsCollector()
        collector.info("one", plugin_id="a")
        collector.warn("two")
        collector.error("three", plugin_id="c")

        levels = [d.level for d in collector.diagnostics]
        assert levels == [DiagnosticLevel.INFO, DiagnosticLevel.WARN, DiagnosticLevel.ERROR]
        assert collector.diagnostics[1].plugin_id is None
        assert len(collector) == 3

    def test_diagnostics_is_a_copy(self):
        collector = DiagnosticsCollector()
        collector.info("x")
        collector.diagnostics.clear()
        assert len(collector) == 1


class TestSummarizeIssues:
    def test_clean_report(self):
        collector = DiagnosticsCollector()
        collector.info("disabled in config", plugin_id="a")
        collector.warn("shadowed")
        report = StatusReport(
            extensions_dir=Path("/ext"),
            plugins=[_record("a", PluginStatus.LOADED), _record("b", PluginStatus.DISABLED)],
            diagnostics=collector.diagnostics,
        )

        summary = summarize_issues(report)

        assert summary.has_issues is False
        assert summary.errors == []
        assert summary.diagnostics == []

    def test_errors_and_error_diagnostics(self):
        collector = DiagnosticsCollector()
        collector.warn("minor")
        collector.error("broken manifest", plugin_id="b")
        report = StatusReport(
            extensions_dir=Path("/ext"),
            plugins=[_record("a", PluginStatus.LOADED), _record("b", PluginStatus.ERROR, "bad")],
            diagnostics=collector.diagnostics,
        )

        summary = summarize_issues(report)

        assert summary.has_issues is True
        assert [r.id for r in summary.errors] == ["b"]
        assert [d.message for d in summary.diagnostics] == ["broken manifest"]
