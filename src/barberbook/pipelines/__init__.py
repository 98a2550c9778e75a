"""Report pipelines."""

from .report_pipeline import ReportPipeline, ReportPipelineResult, create_report_pipeline

__all__ = [
    "ReportPipeline",
    "ReportPipelineResult",
    "create_report_pipeline",
]
