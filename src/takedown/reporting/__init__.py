from takedown.reporting.reporter import Reporter, ReportSection

__all__ = ["Reporter", "ReportSection"]
