from .top_levels import TopLevelsReporter, render_report

__all__ = ['TopLevelsReporter', 'render_report']
