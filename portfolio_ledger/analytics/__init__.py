"""
Portfolio Analytics Components

- Valuation: current value, invested capital and ROI snapshots
- Performance: drawdown, volatility ratio, win rate and period returns
"""

from .valuation import ValuationEngine
from .performance import PerformanceAnalyzer, PerformanceStats

__all__ = ['ValuationEngine', 'PerformanceAnalyzer', 'PerformanceStats']
