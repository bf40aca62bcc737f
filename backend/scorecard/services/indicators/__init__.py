"""Indicator Services"""

from .indicator_service import IndicatorService

__all__ = ['IndicatorService']
