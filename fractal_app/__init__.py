"""
Fractal Step Matcher - timeframe step matching and scaling engine

Matches a measured price leg against timeframe-derived reference values
(M steps built from TH, or 3xATR values) and reports which nominal timeframe
produced the closest one.
"""

__version__ = "0.1.0"
__author__ = "Fractal Team"
