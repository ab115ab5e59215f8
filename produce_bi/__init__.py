"""
Produce BI Core

Revenue trends, category breakdowns and A/B/C customer and product scoring
for a wholesale fruit and vegetable business.
"""

__version__ = "1.0.0"
