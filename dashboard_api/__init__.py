"""
E-Commerce Dashboard Analytics API

Pre-aggregated revenue, inventory, customer segmentation and KPI metrics
served to the dashboard from a short-lived report cache.
"""

__version__ = "1.0.0"
