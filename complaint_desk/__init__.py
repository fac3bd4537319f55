"""
Complaint desk: freshness-ordered, cached view over the school complaint feed
"""
__version__ = "1.0.0"
