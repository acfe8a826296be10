"""
Support Desk AI - ticket drafting pipeline backend
"""
__version__ = "1.0.0"
