"""
OrderDesk - client for the user, order and document services
"""

__version__ = "1.0.0"
