"""
CartSync

Storefront client that keeps a server-held shopping cart in step with the
product catalog.
"""

__version__ = "0.1.0"
