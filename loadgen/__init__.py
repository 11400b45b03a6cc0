"""
Concurrent load driver for a remote namespaced data service.
"""

__version__ = "0.1.0"
