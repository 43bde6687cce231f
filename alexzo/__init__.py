"""
Alexzo API
Public search proxy, API key gateway and lead capture backend
"""

__version__ = "1.0.0"
