"""
canvastag - tag registry and node-tag sync engine for canvas boards
"""

__version__ = "0.3.0"
