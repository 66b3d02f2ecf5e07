"""
Photo wall service: upload, list and delete photos with live updates
"""

__version__ = "1.0.0"
