"""
Output modules for fasttrace
"""

from .console import ConsoleOutput

__all__ = ['ConsoleOutput']
