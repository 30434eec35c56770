"""
Enrichment modules for fasttrace
"""

from .ptr_resolver import PTRResolver

__all__ = ['PTRResolver']
