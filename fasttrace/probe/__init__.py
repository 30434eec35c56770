"""
Probe engines for fasttrace
"""

from .base import BaseProbe
from .icmp import LinuxICMPProbe, WindowsICMPProbe, create_icmp_probe
from .tracer import Tracer

__all__ = ['BaseProbe', 'LinuxICMPProbe', 'WindowsICMPProbe', 'create_icmp_probe', 'Tracer']
