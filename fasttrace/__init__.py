"""
fasttrace - A faster but not necessarily better trace util

ICMP traceroute that sends one echo request per hop and prints
each responding hop's round-trip time and address.
"""

__version__ = "1.0.0"
__author__ = "fasttrace"
