"""
fwgen - Default firewall ruleset compiler.

Compiles a declarative firewall defaults configuration into
iptables-restore streams and tears down exactly what it created.
"""

__version__ = "1.0.0"
__author__ = "fwgen developers"
