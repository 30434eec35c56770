"""
Console output for fasttrace - one line per hop, printed as it arrives
"""

from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from ..enrichment import PTRResolver
from ..models import HopResult, ProbeResult, ProbeStatus, Target


class ConsoleOutput:
    """
    Console output for traceroute results.

    Trace lines are plain tab separated text on stdout. Errors go to
    stderr through rich.

    When a PTRResolver is given, hop addresses past the first hop are
    shown as "hostname [address]".
    """

    def __init__(self, ptr_resolver: Optional[PTRResolver] = None):
        self.console = Console(stderr=True)
        self.ptr_resolver = ptr_resolver

    def print_header(self, target: Target, max_hops: int):
        """Print trace header"""
        click.echo(f"Tracing route to {target.display}")
        click.echo(f"over a maximum of {max_hops} hops:")
        click.echo()

    def print_hop(self, hop: HopResult):
        """Print a single hop result in real-time"""
        click.echo(self.format_hop(hop))

    def format_hop(self, hop: HopResult) -> str:
        result = hop.result
        return f"{hop.hop}\t{self._format_elapsed(result)}\t\t{self._format_address(hop.hop, result)}"

    def print_max_hops_reached(self):
        click.echo("Maximum hops reached.")

    def print_error(self, message: str):
        """Print error message"""
        # Never wrapped
        self.console.print(f"[bold red]Error:[/] {escape(message)}", soft_wrap=True)

    def _format_elapsed(self, result: ProbeResult) -> str:
        if result.timed_out or result.elapsed_ms is None:
            return "*"
        return f"{int(result.elapsed_ms)} ms"

    def _format_address(self, ttl: int, result: ProbeResult) -> str:
        if result.status is ProbeStatus.TIMED_OUT:
            return "Request timed out"
        if not result.address:
            return "General failure"

        # No reverse lookup for the first hop
        if self.ptr_resolver is None or ttl <= 1:
            return result.address

        hostname = self.ptr_resolver.resolve(result.address)
        if not hostname:
            return result.address
        return f"{hostname} [{result.address}]"
