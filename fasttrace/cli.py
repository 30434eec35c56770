import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .enrichment import PTRResolver
from .models import ProbeConfig
from .output import ConsoleOutput
from .probe import Tracer, create_icmp_probe
from .resolver import ResolutionError, resolve_target


console = Console(stderr=True)
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Route log records through rich on stderr"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, markup=False)],
        force=True,
    )


def _greater_than_zero(ctx: click.Context, param: click.Parameter, value: int) -> int:
    if value <= 0:
        raise click.BadParameter(f"{param.name} must be greater than 0")
    return value


@click.command()
@click.argument('address', default='1.1.1.1', required=False)
@click.option('--hops', default=30, type=int, callback=_greater_than_zero,
              help='Maximum number of hops to trace (default: 30)')
@click.option('-t', '--timeout', default=1000, type=int, callback=_greater_than_zero,
              help='Timeout in milliseconds to wait for each reply (default: 1000)')
@click.option('--no-dns', is_flag=True,
              help='Do not resolve addresses to hostnames')
@click.option('-v', '--verbose', is_flag=True,
              help='Enable debug logging')
@click.version_option(version=__version__)
def main(address: str, hops: int, timeout: int, no_dns: bool, verbose: bool):
    """
    A faster but not necessarily better trace util.

    Trace the route to ADDRESS (IP address or hostname, default 1.1.1.1)
    with one ICMP echo request per hop.

    Examples:

        fasttrace example.com

        fasttrace 8.8.8.8 --hops 15 -t 500 --no-dns
    """
    setup_logging(verbose)

    config = ProbeConfig(
        timeout_ms=timeout,
        max_hops=hops,
        resolve_hostnames=not no_dns
    )
    output = ConsoleOutput(
        ptr_resolver=PTRResolver() if config.resolve_hostnames else None
    )

    try:
        try:
            target = resolve_target(address, resolve_hostname=config.resolve_hostnames)
        except ResolutionError as e:
            output.print_error(str(e))
            sys.exit(1)

        output.print_header(target, config.max_hops)

        tracer = Tracer(config, probe_factory=create_icmp_probe)
        result = tracer.trace(target, on_hop=output.print_hop)

        if not result.reached:
            output.print_max_hops_reached()

    except (PermissionError, ValueError) as e:
        output.print_error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/]")
        sys.exit(130)
    except Exception as e:
        output.print_error(f"Unexpected error: {e}")
        logger.debug("Unexpected error", exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
