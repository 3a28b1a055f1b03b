#!/usr/bin/env python3

import argparse
import json
import logging
import sys

from rich.console import Console
from rich.table import Table
from rich.markup import escape

from classifier import is_vpn_interface
from errors import NoPrimaryInterface
from external_ip import ALTERNATE_SERVICES, DEFAULT_IPV6_SERVICES, DEFAULT_SERVICES, DEFAULT_TIMEOUT
from netutils import current_platform, get_network_info, setup_logger

logger = logging.getLogger("netcheck")


def display_results(summary, platform, console):
    """
    Prints the snapshot as tables: primary interface, every interface
    grouped by name, then the stats.
    """
    primary = summary.primary_interface

    table = Table(title="Primary Interface", show_header=False)
    table.add_column("Field", style="dim")
    table.add_column("Value", style="cyan")
    table.add_row("Interface", primary.network_type)
    table.add_row("Local IP", primary.local_ip)
    table.add_row("IP Version", primary.ip_version)
    table.add_row("MAC Address", primary.mac_address or "N/A")
    if primary.vendor is not None:
        table.add_row("Vendor", primary.vendor)
    table.add_row("Subnet Mask", primary.subnet_mask or "N/A")
    table.add_row("CIDR", primary.cidr)
    console.print(table)

    table = Table(title="All Interfaces")
    table.add_column("Interface", style="cyan", no_wrap=True)
    table.add_column("IPv4", style="green")
    table.add_column("IPv6", style="magenta")
    table.add_column("MAC Address", style="white")
    table.add_column("VPN", style="yellow")

    for name, group in summary.all_interfaces.items():
        records = ([group.ipv4] if group.ipv4 else []) + group.ipv6
        mac = next((r.mac for r in records if r.mac), "N/A")
        style = "bold" if name == primary.network_type else ""
        table.add_row(
            name,
            group.ipv4.cidr if group.ipv4 else "",
            "\n".join(r.cidr for r in group.ipv6),
            mac,
            "yes" if is_vpn_interface(name, platform) else "",
            style=style
        )
    console.print(table)

    stats = summary.stats
    table = Table(title="Stats", show_header=False)
    table.add_column("Field", style="dim")
    table.add_column("Value", style="cyan")
    table.add_row("IPv4 addresses", str(stats.ipv4_count))
    table.add_row("IPv6 addresses", str(stats.ipv6_count))
    table.add_row("Interfaces", str(len(stats.interface_types)))
    table.add_row("VPN detected", "yes" if stats.has_vpn else "no")
    console.print(table)

    if summary.external_ip:
        console.print(f"External IP: [bold green]{summary.external_ip}[/bold green]")
    if summary.external_ipv6:
        console.print(f"External IPv6: [bold green]{summary.external_ipv6}[/bold green]")
    console.print(f"[dim]Last updated: {summary.last_updated}[/dim]")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="netcheck",
        description="Snapshot of the local network interfaces and the public IP address."
    )
    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "--json",
        action="store_true",
        help="Print the full snapshot as JSON."
    )
    output.add_argument(
        "--flat",
        action="store_true",
        help="Print only the primary interface and external IP as flat JSON."
    )
    parser.add_argument(
        "--no-external-ip",
        action="store_true",
        help="Skip the public IP lookup."
    )
    parser.add_argument(
        "--service",
        action="append",
        dest="services",
        metavar="URL",
        help=(f"IP echo service to query (repeatable, default: {DEFAULT_SERVICES[0]}). "
              f"Services are tried in order until one answers, e.g. {', '.join(ALTERNATE_SERVICES)}.")
    )
    parser.add_argument(
        "--ipv6",
        action="store_true",
        help=f"Also look up the public IPv6 address ({', '.join(DEFAULT_IPV6_SERVICES)})."
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Per-request timeout in seconds for the public IP lookup (default: {DEFAULT_TIMEOUT})."
    )
    parser.add_argument(
        "--platform",
        type=str,
        default=None,
        help="Classify as if running on this platform (win32, darwin, linux). Autodetected if not provided."
    )
    parser.add_argument(
        "--no-vendor",
        action="store_true",
        help="Skip MAC address vendor lookup of the primary interface."
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging."
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write log records to this file."
    )
    return parser


def run_check(args, console):
    """Takes one snapshot and prints it. Returns the process exit status."""
    platform = current_platform(args.platform)
    try:
        summary = get_network_info(
            platform=platform,
            fetch_external=not args.no_external_ip,
            services=args.services,
            timeout=args.timeout,
            ipv6_services=DEFAULT_IPV6_SERVICES if args.ipv6 else None,
            vendor_lookup=not args.no_vendor,
        )
    except NoPrimaryInterface as e:
        Console(stderr=True).print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        return 1

    if args.json:
        console.print_json(json.dumps(summary.to_dict()))
    elif args.flat:
        console.print_json(json.dumps(summary.flat()))
    else:
        display_results(summary, platform, console)
    return 0


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logger(verbose=args.verbose, log_file=args.log_file)
    console = Console()

    try:
        return run_check(args, console)
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
