import pathlib
import argparse
import ipaddress

from netaddr import EUI, AddrFormatError


def validate_path(location):
    loc = pathlib.Path(location)
    if not loc.is_file():
        raise argparse.ArgumentTypeError("File {:s} does not exist.".format(str(loc)))
    return loc


def validate_ipv4(address):
    try:
        return ipaddress.IPv4Address(address)
    except ValueError:
        raise argparse.ArgumentTypeError("Invalid IPv4 address: {:s}".format(address))


def validate_mac(address):
    try:
        return EUI(address)
    except (AddrFormatError, TypeError):
        raise argparse.ArgumentTypeError("Invalid MAC address: {:s}".format(address))


def validate_dpid(dpid):
    try:
        value = int(dpid, 0)
    except ValueError:
        raise argparse.ArgumentTypeError("Invalid datapath id: {:s}".format(dpid))
    if not 0 <= value <= 0xFFFFFFFFFFFFFFFF:
        raise argparse.ArgumentTypeError("Invalid datapath id: {:s}".format(dpid))
    return value


def validate_port(port):
    try:
        p = int(port)
    except ValueError:
        raise argparse.ArgumentTypeError("Invalid Port: {:s}".format(port))
    if p in range(1, 0x10000):
        return p
    raise argparse.ArgumentTypeError("Invalid Port: {:s}".format(port))


def validate_switch_port(port):
    try:
        p = int(port)
    except ValueError:
        raise argparse.ArgumentTypeError("Invalid switch port: {:s}".format(port))
    if p > 0:
        return p
    raise argparse.ArgumentTypeError("Invalid switch port: {:s}".format(port))


def build_parser():
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "-l", "--logLevel",
        help="Logging Level (default: %(default)s)",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        type=str
    )
    parser.add_argument(
        "-n", "--networking-data",
        help="Openstack networking data JSON file",
        type=validate_path
    )
    parser.add_argument(
        "-gw", "--gateway-dpid",
        help="Gateway switch datapath id (default: %(default)s)",
        default=1,
        type=validate_dpid
    )
    parser.add_argument(
        "-gip", "--gateway-ip",
        help="Gateway IPv4 address answering ICMP echo requests",
        type=validate_ipv4
    )
    parser.add_argument(
        "-gmac", "--gateway-mac",
        help="Gateway MAC address (default: %(default)s)",
        default=EUI("fe:00:00:00:00:01"),
        type=validate_mac
    )
    parser.add_argument(
        "-rmac", "--external-router-mac",
        help="External router MAC address (default: %(default)s)",
        default=EUI("fe:00:00:00:00:02"),
        type=validate_mac
    )
    parser.add_argument(
        "-up", "--uplink-port",
        help="Gateway switch port towards the external network (default: %(default)s)",
        default=1,
        type=validate_switch_port
    )
    parser.add_argument(
        "-tp", "--tunnel-port",
        help="Gateway switch port towards the compute nodes (default: %(default)s)",
        default=2,
        type=validate_switch_port
    )
    parser.add_argument(
        "--port-min",
        help="First NAT port (default: %(default)s)",
        default=1024,
        type=validate_port
    )
    parser.add_argument(
        "--port-max",
        help="NAT ports upper limit, excluded (default: %(default)s)",
        default=65535,
        type=validate_port
    )
    parser.add_argument(
        "--pnat-idle-timeout",
        help="PNAT flows idle timeout in seconds (default: %(default)s)",
        default=60,
        type=int
    )
    parser.add_argument(
        "-ofp", "--ofport",
        help="OpenFlow Service Port (default: %(default)s)",
        default=6653,
        type=validate_port
    )
    parser.add_argument(
        "-wsp", "--wsport",
        help="REST API Port (default: %(default)s)",
        default=8080,
        type=validate_port
    )
    return parser


def parse_arguments(args=None):
    parser = build_parser()
    parsed_args = parser.parse_args(args)
    if parsed_args.port_min >= parsed_args.port_max:
        parser.error("NAT port range is empty: {:d} >= {:d}".format(parsed_args.port_min, parsed_args.port_max))
    return parsed_args
