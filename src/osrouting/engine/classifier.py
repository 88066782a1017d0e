import logging
from collections import namedtuple
from ipaddress import IPv4Address

from netaddr import EUI
from scapy.layers.inet import IP

from osrouting.helpers import logger_module_name
from osrouting.engine.port_allocator import FlowKey

_log = logging.getLogger(logger_module_name(__file__))

ICMP_LANE = "icmp"
L3_LANE = "l3"

ETH_TYPE_IPV4 = 0x0800
IP_PROTO_ICMP = 1


class LaneAssignment(namedtuple("LaneAssignment", ("lane", "context", "port_number", "vm_port"))):
    __slots__ = ()

    def __new__(cls, lane, context, port_number=None, vm_port=None):
        return super(LaneAssignment, cls).__new__(cls, lane, context, port_number, vm_port)


class PacketClassifier(object):
    """
        Decides which lane handles a packet-in.

        Classification only performs lookups and a NAT port allocation. Anything touching the datapaths is left to the
        lane handlers.
    """

    def __init__(self, port_allocator, networking_service):
        self.__port_allocator = port_allocator
        self.__networking_service = networking_service

    def classify(self, context):
        if context.is_handled:
            return None

        pkt = context.parsed
        if pkt.type != ETH_TYPE_IPV4 or not pkt.haslayer(IP):
            return None

        ip_layer = pkt[IP]
        if ip_layer.proto == IP_PROTO_ICMP:
            context.block()
            _log.debug("ICMP packet from {:s} to {:s} sent to the ICMP lane".format(ip_layer.src, ip_layer.dst))
            return LaneAssignment(ICMP_LANE, context)

        pkt_src_mac = EUI(pkt.src)
        pkt_ipv4_src = IPv4Address(ip_layer.src)
        pkt_ipv4_dst = IPv4Address(ip_layer.dst)

        port_number = self.__port_allocator.allocate(FlowKey(pkt_src_mac, pkt_ipv4_dst))
        vm_port = self.__networking_service.port_by_mac(pkt_src_mac, pkt_ipv4_src)
        context.block()
        _log.debug(
            "Outbound flow from {:s} ({:s}) to {:s} sent to the L3 lane with NAT port {:d}".format(
                str(pkt_src_mac), str(pkt_ipv4_src), str(pkt_ipv4_dst), port_number
            )
        )
        return LaneAssignment(L3_LANE, context, port_number, vm_port)
