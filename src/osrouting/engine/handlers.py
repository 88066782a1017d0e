import logging
from ipaddress import IPv4Address

from netaddr import mac_unix_expanded
from scapy.packet import Raw
from scapy.layers.l2 import Ether
from scapy.layers.inet import IP, ICMP

from osrouting.helpers import logger_module_name
from osrouting.engine.external_connectivity import external_ip

_log = logging.getLogger(logger_module_name(__file__))

ICMP_ECHO_REQUEST = 8


class IcmpHandler(object):
    """
        Answers ICMP echo requests sent to a router external address or to the gateway address.
    """

    def __init__(self, networking_service, config):
        self.__networking_service = networking_service
        self.__config = config

    def __router_addresses(self):
        addresses = set()
        if self.__config.gateway_ip is not None:
            addresses.add(self.__config.gateway_ip)
        for router in self.__networking_service.routers():
            if router.gateway is not None:
                addresses.update(router.gateway.external_fixed_ips.values())
        return addresses

    def __call__(self, assignment):
        context = assignment.context
        pkt = context.parsed
        ip_layer = pkt[IP]
        icmp_layer = pkt[ICMP]
        pkt_ipv4_dst = IPv4Address(ip_layer.dst)

        if icmp_layer.type != ICMP_ECHO_REQUEST or pkt_ipv4_dst not in self.__router_addresses():
            _log.debug(
                "ICMP packet type {:d} from {:s} to {:s} dropped.".format(icmp_layer.type, ip_layer.src, ip_layer.dst)
            )
            return

        icmp_reply = Ether(src=self.__config.gateway_mac.format(mac_unix_expanded), dst=pkt.src) \
            / IP(src=ip_layer.dst, dst=ip_layer.src) \
            / ICMP(
                type="echo-reply",
                id=icmp_layer.id,
                seq=icmp_layer.seq,
            )
        if pkt.haslayer(Raw):
            icmp_reply = icmp_reply / Raw(pkt[Raw].load)

        context.send(icmp_reply)
        _log.debug("ICMP echo reply sent from {:s} to {:s}".format(ip_layer.dst, ip_layer.src))


class PnatHandler(object):
    """
        Installs the translation rules of an outbound flow. The NAT port allocated by the classifier goes back to the
        pool whenever the rules are not installed.
    """

    def __init__(self, networking_service, rule_populator, port_allocator):
        self.__networking_service = networking_service
        self.__rule_populator = rule_populator
        self.__port_allocator = port_allocator

    def __call__(self, assignment):
        vm_port = assignment.vm_port
        port_number = assignment.port_number

        if vm_port is None:
            _log.warning("Outbound packet does not belong to a known VM port. NAT port {:d} released.".format(
                port_number
            ))
            self.__port_allocator.release(port_number)
            return

        router = self.__networking_service.router_of_tenant(vm_port.tenant_id)
        ip = external_ip(router) if router is not None else None
        if ip is None or not router.gateway.enable_pnat:
            _log.warning(
                "Tenant {:s} has no router with PNAT enabled. NAT port {:d} released.".format(
                    vm_port.tenant_id, port_number
                )
            )
            self.__port_allocator.release(port_number)
            return

        installed = False
        try:
            vni = self.__networking_service.vni_of_port(vm_port.id)
            installed = self.__rule_populator.populate_pnat_rules(
                assignment.context, vm_port, port_number, ip, vni
            )
        finally:
            if not installed:
                self.__port_allocator.release(port_number)
