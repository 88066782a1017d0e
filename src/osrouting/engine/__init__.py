"""
    This module implements the L3 routing procedures for Openstack tenant networks. The following documentation are
    development annotations to better understand the internal procedures.

    Two kinds of events are processed:
    - Control events, coming from Openstack (through the REST API): routers created/updated/deleted and router
      interfaces added/removed. Floating IPs are accepted but left to the floating IP service.
    - Packet-In events, sent by the gateway switch for IPv4 traffic that has no translation flow yet.


    <-- Router interfaces -->
    Attached router interfaces are kept by their attachment port id. Only the first record of a port is kept; a second
    attach of the same port is ignored until the port is detached.
    When an interface is attached to a router with an external gateway and PNAT enabled, the external rules for the
    interface segment (VNI) are installed. When it is detached, they are removed.


    <-- Packet-In classification -->
    A packet already taken by another processor is left alone. Non-IPv4 packets are ignored.
      1) ICMP packets are queued in the ICMP lane. The controller answers echo requests to router addresses.
      2) Any other IPv4 packet is an outbound flow needing PNAT. A NAT port is allocated for
         (source MAC, destination IP), the VM port is resolved by source MAC and source IP, and the packet is queued in
         the L3 lane, where the translation flows are installed.

    Each lane processes its events in order, one at a time. The lanes are independent of each other.


    <-- NAT ports -->
    NAT ports are taken from [1024, 65535), lowest free port first. A port goes back to the pool when its PNAT flows
    expire (flow removed with an idle timeout), or when the translation rules could not be installed.


    <-- OpenFlow Flows Priority (gateway switch, table 0) -->
      - PNAT translation flows -> 4000
      - External routing (tunnel_id == VNI to controller) -> 2000
"""

__all__ = [
    'RoutingManager',
    'RoutingConfig',
    'NetworkingService',
    'InMemoryNetworkingService',
    'RulePopulator',
    'OpenFlowRulePopulator',
    'PacketContext',
]

from osrouting.engine.routing import RoutingManager
from osrouting.engine.config import RoutingConfig
from osrouting.engine.networking import NetworkingService, InMemoryNetworkingService
from osrouting.engine.rule_populator import RulePopulator, OpenFlowRulePopulator
from osrouting.engine.packet_context import PacketContext
