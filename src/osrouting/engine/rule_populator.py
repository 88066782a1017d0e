"""
    Forwarding rules for external connectivity.

    RulePopulator is the narrow interface the routing engine uses to install and remove rules. OpenFlowRulePopulator
    implements it with OpenFlow 1.3 messages sent to the gateway switch:

    - External rules: IPv4 traffic of a tenant segment (tunnel_id == VNI) reaching the gateway switch is sent to the
      controller, so the first packet of every outbound flow can be translated (PNAT).
    - PNAT rules: one outbound flow rewriting the source address and port to the router external IP and the allocated
      NAT port, and the inbound flow doing the reverse translation. Both expire when idle and report their removal,
      which is when the NAT port goes back to the pool.

    Flows are tagged with unique cookies, so they can be removed by cookie later on.
"""

import logging
from abc import ABC, abstractmethod
from threading import Lock

from ryu.ofproto import ether, inet
from scapy.layers.inet import IP, TCP, UDP

from osrouting.helpers import logger_module_name
from osrouting.engine.exceptions import DatapathNotAvailable

_log = logging.getLogger(logger_module_name(__file__))

ROUTING_TABLE = 0

PNAT_PRIORITY = 4000
EXTERNAL_ROUTING_PRIORITY = 2000


class RulePopulator(ABC):

    @abstractmethod
    def populate_external_rules(self, vni, router, interface):
        pass

    @abstractmethod
    def remove_external_rules(self, interface):
        pass

    @abstractmethod
    def populate_pnat_rules(self, context, vm_port, port_number, external_ip, vni):
        '''
            Returns True when the translation rules were installed, False when the flow cannot be translated.
        '''
        pass

    @abstractmethod
    def release_cookie(self, cookie):
        '''
            Forgets a removed flow. Returns the NAT port number the flow was using, or None.
        '''
        pass


class CookieAllocator(object):
    """
        Unique flow cookie ids. Released ids are recycled before new ones are created.
    """

    def __init__(self):
        self.__recycled_cookie_ids = []
        self.__cookie_id_counter = 0
        self.__lock = Lock()

    def alloc(self):
        with self.__lock:
            if len(self.__recycled_cookie_ids):
                return self.__recycled_cookie_ids.pop()
            if self.__cookie_id_counter == 0xFFFFFFFFFFFFFFFF:
                raise ValueError("No more cookies left...")
            self.__cookie_id_counter = self.__cookie_id_counter + 1
            return self.__cookie_id_counter

    def free(self, cookie_id):
        with self.__lock:
            if cookie_id <= 0:
                raise ValueError("Cookies cannot be zero or negative.")
            if cookie_id > self.__cookie_id_counter:
                raise ValueError("That cookie was not allocated.")
            if cookie_id in self.__recycled_cookie_ids:
                raise ValueError("Cookie already free.")
            self.__recycled_cookie_ids.append(cookie_id)

            while len(self.__recycled_cookie_ids) > 0:
                max_value = max(self.__recycled_cookie_ids)
                if self.__cookie_id_counter == max_value:
                    self.__recycled_cookie_ids.remove(max_value)
                    self.__cookie_id_counter = self.__cookie_id_counter - 1
                else:
                    break


class OpenFlowRulePopulator(RulePopulator):
    def __init__(self, config, get_datapath):
        assert callable(get_datapath), "get_datapath is not callable"

        self.__config = config
        self.__get_datapath = get_datapath
        self.__cookies = CookieAllocator()
        self.__lock = Lock()
        self.__external_flows = {}  # __external_flows[interface port id] = [cookie, ...]
        self.__pnat_flows = {}  # __pnat_flows[cookie] = (NAT port number, twin flow cookie)

    def __gateway_datapath(self):
        datapath = self.__get_datapath(self.__config.gateway_dpid)
        if datapath is None:
            raise DatapathNotAvailable(self.__config.gateway_dpid)
        return datapath

    def __delete_flow(self, datapath, cookie):
        ofp_parser = datapath.ofproto_parser
        ofp = datapath.ofproto
        _log.debug("Removing flow with cookie ID 0x{:x}.".format(cookie))

        datapath.send_msg(
            ofp_parser.OFPFlowMod(
                datapath=datapath,
                cookie=cookie,
                cookie_mask=0xFFFFFFFFFFFFFFFF,
                table_id=ofp.OFPTT_ALL,
                command=ofp.OFPFC_DELETE,
                out_port=ofp.OFPP_ANY,
                out_group=ofp.OFPG_ANY,
            )
        )

    def populate_external_rules(self, vni, router, interface):
        datapath = self.__gateway_datapath()
        ofp_parser = datapath.ofproto_parser
        ofp = datapath.ofproto
        cookie = self.__cookies.alloc()

        datapath.send_msg(
            ofp_parser.OFPFlowMod(
                datapath=datapath,
                cookie=cookie,
                table_id=ROUTING_TABLE,
                command=ofp.OFPFC_ADD,
                priority=EXTERNAL_ROUTING_PRIORITY,
                match=ofp_parser.OFPMatch(eth_type=ether.ETH_TYPE_IP, tunnel_id=vni),
                instructions=[
                    ofp_parser.OFPInstructionActions(
                        ofp.OFPIT_APPLY_ACTIONS,
                        [ofp_parser.OFPActionOutput(port=ofp.OFPP_CONTROLLER, max_len=ofp.OFPCML_NO_BUFFER)]
                    ),
                ]
            )
        )
        datapath.send_barrier()

        with self.__lock:
            self.__external_flows.setdefault(interface.port_id, []).append(cookie)

        _log.info(
            "External rules for router {:s} port {:s} (VNI {:d}) installed with cookie 0x{:x}".format(
                router.id, interface.port_id, vni, cookie
            )
        )

    def remove_external_rules(self, interface):
        with self.__lock:
            cookies = self.__external_flows.pop(interface.port_id, [])
        if not cookies:
            _log.debug("No external rules installed for port {:s}".format(interface.port_id))
            return

        datapath = self.__gateway_datapath()
        for cookie in cookies:
            self.__delete_flow(datapath, cookie)
            self.__cookies.free(cookie)
        datapath.send_barrier()

        _log.info("External rules for port {:s} removed".format(interface.port_id))

    def populate_pnat_rules(self, context, vm_port, port_number, external_ip, vni):
        pkt = context.parsed
        ip_layer = pkt[IP]

        if ip_layer.haslayer(TCP):
            l4_layer = ip_layer[TCP]
            ip_proto = inet.IPPROTO_TCP
            src_field, dst_field = "tcp_src", "tcp_dst"
        elif ip_layer.haslayer(UDP):
            l4_layer = ip_layer[UDP]
            ip_proto = inet.IPPROTO_UDP
            src_field, dst_field = "udp_src", "udp_dst"
        else:
            _log.warning("IP protocol {:d} cannot be port translated.".format(ip_layer.proto))
            return False

        datapath = self.__gateway_datapath()
        ofp_parser = datapath.ofproto_parser
        ofp = datapath.ofproto
        config = self.__config
        outbound_cookie = self.__cookies.alloc()
        inbound_cookie = self.__cookies.alloc()

        outbound_flow = ofp_parser.OFPFlowMod(
            datapath=datapath,
            cookie=outbound_cookie,
            table_id=ROUTING_TABLE,
            command=ofp.OFPFC_ADD,
            idle_timeout=config.pnat_idle_timeout,
            priority=PNAT_PRIORITY,
            flags=ofp.OFPFF_SEND_FLOW_REM,
            match=ofp_parser.OFPMatch(
                **{
                    "eth_type": ether.ETH_TYPE_IP,
                    "ip_proto": ip_proto,
                    "ipv4_src": ip_layer.src,
                    "ipv4_dst": ip_layer.dst,
                    src_field: l4_layer.sport,
                    dst_field: l4_layer.dport,
                }
            ),
            instructions=[
                ofp_parser.OFPInstructionActions(
                    ofp.OFPIT_APPLY_ACTIONS,
                    [
                        ofp_parser.OFPActionSetField(eth_src=str(config.gateway_mac)),
                        ofp_parser.OFPActionSetField(eth_dst=str(config.external_router_mac)),
                        ofp_parser.OFPActionSetField(ipv4_src=str(external_ip)),
                        ofp_parser.OFPActionSetField(**{src_field: port_number}),
                        ofp_parser.OFPActionOutput(port=config.uplink_port),
                    ]
                ),
            ]
        )

        inbound_flow = ofp_parser.OFPFlowMod(
            datapath=datapath,
            cookie=inbound_cookie,
            table_id=ROUTING_TABLE,
            command=ofp.OFPFC_ADD,
            idle_timeout=config.pnat_idle_timeout,
            priority=PNAT_PRIORITY,
            flags=ofp.OFPFF_SEND_FLOW_REM,
            match=ofp_parser.OFPMatch(
                **{
                    "in_port": config.uplink_port,
                    "eth_type": ether.ETH_TYPE_IP,
                    "ip_proto": ip_proto,
                    "ipv4_src": ip_layer.dst,
                    "ipv4_dst": str(external_ip),
                    src_field: l4_layer.dport,
                    dst_field: port_number,
                }
            ),
            instructions=[
                ofp_parser.OFPInstructionActions(
                    ofp.OFPIT_APPLY_ACTIONS,
                    [
                        ofp_parser.OFPActionSetField(eth_dst=str(vm_port.mac)),
                        ofp_parser.OFPActionSetField(ipv4_dst=ip_layer.src),
                        ofp_parser.OFPActionSetField(**{dst_field: l4_layer.sport}),
                        ofp_parser.OFPActionSetField(tunnel_id=vni),
                        ofp_parser.OFPActionOutput(port=config.tunnel_port),
                    ]
                ),
            ]
        )

        datapath.send_msg(outbound_flow)
        datapath.send_msg(inbound_flow)
        datapath.send_barrier()

        with self.__lock:
            self.__pnat_flows[outbound_cookie] = (port_number, inbound_cookie)
            self.__pnat_flows[inbound_cookie] = (port_number, outbound_cookie)

        # The packet that triggered the translation goes through the new flows as well
        context.reinject()

        _log.info(
            "PNAT flow {:s}:{:d} -> {:s}:{:d} translated to {:s}:{:d}".format(
                ip_layer.src, l4_layer.sport, ip_layer.dst, l4_layer.dport, str(external_ip), port_number
            )
        )
        return True

    def release_cookie(self, cookie):
        with self.__lock:
            if cookie not in self.__pnat_flows:
                return None
            (port_number, twin_cookie) = self.__pnat_flows.pop(cookie)
            self.__pnat_flows.pop(twin_cookie, None)

        datapath = self.__get_datapath(self.__config.gateway_dpid)
        if datapath is not None:
            self.__delete_flow(datapath, twin_cookie)
        self.__cookies.free(cookie)
        self.__cookies.free(twin_cookie)
        return port_number
