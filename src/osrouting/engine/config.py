from ipaddress import IPv4Address

from netaddr import EUI

from osrouting.engine.port_allocator import NAT_PORT_MIN, NAT_PORT_MAX

default_configs = {
    "gateway_dpid": 1,
    "gateway_ip": None,
    "gateway_mac": EUI("fe:00:00:00:00:01"),
    "external_router_mac": EUI("fe:00:00:00:00:02"),
    "uplink_port": 1,
    "tunnel_port": 2,
    "port_min": NAT_PORT_MIN,
    "port_max": NAT_PORT_MAX,
    "pnat_idle_timeout": 60,
    "networking_data": None,
}


class RoutingConfig(object):
    """
        Routing engine configuration. Unknown keys are refused, missing keys take the values of default_configs.

        gateway_dpid: datapath id of the gateway switch holding the external rules
        gateway_ip: address answered by the ICMP responder besides the routers external IPs
        gateway_mac / external_router_mac: MAC addresses used when translating towards the uplink
        uplink_port / tunnel_port: gateway switch ports towards the external network and towards the compute nodes
        port_min / port_max: NAT port pool range, max excluded
        pnat_idle_timeout: idle timeout (seconds) of PNAT flows
        networking_data: JSON file feeding the in-memory networking data provider
    """

    def __init__(self, **kwargs):
        unknown = tuple(filter((lambda key: key not in default_configs), kwargs))
        if unknown:
            raise TypeError("Unknown configuration keys: {:s}".format(", ".join(unknown)))

        values = dict(default_configs)
        values.update(kwargs)

        assert isinstance(values["gateway_dpid"], int) and 0 <= values["gateway_dpid"] <= 0xFFFFFFFFFFFFFFFF, \
            "gateway_dpid is not a valid datapath id. Got {:s}".format(repr(values["gateway_dpid"]))
        assert isinstance(values["gateway_ip"], (IPv4Address, type(None))), "gateway_ip is not IPv4Address nor None"
        assert isinstance(values["gateway_mac"], EUI), "gateway_mac is not EUI"
        assert isinstance(values["external_router_mac"], EUI), "external_router_mac is not EUI"
        assert isinstance(values["uplink_port"], int) and values["uplink_port"] > 0, "uplink_port is not valid"
        assert isinstance(values["tunnel_port"], int) and values["tunnel_port"] > 0, "tunnel_port is not valid"
        assert 0 < values["port_min"] < values["port_max"] <= 0x10000, "NAT port range is not valid"
        assert isinstance(values["pnat_idle_timeout"], int) and values["pnat_idle_timeout"] >= 0, \
            "pnat_idle_timeout is not valid"

        self.__values = values

    def __getattr__(self, item):
        try:
            return self.__dict__["_RoutingConfig__values"][item]
        except KeyError:
            raise AttributeError(item)

    def __str__(self):
        return "".join(list(("  {}: {}\n".format(key, self.__values[key]) for key in sorted(self.__values))))
