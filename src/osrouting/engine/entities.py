from abc import ABC, abstractmethod
from ipaddress import IPv4Address

from netaddr import EUI


class Entity(ABC):

    def __repr__(self):
        return "<{:s} type> object at address 0x{:X}".format(type(self).__name__, id(self))

    def __hash__(self):
        return hash((type(self).__name__, self.id))

    @abstractmethod
    def __str__(self):
        pass

    @property
    @abstractmethod
    def id(self):
        pass


def _fixed_ips_from_list(fixed_ips):
    # Neutron delivers fixed IPs as [{"subnet_id": ..., "ip_address": ...}, ...]
    result = {}
    for fixed_ip in fixed_ips or ():
        address = IPv4Address(fixed_ip["ip_address"])
        result[fixed_ip.get("subnet_id", str(address))] = address
    return result


class ExternalGateway(object):
    def __init__(self, network_id, external_fixed_ips, enable_pnat):
        assert isinstance(network_id, (str, type(None))), "network_id is not str nor None. Got {:s}".format(
            repr(network_id)
        )
        assert isinstance(external_fixed_ips, dict), "external_fixed_ips is not dict. Got {:s}".format(
            repr(external_fixed_ips)
        )
        assert all((isinstance(ip, IPv4Address) for ip in external_fixed_ips.values())), \
            "external_fixed_ips values expected to be IPv4Address"
        assert isinstance(enable_pnat, bool), "enable_pnat is not bool. Got {:s}".format(repr(enable_pnat))

        self.__network_id = network_id
        self.__external_fixed_ips = dict(external_fixed_ips)
        self.__enable_pnat = enable_pnat

    def __str__(self):
        return "<ExternalGateway network={:s} ips={:s} pnat={:s}>".format(
            str(self.__network_id),
            str(tuple(str(ip) for ip in self.__external_fixed_ips.values())),
            str(self.__enable_pnat)
        )

    @property
    def network_id(self):
        return self.__network_id

    @property
    def external_fixed_ips(self):
        return dict(self.__external_fixed_ips)

    @property
    def enable_pnat(self):
        return self.__enable_pnat

    @classmethod
    def from_dict(cls, info):
        return cls(
            network_id=info.get("network_id"),
            external_fixed_ips=_fixed_ips_from_list(info.get("external_fixed_ips")),
            enable_pnat=bool(info.get("enable_snat", info.get("enable_pnat", False)))
        )


class Router(Entity):
    def __init__(self, id, tenant_id, gateway=None, name=""):
        assert isinstance(id, str), "id is not str. Got {:s}".format(repr(id))
        assert isinstance(tenant_id, str), "tenant_id is not str. Got {:s}".format(repr(tenant_id))
        assert isinstance(gateway, (ExternalGateway, type(None))), \
            "gateway is not ExternalGateway nor None. Got {:s}".format(repr(gateway))

        self.__id = id
        self.__tenant_id = tenant_id
        self.__gateway = gateway
        self.__name = name

    def __str__(self):
        return "<Router type> object at address 0x{:x}: id={:s} tenant={:s}".format(
            id(self), self.__id, self.__tenant_id
        )

    @property
    def id(self):
        return self.__id

    @property
    def tenant_id(self):
        return self.__tenant_id

    @property
    def name(self):
        return self.__name

    @property
    def gateway(self):
        return self.__gateway

    @classmethod
    def from_dict(cls, info):
        gateway_info = info.get("external_gateway_info")
        return cls(
            id=info["id"],
            tenant_id=info.get("tenant_id", ""),
            gateway=ExternalGateway.from_dict(gateway_info) if gateway_info else None,
            name=info.get("name", "")
        )


class RouterInterface(Entity):
    def __init__(self, id, router_id, tenant_id, port_id, subnet_id=None):
        assert isinstance(id, str), "id is not str. Got {:s}".format(repr(id))
        assert isinstance(router_id, str), "router_id is not str. Got {:s}".format(repr(router_id))
        assert isinstance(tenant_id, str), "tenant_id is not str. Got {:s}".format(repr(tenant_id))
        assert isinstance(port_id, str), "port_id is not str. Got {:s}".format(repr(port_id))

        self.__id = id
        self.__router_id = router_id
        self.__tenant_id = tenant_id
        self.__port_id = port_id
        self.__subnet_id = subnet_id

    def __str__(self):
        return "<RouterInterface type> object at address 0x{:x}: router={:s} port={:s}".format(
            id(self), self.__router_id, self.__port_id
        )

    @property
    def id(self):
        return self.__id

    @property
    def router_id(self):
        return self.__router_id

    @property
    def tenant_id(self):
        return self.__tenant_id

    @property
    def port_id(self):
        return self.__port_id

    @property
    def subnet_id(self):
        return self.__subnet_id

    @classmethod
    def from_dict(cls, info, router_id=None):
        # Neutron identifies a router interface by the router it belongs to
        router_id = router_id if router_id else info.get("router_id", info.get("id"))
        return cls(
            id=info.get("id", router_id),
            router_id=router_id,
            tenant_id=info.get("tenant_id", ""),
            port_id=info["port_id"],
            subnet_id=info.get("subnet_id")
        )


class OpenstackPort(Entity):
    def __init__(self, id, network_id, mac, fixed_ips, tenant_id="", device_id="", device_owner=""):
        assert isinstance(id, str), "id is not str. Got {:s}".format(repr(id))
        assert isinstance(network_id, str), "network_id is not str. Got {:s}".format(repr(network_id))
        assert isinstance(mac, EUI), "mac is not EUI. Got {:s}".format(repr(mac))
        assert isinstance(fixed_ips, dict), "fixed_ips is not dict. Got {:s}".format(repr(fixed_ips))

        self.__id = id
        self.__network_id = network_id
        self.__mac = mac
        self.__fixed_ips = dict(fixed_ips)
        self.__tenant_id = tenant_id
        self.__device_id = device_id
        self.__device_owner = device_owner

    def __str__(self):
        return "<OpenstackPort type> object at address 0x{:x}: id={:s} mac={:s}".format(
            id(self), self.__id, str(self.__mac)
        )

    @property
    def id(self):
        return self.__id

    @property
    def network_id(self):
        return self.__network_id

    @property
    def mac(self):
        return self.__mac

    @property
    def fixed_ips(self):
        return dict(self.__fixed_ips)

    @property
    def tenant_id(self):
        return self.__tenant_id

    @property
    def device_id(self):
        return self.__device_id

    @property
    def device_owner(self):
        return self.__device_owner

    @property
    def ipv4(self):
        '''
            First fixed IPv4 address of the port, or None
        '''
        return next(iter(self.__fixed_ips.values()), None)

    @classmethod
    def from_dict(cls, info):
        return cls(
            id=info["id"],
            network_id=info["network_id"],
            mac=EUI(info["mac_address"]),
            fixed_ips=_fixed_ips_from_list(info.get("fixed_ips")),
            tenant_id=info.get("tenant_id", ""),
            device_id=info.get("device_id", ""),
            device_owner=info.get("device_owner", "")
        )


class OpenstackNetwork(Entity):
    def __init__(self, id, segment_id, tenant_id="", name=""):
        assert isinstance(id, str), "id is not str. Got {:s}".format(repr(id))
        assert isinstance(segment_id, (str, int)), "segment_id is not str nor int. Got {:s}".format(
            repr(segment_id)
        )

        self.__id = id
        self.__segment_id = str(segment_id)
        self.__tenant_id = tenant_id
        self.__name = name

    def __str__(self):
        return "<OpenstackNetwork type> object at address 0x{:x}: id={:s} segment={:s}".format(
            id(self), self.__id, self.__segment_id
        )

    @property
    def id(self):
        return self.__id

    @property
    def segment_id(self):
        return self.__segment_id

    @property
    def tenant_id(self):
        return self.__tenant_id

    @property
    def name(self):
        return self.__name

    @classmethod
    def from_dict(cls, info):
        return cls(
            id=info["id"],
            segment_id=info.get("provider:segmentation_id", info.get("segment_id")),
            tenant_id=info.get("tenant_id", ""),
            name=info.get("name", "")
        )


class FloatingIP(Entity):
    def __init__(self, id, tenant_id, floating_ip, fixed_ip=None, port_id=None, router_id=None):
        assert isinstance(id, str), "id is not str. Got {:s}".format(repr(id))
        assert isinstance(floating_ip, IPv4Address), "floating_ip is not IPv4Address. Got {:s}".format(
            repr(floating_ip)
        )
        assert isinstance(fixed_ip, (IPv4Address, type(None))), "fixed_ip is not IPv4Address nor None"

        self.__id = id
        self.__tenant_id = tenant_id
        self.__floating_ip = floating_ip
        self.__fixed_ip = fixed_ip
        self.__port_id = port_id
        self.__router_id = router_id

    def __str__(self):
        return "<FloatingIP type> object at address 0x{:x}: id={:s} address={:s}".format(
            id(self), self.__id, str(self.__floating_ip)
        )

    @property
    def id(self):
        return self.__id

    @property
    def tenant_id(self):
        return self.__tenant_id

    @property
    def floating_ip(self):
        return self.__floating_ip

    @property
    def fixed_ip(self):
        return self.__fixed_ip

    @property
    def port_id(self):
        return self.__port_id

    @property
    def router_id(self):
        return self.__router_id

    @classmethod
    def from_dict(cls, info):
        fixed_ip = info.get("fixed_ip_address")
        return cls(
            id=info["id"],
            tenant_id=info.get("tenant_id", ""),
            floating_ip=IPv4Address(info["floating_ip_address"]),
            fixed_ip=IPv4Address(fixed_ip) if fixed_ip else None,
            port_id=info.get("port_id"),
            router_id=info.get("router_id")
        )
