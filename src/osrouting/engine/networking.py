"""
    Read-only access to the Openstack networking data (ports, networks and routers).

    The routing engine never caches what it gets from here: every operation queries the provider again.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from eventlet.semaphore import BoundedSemaphore

from osrouting.helpers import logger_module_name
from osrouting.engine.entities import OpenstackPort, OpenstackNetwork, Router
from osrouting.engine.exceptions import PortNotFound, NetworkNotFound

_log = logging.getLogger(logger_module_name(__file__))


class NetworkingService(ABC):

    @abstractmethod
    def port(self, port_id):
        pass

    @abstractmethod
    def ports(self, tenant_id=""):
        pass

    @abstractmethod
    def network(self, network_id):
        pass

    @abstractmethod
    def routers(self):
        pass

    def port_by_mac(self, mac, ipv4):
        '''
            Finds the port owning the MAC address whose first fixed IP is ipv4.
            Returns None when the MAC is unknown or the address does not match.
        '''
        port = next((p for p in self.ports("") if p.mac == mac), None)
        if port is None:
            return None
        return port if port.ipv4 == ipv4 else None

    def router(self, router_id):
        return next((r for r in self.routers() if r.id == router_id), None)

    def router_of_tenant(self, tenant_id):
        return next((r for r in self.routers() if r.tenant_id == tenant_id), None)

    def vni_of_port(self, port_id):
        return int(self.network(self.port(port_id).network_id).segment_id)


class InMemoryNetworkingService(NetworkingService):
    def __init__(self):
        self.__semaphore = BoundedSemaphore()
        self.__ports = {}
        self.__networks = {}
        self.__routers = {}

    def port(self, port_id):
        with self.__semaphore:
            try:
                return self.__ports[port_id]
            except KeyError:
                raise PortNotFound(port_id)

    def ports(self, tenant_id=""):
        with self.__semaphore:
            if tenant_id:
                return tuple(p for p in self.__ports.values() if p.tenant_id == tenant_id)
            return tuple(self.__ports.values())

    def network(self, network_id):
        with self.__semaphore:
            try:
                return self.__networks[network_id]
            except KeyError:
                raise NetworkNotFound(network_id)

    def routers(self):
        with self.__semaphore:
            return tuple(self.__routers.values())

    def register_port(self, port):
        assert isinstance(port, OpenstackPort), "port is not OpenstackPort. Got {:s}".format(repr(port))
        with self.__semaphore:
            self.__ports[port.id] = port

    def register_network(self, network):
        assert isinstance(network, OpenstackNetwork), "network is not OpenstackNetwork. Got {:s}".format(
            repr(network)
        )
        with self.__semaphore:
            self.__networks[network.id] = network

    def register_router(self, router):
        assert isinstance(router, Router), "router is not Router. Got {:s}".format(repr(router))
        with self.__semaphore:
            self.__routers[router.id] = router

    def remove_router(self, router_id):
        with self.__semaphore:
            return self.__routers.pop(router_id, None)

    def load(self, document):
        '''
            Loads Neutron shaped resources: {"ports": [...], "networks": [...], "routers": [...]}
        '''
        assert isinstance(document, dict), "document is not dict. Got {:s}".format(repr(document))

        for info in document.get("networks", ()):
            self.register_network(OpenstackNetwork.from_dict(info))
        for info in document.get("ports", ()):
            self.register_port(OpenstackPort.from_dict(info))
        for info in document.get("routers", ()):
            self.register_router(Router.from_dict(info))

        _log.info(
            "Networking data loaded: {:d} networks, {:d} ports, {:d} routers".format(
                len(document.get("networks", ())), len(document.get("ports", ())), len(document.get("routers", ()))
            )
        )

    def load_json(self, location):
        location = Path(location)
        if not location.exists():
            raise FileNotFoundError("Networking data file does not exist: {:s}".format(str(location)))
        with location.open("r") as f:
            self.load(json.load(f))
