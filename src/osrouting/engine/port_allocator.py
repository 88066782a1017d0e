"""
    NAT port pool used for outbound PNAT flows.

    Every port number in [port_min, port_max) is either free or bound to exactly one flow key. Allocation is first-fit:
    the lowest free port number is always handed out first. A released port becomes the first candidate again if it is
    the lowest free one.
"""

import logging
import heapq
from collections import namedtuple
from threading import Lock

from netaddr import EUI
from ipaddress import IPv4Address

from osrouting.helpers import logger_module_name
from osrouting.engine.exceptions import PortPoolExhausted, PortNotAllocated

_log = logging.getLogger(logger_module_name(__file__))

NAT_PORT_MIN = 1024
NAT_PORT_MAX = 65535  # exclusive


class FlowKey(namedtuple("FlowKey", ("mac", "destination"))):
    __slots__ = ()

    def __new__(cls, mac, destination):
        assert isinstance(mac, EUI), "mac is not EUI. Got {:s}".format(repr(mac))
        assert isinstance(destination, IPv4Address), "destination is not IPv4Address. Got {:s}".format(
            repr(destination)
        )
        return super(FlowKey, cls).__new__(cls, mac, destination)

    def __str__(self):
        return "{:s}:{:s}".format(str(self.mac), str(self.destination))


class PortAllocator(object):
    def __init__(self, port_min=NAT_PORT_MIN, port_max=NAT_PORT_MAX):
        assert isinstance(port_min, int) and isinstance(port_max, int), "port range limits must be int"
        assert 0 < port_min < port_max <= 0x10000, "invalid port range [{:d}, {:d})".format(port_min, port_max)

        self.__port_min = port_min
        self.__port_max = port_max
        self.__lock = Lock()
        self.__bindings = {}  # __bindings[port number] = FlowKey
        self.__free_ports = list(range(port_min, port_max))  # already a valid heap

    @property
    def port_range(self):
        return self.__port_min, self.__port_max

    @property
    def free_count(self):
        with self.__lock:
            return len(self.__free_ports)

    def allocate(self, flow_key):
        assert isinstance(flow_key, FlowKey), "flow_key is not FlowKey. Got {:s}".format(repr(flow_key))

        with self.__lock:
            if not self.__free_ports:
                _log.error("NAT port pool exhausted while allocating for flow {:s}".format(str(flow_key)))
                raise PortPoolExhausted()
            port_number = heapq.heappop(self.__free_ports)
            self.__bindings[port_number] = flow_key

        _log.debug("NAT port {:d} bound to flow {:s}".format(port_number, str(flow_key)))
        return port_number

    def release(self, port_number):
        assert isinstance(port_number, int), "port_number is not int. Got {:s}".format(repr(port_number))

        with self.__lock:
            if port_number not in self.__bindings:
                raise PortNotAllocated(port_number)
            flow_key = self.__bindings.pop(port_number)
            heapq.heappush(self.__free_ports, port_number)

        _log.debug("NAT port {:d} released from flow {:s}".format(port_number, str(flow_key)))
        return flow_key

    def lookup(self, port_number):
        with self.__lock:
            return self.__bindings.get(port_number)

    def bindings(self):
        with self.__lock:
            return dict(self.__bindings)

    def __contains__(self, port_number):
        with self.__lock:
            return port_number in self.__bindings
