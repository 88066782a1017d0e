import logging

from osrouting.helpers import logger_module_name
from osrouting.engine.entities import Router, RouterInterface, FloatingIP
from osrouting.engine.config import RoutingConfig
from osrouting.engine.networking import NetworkingService
from osrouting.engine.rule_populator import RulePopulator
from osrouting.engine.port_allocator import PortAllocator
from osrouting.engine.router_interfaces import RouterInterfaceRegistry
from osrouting.engine.external_connectivity import ExternalConnectivityChecker
from osrouting.engine.classifier import PacketClassifier, ICMP_LANE, L3_LANE
from osrouting.engine.dispatcher import EventDispatcher
from osrouting.engine.handlers import IcmpHandler, PnatHandler
from osrouting.engine.exceptions import PortNotAllocated, DispatcherNotRunning

_log = logging.getLogger(logger_module_name(__file__))


class RoutingManager(object):
    """
        L3 routing service for Openstack tenants.

        Router and router interface events coming from Openstack keep the external connectivity rules up to date,
        while packet-ins of outbound traffic are translated (PNAT) and ICMP requests to the routers are answered.
    """

    def __init__(self, config, networking_service, rule_populator):
        assert isinstance(config, RoutingConfig), "config is not RoutingConfig. Got {:s}".format(repr(config))
        assert isinstance(networking_service, NetworkingService), \
            "networking_service is not NetworkingService. Got {:s}".format(repr(networking_service))
        assert isinstance(rule_populator, RulePopulator), \
            "rule_populator is not RulePopulator. Got {:s}".format(repr(rule_populator))

        self.__config = config
        self.__networking_service = networking_service
        self.__rule_populator = rule_populator
        self.__port_allocator = PortAllocator(config.port_min, config.port_max)
        self.__registry = RouterInterfaceRegistry(rule_populator)
        self.__checker = ExternalConnectivityChecker(networking_service, rule_populator)
        self.__classifier = PacketClassifier(self.__port_allocator, networking_service)
        self.__dispatcher = EventDispatcher({
            ICMP_LANE: IcmpHandler(networking_service, config),
            L3_LANE: PnatHandler(networking_service, rule_populator, self.__port_allocator),
        })

    @property
    def port_allocator(self):
        return self.__port_allocator

    @property
    def registry(self):
        return self.__registry

    @property
    def dispatcher(self):
        return self.__dispatcher

    def start(self):
        self.__dispatcher.start()
        _log.info("Openstack routing started")

    def stop(self):
        self.__dispatcher.stop()
        _log.info("Openstack routing stopped")

    def create_floating_ip(self, floating_ip):
        assert isinstance(floating_ip, FloatingIP), "floating_ip is not FloatingIP"
        _log.info("Floating IP {:s} created. Handled by the floating IP service.".format(floating_ip.id))

    def update_floating_ip(self, floating_ip):
        assert isinstance(floating_ip, FloatingIP), "floating_ip is not FloatingIP"
        _log.info("Floating IP {:s} updated. Handled by the floating IP service.".format(floating_ip.id))

    def delete_floating_ip(self, floating_ip_id):
        _log.info("Floating IP {:s} deleted. Handled by the floating IP service.".format(str(floating_ip_id)))

    def create_router(self, router):
        assert isinstance(router, (Router, type(None))), "router is not Router"
        self.__checker.check(router, self.__interfaces_of(router))

    def update_router(self, router):
        assert isinstance(router, (Router, type(None))), "router is not Router"
        self.__checker.check(router, self.__interfaces_of(router))

    def delete_router(self, router_id):
        _log.info("Router {:s} deleted.".format(str(router_id)))

    def update_router_interface(self, interface):
        assert isinstance(interface, RouterInterface), "interface is not RouterInterface"
        self.__registry.attach(interface)
        self.__checker.check(self.__router_of(interface), [interface])
        if interface.port_id not in self.__registry:
            # detached while its rules were being installed
            self.__rule_populator.remove_external_rules(interface)

    def remove_router_interface(self, interface):
        assert isinstance(interface, RouterInterface), "interface is not RouterInterface"
        self.__registry.detach(interface)

    def process_packet(self, context):
        '''
            Classifies a packet-in and queues it on its lane. Returns the lane assignment, or None when ignored.
        '''
        assignment = self.__classifier.classify(context)
        if assignment is None:
            return None
        try:
            self.__dispatcher.submit(assignment)
        except DispatcherNotRunning:
            if assignment.port_number is not None:
                self.__port_allocator.release(assignment.port_number)
            raise
        return assignment

    def process_flow_removed(self, cookie):
        port_number = self.__rule_populator.release_cookie(cookie)
        if port_number is None:
            return None
        try:
            self.__port_allocator.release(port_number)
        except PortNotAllocated:
            _log.warning("NAT port {:d} of expired flow 0x{:x} was not allocated".format(port_number, cookie))
            return None
        _log.info("PNAT flow 0x{:x} expired. NAT port {:d} released.".format(cookie, port_number))
        return port_number

    def __interfaces_of(self, router):
        return self.__registry.interfaces_of(router.id) if router is not None else []

    def __router_of(self, interface):
        router = self.__networking_service.router(interface.router_id)
        if router is None:
            router = self.__networking_service.router_of_tenant(interface.tenant_id)
        return router
