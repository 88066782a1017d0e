import logging

from osrouting.helpers import logger_module_name
from osrouting.engine.exceptions import PreconditionViolation

_log = logging.getLogger(logger_module_name(__file__))


def external_ip(router):
    '''
        Any one of the router external fixed IPs, or None.
        When the gateway spans several external networks, which one is returned is not defined.
    '''
    gateway = router.gateway
    if gateway is None:
        return None
    return next(iter(gateway.external_fixed_ips.values()), None)


class ExternalConnectivityChecker(object):
    def __init__(self, networking_service, rule_populator):
        self.__networking_service = networking_service
        self.__rule_populator = rule_populator

    def check(self, router, interfaces):
        if router is None:
            raise PreconditionViolation("Router can not be None")
        if interfaces is None:
            raise PreconditionViolation("Router interfaces can not be None")

        ip = external_ip(router)
        if ip is None or not router.gateway.enable_pnat:
            _log.debug("Router {:s} has no PNAT enabled external gateway. Skipping.".format(router.id))
            return

        for interface in interfaces:
            vni = self.__networking_service.vni_of_port(interface.port_id)
            _log.debug(
                "Populating external rules for router {:s}, port {:s} (VNI {:d}) through {:s}".format(
                    router.id, interface.port_id, vni, str(ip)
                )
            )
            self.__rule_populator.populate_external_rules(vni, router, interface)
