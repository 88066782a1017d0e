import logging
from threading import RLock

from osrouting.helpers import logger_module_name
from osrouting.engine.entities import RouterInterface

_log = logging.getLogger(logger_module_name(__file__))


class RouterInterfaceRegistry(object):
    """
        Attached router interfaces, keyed by attachment port identifier.

        The lock only guards the map itself. Detach claims the entry under the lock and removes the rules outside of
        it, so a slow rule populator never blocks other callers and concurrent detaches remove the rules only once.
        An entry whose rule removal fails is put back.
    """

    def __init__(self, rule_populator):
        self.__rule_populator = rule_populator
        self.__lock = RLock()
        self.__interfaces = {}  # __interfaces[port id] = RouterInterface

    def attach(self, interface):
        assert isinstance(interface, RouterInterface), "interface is not RouterInterface. Got {:s}".format(
            repr(interface)
        )

        with self.__lock:
            if interface.port_id in self.__interfaces:
                _log.debug(
                    "Router interface for port {:s} already attached. Keeping the first record.".format(
                        interface.port_id
                    )
                )
                return False
            self.__interfaces[interface.port_id] = interface

        _log.info("Router interface attached: {:s}".format(str(interface)))
        return True

    def detach(self, interface):
        assert isinstance(interface, RouterInterface), "interface is not RouterInterface. Got {:s}".format(
            repr(interface)
        )

        with self.__lock:
            attached = self.__interfaces.pop(interface.port_id, None)
        if attached is None:
            _log.debug("Router interface for port {:s} is not attached.".format(interface.port_id))
            return False

        try:
            self.__rule_populator.remove_external_rules(interface)
        except Exception:
            with self.__lock:
                self.__interfaces.setdefault(interface.port_id, attached)
            raise

        _log.info("Router interface detached: {:s}".format(str(interface)))
        return True

    def interfaces_of(self, router_id):
        with self.__lock:
            return [i for i in self.__interfaces.values() if i.router_id == router_id]

    def query(self, port_id):
        with self.__lock:
            return self.__interfaces.get(port_id)

    def clear(self):
        with self.__lock:
            self.__interfaces.clear()

    def __len__(self):
        with self.__lock:
            return len(self.__interfaces)

    def __contains__(self, port_id):
        with self.__lock:
            return port_id in self.__interfaces
