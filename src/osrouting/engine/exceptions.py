class RoutingException(Exception):
    def __repr__(self):
        return "<{:s} type> object at address 0x{:x}".format(type(self).__name__, id(self))

    def __str__(self):
        return "Routing Exception"


class PreconditionViolation(RoutingException):
    def __init__(self, reason):
        self.__reason = reason

    def __str__(self):
        return self.__reason


class AllocationException(RoutingException):
    def __str__(self):
        return "Allocation Exception"


class PortPoolExhausted(AllocationException):
    def __str__(self):
        return "No free NAT ports left in the pool"


class PortNotAllocated(AllocationException):
    def __init__(self, port_number):
        self.__port_number = port_number

    @property
    def port_number(self):
        return self.__port_number

    def __str__(self):
        return "NAT port {:d} is not allocated".format(self.__port_number)


class EntityNotFound(RoutingException):
    def __init__(self, entity_id=None):
        self.__entity_id = entity_id

    @property
    def entity_id(self):
        return self.__entity_id

    def __str__(self):
        return "Entity Not Found: {:s}".format(str(self.__entity_id))


class PortNotFound(EntityNotFound):
    def __str__(self):
        return "Openstack Port Not Found: {:s}".format(str(self.entity_id))


class NetworkNotFound(EntityNotFound):
    def __str__(self):
        return "Openstack Network Not Found: {:s}".format(str(self.entity_id))


class DatapathNotAvailable(RoutingException):
    def __init__(self, datapath_id):
        self.__datapath_id = datapath_id

    def __str__(self):
        return "Datapath 0x{:016X} is not connected".format(self.__datapath_id)


class DispatcherNotRunning(RoutingException):
    def __str__(self):
        return "Event dispatcher is not running"
