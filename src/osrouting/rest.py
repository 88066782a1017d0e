"""
    REST control API, shaped after the Neutron L3 resources.

    POST   /openstack/routers                                   {"router": {...}}
    PUT    /openstack/routers/{router_id}                       {"router": {...}}
    DELETE /openstack/routers/{router_id}
    PUT    /openstack/routers/{router_id}/add_router_interface      {"port_id": ..., "subnet_id": ..., ...}
    PUT    /openstack/routers/{router_id}/remove_router_interface   {"port_id": ..., "subnet_id": ..., ...}
    POST   /openstack/floatingips                               {"floatingip": {...}}
    PUT    /openstack/floatingips/{floatingip_id}               {"floatingip": {...}}
    DELETE /openstack/floatingips/{floatingip_id}
"""

import sys
import json
import logging
from functools import wraps

from ryu.app.wsgi import ControllerBase, Response, route

from osrouting.helpers import logger_module_name, custom_logging_callback
from osrouting.engine.entities import Router, RouterInterface, FloatingIP
from osrouting.engine.exceptions import RoutingException, PreconditionViolation, EntityNotFound

_log = logging.getLogger(logger_module_name(__file__))

ROUTING_INSTANCE_NAME = 'osrouting_manager'
NETWORKING_INSTANCE_NAME = 'osrouting_networking'

ROUTERS_PATH = '/openstack/routers'
ROUTER_PATH = ROUTERS_PATH + '/{router_id}'
FLOATINGIPS_PATH = '/openstack/floatingips'
FLOATINGIP_PATH = FLOATINGIPS_PATH + '/{floatingip_id}'


def _json_response(status, content=None):
    if content is None:
        return Response(status=status)
    return Response(
        status=status,
        content_type='application/json',
        charset='utf-8',
        body=json.dumps(content).encode('utf-8')
    )


def _handle_request(func):
    @wraps(func)
    def wrapper(self, req, **kwargs):
        try:
            return func(self, req, **kwargs)
        except (ValueError, KeyError, TypeError, AssertionError, PreconditionViolation) as ex:
            _log.warning("Bad request on {:s}: {:s}".format(func.__name__, repr(ex)))
            return _json_response(400, {"error": str(ex)})
        except EntityNotFound as ex:
            return _json_response(404, {"error": str(ex)})
        except RoutingException as ex:
            custom_logging_callback(_log, logging.ERROR, *sys.exc_info())
            return _json_response(500, {"error": str(ex)})
    return wrapper


def _body(req):
    if not req.body:
        raise ValueError("Request body is empty")
    body = json.loads(req.body.decode('utf-8') if isinstance(req.body, bytes) else req.body)
    if not isinstance(body, dict):
        raise ValueError("Request body is not a JSON object")
    return body


class RoutingRestController(ControllerBase):
    def __init__(self, req, link, data, **config):
        super(RoutingRestController, self).__init__(req, link, data, **config)
        self.routing_manager = data[ROUTING_INSTANCE_NAME]
        self.networking_service = data.get(NETWORKING_INSTANCE_NAME)

    def __router(self, info):
        router = Router.from_dict(info)
        if self.networking_service is not None and hasattr(self.networking_service, 'register_router'):
            self.networking_service.register_router(router)
        return router

    @route('osrouting', ROUTERS_PATH, methods=['POST'])
    @_handle_request
    def create_router(self, req, **kwargs):
        router = self.__router(_body(req)["router"])
        self.routing_manager.create_router(router)
        return _json_response(201, {"router": {"id": router.id}})

    @route('osrouting', ROUTER_PATH, methods=['PUT'])
    @_handle_request
    def update_router(self, req, router_id, **kwargs):
        info = dict(_body(req)["router"])
        info["id"] = router_id
        router = self.__router(info)
        self.routing_manager.update_router(router)
        return _json_response(200, {"router": {"id": router.id}})

    @route('osrouting', ROUTER_PATH, methods=['DELETE'])
    @_handle_request
    def delete_router(self, req, router_id, **kwargs):
        self.routing_manager.delete_router(router_id)
        return _json_response(204)

    @route('osrouting', ROUTER_PATH + '/add_router_interface', methods=['PUT'])
    @_handle_request
    def add_router_interface(self, req, router_id, **kwargs):
        interface = RouterInterface.from_dict(_body(req), router_id=router_id)
        self.routing_manager.update_router_interface(interface)
        return _json_response(200, {"id": interface.id, "port_id": interface.port_id})

    @route('osrouting', ROUTER_PATH + '/remove_router_interface', methods=['PUT'])
    @_handle_request
    def remove_router_interface(self, req, router_id, **kwargs):
        interface = RouterInterface.from_dict(_body(req), router_id=router_id)
        self.routing_manager.remove_router_interface(interface)
        return _json_response(200, {"id": interface.id, "port_id": interface.port_id})

    @route('osrouting', FLOATINGIPS_PATH, methods=['POST'])
    @_handle_request
    def create_floating_ip(self, req, **kwargs):
        floating_ip = FloatingIP.from_dict(_body(req)["floatingip"])
        self.routing_manager.create_floating_ip(floating_ip)
        return _json_response(201, {"floatingip": {"id": floating_ip.id}})

    @route('osrouting', FLOATINGIP_PATH, methods=['PUT'])
    @_handle_request
    def update_floating_ip(self, req, floatingip_id, **kwargs):
        info = dict(_body(req)["floatingip"])
        info["id"] = floatingip_id
        floating_ip = FloatingIP.from_dict(info)
        self.routing_manager.update_floating_ip(floating_ip)
        return _json_response(200, {"floatingip": {"id": floating_ip.id}})

    @route('osrouting', FLOATINGIP_PATH, methods=['DELETE'])
    @_handle_request
    def delete_floating_ip(self, req, floatingip_id, **kwargs):
        self.routing_manager.delete_floating_ip(floatingip_id)
        return _json_response(204)
