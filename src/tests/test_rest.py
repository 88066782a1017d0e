import json
import unittest
from unittest import mock
from types import SimpleNamespace

from osrouting.rest import RoutingRestController, ROUTING_INSTANCE_NAME, NETWORKING_INSTANCE_NAME
from osrouting.engine.routing import RoutingManager
from osrouting.engine.entities import Router, RouterInterface, FloatingIP
from osrouting.engine.exceptions import PreconditionViolation, PortNotFound, DatapathNotAvailable

from routing_fixtures import make_networking, TENANT


def request(content=None):
    return SimpleNamespace(body=json.dumps(content).encode('utf-8') if content is not None else b'')


class RestApi(unittest.TestCase):
    def setUp(self):
        self.manager = mock.create_autospec(RoutingManager, instance=True)
        self.networking = make_networking()
        self.controller = RoutingRestController(
            None, None, {ROUTING_INSTANCE_NAME: self.manager, NETWORKING_INSTANCE_NAME: self.networking}
        )

    def test_create_router(self):
        response = self.controller.create_router(request({
            "router": {
                "id": "router-2",
                "tenant_id": "tenant-2",
                "external_gateway_info": {
                    "network_id": "net-ext",
                    "enable_snat": True,
                    "external_fixed_ips": [{"subnet_id": "ext-subnet", "ip_address": "203.0.113.9"}],
                },
            }
        }))
        self.assertEqual(response.status_int, 201)
        self.assertEqual(response.json_body, {"router": {"id": "router-2"}})
        (router,) = self.manager.create_router.call_args[0]
        self.assertIsInstance(router, Router)
        self.assertTrue(router.gateway.enable_pnat)
        self.assertIs(self.networking.router('router-2'), router)

    def test_update_router_takes_id_from_path(self):
        response = self.controller.update_router(request({"router": {"tenant_id": TENANT}}), router_id='router-1')
        self.assertEqual(response.status_int, 200)
        (router,) = self.manager.update_router.call_args[0]
        self.assertEqual(router.id, 'router-1')
        self.assertIsNone(self.networking.router('router-1').gateway)

    def test_delete_router(self):
        response = self.controller.delete_router(request(), router_id='router-1')
        self.assertEqual(response.status_int, 204)
        self.manager.delete_router.assert_called_once_with('router-1')

    def test_add_router_interface(self):
        response = self.controller.add_router_interface(
            request({"port_id": "p1", "subnet_id": "subnet-1", "tenant_id": TENANT}), router_id='router-1'
        )
        self.assertEqual(response.status_int, 200)
        self.assertEqual(response.json_body, {"id": "router-1", "port_id": "p1"})
        (interface,) = self.manager.update_router_interface.call_args[0]
        self.assertIsInstance(interface, RouterInterface)
        self.assertEqual(interface.router_id, 'router-1')

    def test_remove_router_interface(self):
        response = self.controller.remove_router_interface(request({"port_id": "p1"}), router_id='router-1')
        self.assertEqual(response.status_int, 200)
        (interface,) = self.manager.remove_router_interface.call_args[0]
        self.assertEqual(interface.port_id, 'p1')

    def test_floating_ips(self):
        response = self.controller.create_floating_ip(
            request({"floatingip": {"id": "fip-1", "floating_ip_address": "203.0.113.20"}})
        )
        self.assertEqual(response.status_int, 201)
        self.assertIsInstance(self.manager.create_floating_ip.call_args[0][0], FloatingIP)

        response = self.controller.update_floating_ip(
            request({"floatingip": {"floating_ip_address": "203.0.113.20"}}), floatingip_id='fip-1'
        )
        self.assertEqual(response.status_int, 200)
        self.assertEqual(self.manager.update_floating_ip.call_args[0][0].id, 'fip-1')

        response = self.controller.delete_floating_ip(request(), floatingip_id='fip-1')
        self.assertEqual(response.status_int, 204)
        self.manager.delete_floating_ip.assert_called_once_with('fip-1')


class RestErrors(unittest.TestCase):
    def setUp(self):
        self.manager = mock.create_autospec(RoutingManager, instance=True)
        self.controller = RoutingRestController(None, None, {ROUTING_INSTANCE_NAME: self.manager})

    def test_empty_body(self):
        self.assertEqual(self.controller.create_router(request()).status_int, 400)

    def test_malformed_body(self):
        response = self.controller.create_router(SimpleNamespace(body=b'{"router": '))
        self.assertEqual(response.status_int, 400)

    def test_missing_fields(self):
        self.assertEqual(self.controller.create_router(request({"router": {}})).status_int, 400)
        response = self.controller.add_router_interface(request({"subnet_id": "s1"}), router_id='router-1')
        self.assertEqual(response.status_int, 400)
        self.manager.update_router_interface.assert_not_called()

    def test_precondition_violation(self):
        self.manager.update_router_interface.side_effect = PreconditionViolation("Router can not be None")
        response = self.controller.add_router_interface(request({"port_id": "p1"}), router_id='router-1')
        self.assertEqual(response.status_int, 400)
        self.assertIn("Router can not be None", response.json_body["error"])

    def test_unknown_entity(self):
        self.manager.update_router_interface.side_effect = PortNotFound('p1')
        response = self.controller.add_router_interface(request({"port_id": "p1"}), router_id='router-1')
        self.assertEqual(response.status_int, 404)

    def test_routing_failure(self):
        self.manager.update_router_interface.side_effect = DatapathNotAvailable(1)
        response = self.controller.add_router_interface(request({"port_id": "p1"}), router_id='router-1')
        self.assertEqual(response.status_int, 500)

    def test_without_networking_service(self):
        response = self.controller.create_router(request({"router": {"id": "router-2"}}))
        self.assertEqual(response.status_int, 201)
