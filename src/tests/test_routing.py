import unittest
from unittest import mock
from ipaddress import IPv4Address

from scapy.layers.l2 import Ether
from scapy.layers.inet import ICMP

from ryu.ofproto import ofproto_v1_3 as ofp, ofproto_v1_3_parser as ofp_parser

from osrouting.engine import RoutingManager, RoutingConfig, OpenFlowRulePopulator, RulePopulator
from osrouting.engine.entities import FloatingIP
from osrouting.engine.classifier import ICMP_LANE, L3_LANE
from osrouting.engine.exceptions import PreconditionViolation, DispatcherNotRunning

from routing_fixtures import FakeDatapath, make_router, make_interface, make_networking, make_context, \
    tcp_packet, icmp_packet, arp_packet, TENANT


class RoutingTestCase(unittest.TestCase):
    def setUp(self):
        self.datapath = FakeDatapath(1)
        self.config = RoutingConfig(gateway_dpid=1, port_min=20000, port_max=20010)
        self.networking = make_networking()
        self.populator = OpenFlowRulePopulator(self.config, lambda dpid: self.datapath if dpid == 1 else None)
        self.manager = RoutingManager(self.config, self.networking, self.populator)

    def tearDown(self):
        self.manager.stop()

    def flow_mods(self, command=ofp.OFPFC_ADD):
        return [m for m in self.datapath.sent_of_type(ofp_parser.OFPFlowMod) if m.command == command]


class RouterEvents(RoutingTestCase):
    def test_interface_added(self):
        self.manager.update_router_interface(make_interface('p1'))
        (flow,) = self.flow_mods()
        self.assertEqual(flow.match['tunnel_id'], 42)
        self.assertIn('p1', self.manager.registry)

    def test_interface_added_to_router_without_pnat(self):
        self.networking.register_router(make_router(enable_pnat=False))
        self.manager.update_router_interface(make_interface('p1'))
        self.assertEqual(self.flow_mods(), [])
        self.assertIn('p1', self.manager.registry)

    def test_interface_of_unknown_router_falls_back_to_tenant(self):
        self.manager.update_router_interface(make_interface('p1', router_id='router-9'))
        self.assertEqual(len(self.flow_mods()), 1)

    def test_interface_of_unknown_router_and_tenant(self):
        with self.assertRaises(PreconditionViolation):
            self.manager.update_router_interface(make_interface('p1', router_id='router-9', tenant_id='tenant-9'))

    def test_interface_removed(self):
        interface = make_interface('p1')
        self.manager.update_router_interface(interface)
        self.manager.remove_router_interface(interface)
        self.assertEqual(len(self.flow_mods(ofp.OFPFC_DELETE)), 1)
        self.assertNotIn('p1', self.manager.registry)

        self.manager.remove_router_interface(interface)
        self.assertEqual(len(self.flow_mods(ofp.OFPFC_DELETE)), 1)

    def test_router_updated(self):
        self.networking.register_router(make_router(enable_pnat=False))
        self.manager.update_router_interface(make_interface('p1'))
        self.manager.update_router_interface(make_interface('vm-port-1'))
        self.assertEqual(self.flow_mods(), [])

        router = make_router()
        self.networking.register_router(router)
        self.manager.update_router(router)
        self.assertEqual(len(self.flow_mods()), 2)

    def test_router_created_without_interfaces(self):
        self.manager.create_router(make_router())
        self.assertEqual(self.datapath.sent, [])

    def test_unknown_router(self):
        with self.assertRaises(PreconditionViolation):
            self.manager.create_router(None)
        with self.assertRaises(PreconditionViolation):
            self.manager.update_router(None)

    def test_floating_ip_events_are_accepted(self):
        floating_ip = FloatingIP(id='fip-1', tenant_id=TENANT, floating_ip=IPv4Address('203.0.113.20'))
        self.manager.create_floating_ip(floating_ip)
        self.manager.update_floating_ip(floating_ip)
        self.manager.delete_floating_ip('fip-1')
        self.manager.delete_router('router-1')
        self.assertEqual(self.datapath.sent, [])


class PacketEvents(RoutingTestCase):
    def test_outbound_flow_is_translated(self):
        self.manager.start()
        context = make_context(tcp_packet(), datapath=self.datapath)
        assignment = self.manager.process_packet(context)
        self.manager.stop()

        self.assertEqual(assignment.lane, L3_LANE)
        self.assertEqual(assignment.port_number, 20000)
        self.assertEqual(len(self.flow_mods()), 2)
        self.assertEqual(len(self.datapath.sent_of_type(ofp_parser.OFPPacketOut)), 1)
        self.assertIn(20000, self.manager.port_allocator)
        self.assertEqual(self.manager.dispatcher.processed[L3_LANE], 1)

    def test_expired_flow_releases_port(self):
        self.manager.start()
        self.manager.process_packet(make_context(tcp_packet(), datapath=self.datapath))
        self.manager.stop()
        (outbound, inbound) = self.flow_mods()

        self.assertEqual(self.manager.process_flow_removed(outbound.cookie), 20000)
        self.assertNotIn(20000, self.manager.port_allocator)
        (delete,) = self.flow_mods(ofp.OFPFC_DELETE)
        self.assertEqual(delete.cookie, inbound.cookie)

        self.assertIsNone(self.manager.process_flow_removed(inbound.cookie))

    def test_unknown_flow_removed(self):
        self.assertIsNone(self.manager.process_flow_removed(12345))

    def test_flow_of_unknown_vm_gives_port_back(self):
        self.manager.start()
        assignment = self.manager.process_packet(
            make_context(tcp_packet(src_mac='02:00:00:00:00:99'), datapath=self.datapath)
        )
        self.manager.stop()
        self.assertNotIn(assignment.port_number, self.manager.port_allocator)
        self.assertEqual(self.datapath.sent, [])

    def test_gateway_disconnected_gives_port_back(self):
        populator = OpenFlowRulePopulator(self.config, mock.Mock(return_value=None))
        manager = RoutingManager(self.config, self.networking, populator)
        manager.start()
        assignment = manager.process_packet(make_context(tcp_packet(), datapath=self.datapath))
        manager.stop()
        self.assertNotIn(assignment.port_number, manager.port_allocator)
        self.assertEqual(manager.dispatcher.failures[L3_LANE], 1)

    def test_echo_request_is_answered(self):
        self.manager.start()
        assignment = self.manager.process_packet(make_context(icmp_packet(), datapath=self.datapath))
        self.manager.stop()

        self.assertEqual(assignment.lane, ICMP_LANE)
        (packet_out,) = self.datapath.sent_of_type(ofp_parser.OFPPacketOut)
        self.assertEqual(Ether(packet_out.data)[ICMP].type, 0)
        self.assertEqual(self.manager.port_allocator.bindings(), {})

    def test_arp_is_ignored(self):
        self.manager.start()
        self.assertIsNone(self.manager.process_packet(make_context(arp_packet(), datapath=self.datapath)))

    def test_packet_before_start(self):
        with self.assertRaises(DispatcherNotRunning):
            self.manager.process_packet(make_context(icmp_packet(), datapath=self.datapath))

    def test_rejected_flow_gives_port_back(self):
        with self.assertRaises(DispatcherNotRunning):
            self.manager.process_packet(make_context(tcp_packet(), datapath=self.datapath))
        self.assertEqual(self.manager.port_allocator.bindings(), {})

        self.manager.start()
        self.manager.stop()
        with self.assertRaises(DispatcherNotRunning):
            self.manager.process_packet(make_context(tcp_packet(), datapath=self.datapath))
        self.assertEqual(self.manager.port_allocator.bindings(), {})
        self.assertEqual(self.datapath.sent, [])


class ManagerArguments(unittest.TestCase):
    def test_accepts_any_rule_populator(self):
        populator = mock.create_autospec(RulePopulator, instance=True)
        manager = RoutingManager(RoutingConfig(), make_networking(), populator)
        manager.update_router_interface(make_interface('p1'))
        populator.populate_external_rules.assert_called_once_with(42, mock.ANY, manager.registry.query('p1'))

    def test_interface_detached_while_rules_are_installed(self):
        populator = mock.create_autospec(RulePopulator, instance=True)
        manager = RoutingManager(RoutingConfig(), make_networking(), populator)
        interface = make_interface('p1')
        populator.populate_external_rules.side_effect = lambda vni, router, i: manager.remove_router_interface(i)

        manager.update_router_interface(interface)

        self.assertNotIn('p1', manager.registry)
        self.assertEqual(
            populator.remove_external_rules.call_args_list, [mock.call(interface), mock.call(interface)]
        )

    def test_attached_interface_keeps_its_rules(self):
        populator = mock.create_autospec(RulePopulator, instance=True)
        manager = RoutingManager(RoutingConfig(), make_networking(), populator)
        manager.update_router_interface(make_interface('p1'))
        populator.remove_external_rules.assert_not_called()

    def test_refuses_other_types(self):
        with self.assertRaises(AssertionError):
            RoutingManager({}, make_networking(), mock.create_autospec(RulePopulator, instance=True))
        with self.assertRaises(AssertionError):
            RoutingManager(RoutingConfig(), object(), mock.create_autospec(RulePopulator, instance=True))
