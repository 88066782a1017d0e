import unittest
import threading
from ipaddress import IPv4Address

from netaddr import EUI

from osrouting.engine.port_allocator import PortAllocator, FlowKey, NAT_PORT_MIN, NAT_PORT_MAX
from osrouting.engine.exceptions import PortPoolExhausted, PortNotAllocated


def flow_key(i):
    return FlowKey(EUI(0x0200_0000_0000 + i), IPv4Address(0x0A000000 + i))


class AllocatePorts(unittest.TestCase):
    def setUp(self):
        self.allocator = PortAllocator()

    def test_default_range(self):
        self.assertEqual(self.allocator.port_range, (NAT_PORT_MIN, NAT_PORT_MAX))
        self.assertEqual(self.allocator.free_count, 65535 - 1024)

    def test_first_fit(self):
        self.assertEqual(self.allocator.allocate(flow_key(1)), 1024)
        self.assertEqual(self.allocator.allocate(flow_key(2)), 1025)
        self.assertEqual(self.allocator.allocate(flow_key(3)), 1026)

    def test_binding_is_recorded(self):
        port = self.allocator.allocate(flow_key(1))
        self.assertEqual(self.allocator.lookup(port), flow_key(1))
        self.assertIn(port, self.allocator)
        self.assertEqual(self.allocator.bindings(), {port: flow_key(1)})

    def test_same_flow_key_gets_another_port(self):
        first = self.allocator.allocate(flow_key(1))
        second = self.allocator.allocate(flow_key(1))
        self.assertNotEqual(first, second)

    def test_released_port_is_reused_first(self):
        ports = [self.allocator.allocate(flow_key(i)) for i in range(5)]
        self.assertEqual(self.allocator.release(ports[2]), flow_key(2))
        self.assertNotIn(ports[2], self.allocator)
        self.assertEqual(self.allocator.allocate(flow_key(10)), ports[2])
        self.assertEqual(self.allocator.allocate(flow_key(11)), ports[4] + 1)

    def test_release_not_allocated(self):
        with self.assertRaises(PortNotAllocated):
            self.allocator.release(2000)
        port = self.allocator.allocate(flow_key(1))
        self.allocator.release(port)
        with self.assertRaises(PortNotAllocated):
            self.allocator.release(port)

    def test_exhaustion(self):
        allocator = PortAllocator(port_min=5000, port_max=5003)
        self.assertEqual([allocator.allocate(flow_key(i)) for i in range(3)], [5000, 5001, 5002])
        with self.assertRaises(PortPoolExhausted):
            allocator.allocate(flow_key(4))
        allocator.release(5001)
        self.assertEqual(allocator.allocate(flow_key(5)), 5001)

    def test_invalid_flow_key(self):
        with self.assertRaises(AssertionError):
            self.allocator.allocate(("aa:bb:cc:dd:ee:ff", "10.0.0.1"))


class ConcurrentAllocation(unittest.TestCase):
    def test_no_port_is_bound_twice(self):
        allocator = PortAllocator()
        results = {}
        start = threading.Barrier(8)

        def worker(worker_id):
            start.wait()
            results[worker_id] = [allocator.allocate(flow_key(worker_id * 1000 + i)) for i in range(200)]

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        allocated = [port for ports in results.values() for port in ports]
        self.assertEqual(len(allocated), 1600)
        self.assertEqual(len(set(allocated)), 1600)
        self.assertEqual(set(allocated), set(range(1024, 1024 + 1600)))
        self.assertEqual(len(allocator.bindings()), 1600)

    def test_concurrent_allocate_and_release(self):
        allocator = PortAllocator(port_min=1024, port_max=1034)
        errors = []

        def worker(worker_id):
            try:
                for i in range(300):
                    port = allocator.allocate(flow_key(worker_id * 1000 + i))
                    self.assertEqual(allocator.lookup(port), flow_key(worker_id * 1000 + i))
                    allocator.release(port)
            except Exception as ex:
                errors.append(ex)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        self.assertEqual(allocator.free_count, 10)
