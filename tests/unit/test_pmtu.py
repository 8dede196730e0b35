import unittest

from fakes import FakeInterfaces, FakeRoutes
from wgpmtu.pmtu import (
    EndpointUnreachable,
    InterfaceMtuUnavailable,
    PathMtu,
    PeerSkipped,
    resolve_path_mtu,
)
from wgpmtu.ports import RouteInfo

PEER = "2001:0db8:0000:0000:0000:0000:0000:0001"


class TestPmtu(unittest.TestCase):
    def test_resolve_path_mtu_with_cached_pmtu(self) -> None:
        routes = FakeRoutes(endpoints={PEER: RouteInfo(dst=PEER, dev="ppp0", mtu=1400, pmtu=True)})
        got = resolve_path_mtu(routes, FakeInterfaces({"ppp0": 1492}), PEER)

        self.assertEqual(got, PathMtu(pmtu=1400, device="ppp0", device_mtu=1492))
        self.assertEqual(routes.lookups, [(PEER, None)])

    def test_resolve_path_mtu_without_cached_pmtu(self) -> None:
        routes = FakeRoutes(endpoints={PEER: RouteInfo(dst=PEER, dev="eth0")})
        got = resolve_path_mtu(routes, FakeInterfaces({"eth0": 1500}), PEER, "2001:db8::2")

        self.assertEqual(got, PathMtu(pmtu=None, device="eth0", device_mtu=1500))
        self.assertEqual(routes.lookups, [(PEER, "2001:db8::2")])

    def test_unreachable_endpoint(self) -> None:
        with self.assertRaises(EndpointUnreachable) as ctx:
            resolve_path_mtu(FakeRoutes(), FakeInterfaces({}), PEER)
        self.assertIsInstance(ctx.exception, PeerSkipped)
        self.assertIn(PEER, str(ctx.exception))

    def test_missing_egress_device_mtu(self) -> None:
        routes = FakeRoutes(endpoints={PEER: RouteInfo(dst=PEER, dev="gone0")})
        with self.assertRaises(InterfaceMtuUnavailable) as ctx:
            resolve_path_mtu(routes, FakeInterfaces({}), PEER)
        self.assertIn("gone0", str(ctx.exception))


if __name__ == "__main__":
    unittest.main(verbosity=2)
