import tempfile
import unittest
from pathlib import Path

from fakes import FakeSessions
from wgpmtu.conntrack import ProcSessionTable, parse_flow, resolve_source
from wgpmtu.ports import SessionFlow

LOCAL = "2001:0db8:0000:0000:0000:0000:0000:0002"
PEER = "2001:0db8:0000:0000:0000:0000:0000:0001"

OUTBOUND = (
    f"ipv6     10 udp      17 176 src={LOCAL} dst={PEER} sport=51820 dport=51821 "
    f"src={PEER} dst={LOCAL} sport=51821 dport=51820 [ASSURED] mark=0 zone=0 use=2"
)
INBOUND = (
    f"ipv6     10 udp      17 29 src={PEER} dst={LOCAL} sport=51821 dport=51820 "
    f"src={LOCAL} dst={PEER} sport=51820 dport=51821 mark=0 zone=0 use=2"
)
IPV4 = (
    "ipv4     2 udp      17 29 src=192.0.2.2 dst=192.0.2.1 sport=51820 dport=51821 "
    "src=192.0.2.1 dst=192.0.2.2 sport=51821 dport=51820 mark=0 zone=0 use=2"
)


class TestConntrack(unittest.TestCase):
    def test_parse_flow_keeps_original_direction(self) -> None:
        flow = parse_flow(OUTBOUND)
        self.assertEqual(
            flow,
            SessionFlow(
                family="ipv6",
                protocol="udp",
                src=LOCAL,
                dst=PEER,
                sport=51820,
                dport=51821,
            ),
        )

    def test_parse_flow_rejects_garbage(self) -> None:
        self.assertIsNone(parse_flow(""))
        self.assertIsNone(parse_flow("ipv6 10 udp 17 29 src=x dst=y"))

    def test_resolve_source_outbound_flow(self) -> None:
        sessions = FakeSessions([parse_flow(OUTBOUND)])
        self.assertEqual(resolve_source(sessions, "2001:db8::1", 51821, 51820), LOCAL)

    def test_resolve_source_inbound_flow(self) -> None:
        sessions = FakeSessions([parse_flow(INBOUND)])
        self.assertEqual(resolve_source(sessions, "2001:db8::1", 51821, 51820), LOCAL)

    def test_resolve_source_first_match_wins(self) -> None:
        other = SessionFlow("ipv6", "udp", "fd00:0000:0000:0000:0000:0000:0000:0009", PEER, 51820, 51821)
        sessions = FakeSessions([other, parse_flow(OUTBOUND)])
        self.assertEqual(
            resolve_source(sessions, "2001:db8::1", 51821, 51820),
            "fd00:0000:0000:0000:0000:0000:0000:0009",
        )

    def test_resolve_source_no_match(self) -> None:
        sessions = FakeSessions([parse_flow(OUTBOUND), parse_flow(IPV4)])
        # wrong local port
        self.assertIsNone(resolve_source(sessions, "2001:db8::1", 51821, 41000))
        # other peer
        self.assertIsNone(resolve_source(sessions, "2001:db8::99", 51821, 51820))

    def test_resolve_source_ignores_tcp(self) -> None:
        tcp = SessionFlow("ipv6", "tcp", LOCAL, PEER, 51820, 51821)
        self.assertIsNone(resolve_source(FakeSessions([tcp]), "2001:db8::1", 51821, 51820))

    def test_proc_session_table_reads_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nf_conntrack"
            path.write_text("\n".join([IPV4, OUTBOUND, "garbage"]) + "\n")

            table = ProcSessionTable(str(path))
            flows = table.scan_sessions(lambda f: f.family == "ipv6")

        self.assertEqual(len(flows), 1)
        self.assertEqual(flows[0].src, LOCAL)

    def test_proc_session_table_missing_file_yields_nothing(self) -> None:
        table = ProcSessionTable("/nonexistent/nf_conntrack")
        self.assertEqual(table.scan_sessions(lambda f: True), [])


if __name__ == "__main__":
    unittest.main(verbosity=2)
