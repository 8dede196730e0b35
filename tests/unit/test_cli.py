import unittest

from wgpmtu.cli import build_parser


class TestCli(unittest.TestCase):
    def test_build_parser_accepts_known_args(self) -> None:
        p = build_parser()

        # Parse only; no side effects.
        args = p.parse_args(
            [
                "--wg-if",
                "wg0,wg1",
                "--wg-if",
                "wg2",
                "--peer",
                "abc=",
                "--conntrack-file",
                "/tmp/conntrack",
                "--no-source-hint",
                "--dry-run",
                "--print-json",
            ]
        )

        self.assertEqual(args.wg_if, ["wg0,wg1", "wg2"])
        self.assertEqual(args.peer, ["abc="])
        self.assertEqual(args.conntrack_file, "/tmp/conntrack")
        self.assertTrue(args.no_source_hint)
        self.assertTrue(args.dry_run)
        self.assertTrue(args.print_json)
        self.assertIsNone(args.persist)

    def test_build_parser_defaults(self) -> None:
        args = build_parser().parse_args([])

        self.assertIsNone(args.wg_if)
        self.assertIsNone(args.peer)
        self.assertFalse(args.no_source_hint)
        self.assertFalse(args.dry_run)
        self.assertEqual(args.persist_interval, "5min")

    def test_build_parser_persist_options(self) -> None:
        args = build_parser().parse_args(
            ["--persist", "systemd", "--persist-interval", "2min", "--uninstall"]
        )

        self.assertEqual(args.persist, "systemd")
        self.assertEqual(args.persist_interval, "2min")
        self.assertTrue(args.uninstall)


if __name__ == "__main__":
    unittest.main(verbosity=2)
