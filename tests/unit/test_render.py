"""
Tests for monitoring/render.py.
"""

import re
import unittest

from core.models import SweepStats, WatchTarget
from monitoring.render import MetricsRenderer, render_snapshot
from monitoring.store import ObservationStore

ALICE = WatchTarget(
    name="alice",
    address="0x52908400098527886E0F7030069857D2E4169EE",
    rpc_address="0x052908400098527886e0f7030069857d2e4169ee",
)
VAULT = WatchTarget(
    name="vault",
    address="0x" + "ab" * 20,
    rpc_address="0x" + "ab" * 20,
)


def parse_value(text: str, metric: str) -> str:
    for line in text.splitlines():
        if line.split(" ")[0] == metric:
            return line.split(" ")[1]
    raise AssertionError(f"{metric} not rendered")


class TestRenderGrammar(unittest.TestCase):

    def setUp(self):
        self.store = ObservationStore((ALICE, VAULT))
        self.store.write_observation(
            0,
            balance="1.5",
            balance_pending="1.25",
            nonce=4,
            nonce_pending=5,
            is_contract=False,
            code_size=0,
            last_updated=1700000000,
        )
        self.store.write_observation(
            1,
            balance="",
            balance_pending="",
            nonce=0,
            nonce_pending=0,
            is_contract=True,
            code_size=2048,
            last_updated=1700000001,
        )
        self.store.write_sweep_stats(
            SweepStats(last_sweep_duration_seconds=1.23456, last_loaded_count=2)
        )
        self.renderer = MetricsRenderer(self.store, prefix="main_")

    def test_exact_output(self):
        a = 'name="alice",address="0x52908400098527886E0F7030069857D2E4169EE"'
        v = 'name="vault",address="0x' + "ab" * 20 + '"'
        expected = "\n".join([
            f"main_eth_balance{{{a}}} 1.5",
            f"main_eth_balance_pending{{{a}}} 1.25",
            f"main_eth_nonce{{{a}}} 4",
            f"main_eth_nonce_pending{{{a}}} 5",
            f"main_eth_is_contract{{{a}}} 0",
            f"main_eth_code_size_bytes{{{a}}} 0",
            f"main_eth_last_updated_unixtime{{{a}}} 1700000000",
            f"main_eth_balance{{{v}}} 0",
            f"main_eth_balance_pending{{{v}}} 0",
            f"main_eth_nonce{{{v}}} 0",
            f"main_eth_nonce_pending{{{v}}} 0",
            f"main_eth_is_contract{{{v}}} 1",
            f"main_eth_code_size_bytes{{{v}}} 2048",
            f"main_eth_last_updated_unixtime{{{v}}} 1700000001",
            "main_eth_contract_addresses_total 1",
            "main_eth_eoa_addresses_total 1",
            "main_eth_load_seconds 1.23",
            "main_eth_loaded_addresses 2",
            "main_eth_total_addresses 2",
        ]) + "\n"

        self.assertEqual(self.renderer.render(), expected)

    def test_render_is_idempotent(self):
        self.assertEqual(self.renderer.render(), self.renderer.render())

    def test_registry_order(self):
        text = self.renderer.render()
        self.assertLess(text.index('name="alice"'), text.index('name="vault"'))

    def test_line_count(self):
        lines = self.renderer.render().rstrip("\n").split("\n")
        self.assertEqual(len(lines), 7 * 2 + 5)


class TestRenderConsistency(unittest.TestCase):

    def test_counts_before_first_sweep(self):
        targets = tuple(
            WatchTarget(name=f"w{i}", address="0x" + f"{i:040x}", rpc_address="0x" + f"{i:040x}")
            for i in range(1, 6)
        )
        text = MetricsRenderer(ObservationStore(targets)).render()

        total = int(parse_value(text, "eth_total_addresses"))
        contracts = int(parse_value(text, "eth_contract_addresses_total"))
        eoas = int(parse_value(text, "eth_eoa_addresses_total"))

        self.assertEqual(total, 5)
        self.assertEqual(contracts + eoas, total)
        self.assertEqual(parse_value(text, "eth_load_seconds"), "0.00")
        self.assertEqual(parse_value(text, "eth_loaded_addresses"), "0")

    def test_empty_prefix(self):
        store = ObservationStore((ALICE,))
        text = render_snapshot(store.read())

        for line in text.splitlines():
            self.assertTrue(line.startswith("eth_"), line)

    def test_every_line_matches_grammar(self):
        store = ObservationStore((ALICE, VAULT))
        pattern = re.compile(r'^p_eth_[a-z_]+(\{name="[^"]*",address="[^"]*"\})? \S+$')

        for line in render_snapshot(store.read(), "p_").splitlines():
            self.assertRegex(line, pattern)


if __name__ == "__main__":
    unittest.main()
