import sqlite3
import tempfile
import threading
import unittest
from pathlib import Path

from xpbot.db import (
    configure_database,
    get_connection,
    get_top_users_by_xp,
    init_db,
    purchase_crates,
    take_user_crate,
)
from xpbot.db.database import database_path
from xpbot.services.ledger import (
    award_message_xp,
    credit,
    debit,
    ensure_account,
    format_xp,
    get_balance,
    set_crates,
    try_debit,
)


class LedgerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._previous_path = database_path()
        self._tmp = tempfile.TemporaryDirectory()
        configure_database(Path(self._tmp.name) / "ledger.sqlite")
        init_db()

    def tearDown(self) -> None:
        configure_database(self._previous_path)
        self._tmp.cleanup()

    def test_ensure_account_creates_empty_row_once(self) -> None:
        account = ensure_account("42")
        self.assertEqual(account.balance, 0)
        self.assertEqual(account.crates, 0)
        self.assertIsNone(account.equipped_perk)

        credit("42", 10)
        self.assertEqual(ensure_account(42).balance, 10)

    def test_get_balance_does_not_create_account(self) -> None:
        self.assertEqual(get_balance("nobody"), 0)
        with get_connection() as conn:
            count = conn.execute("SELECT COUNT(*) AS n FROM users").fetchone()["n"]
        self.assertEqual(count, 0)

    def test_credit_requires_existing_account(self) -> None:
        with self.assertRaises(LookupError):
            credit("ghost", 5)

    def test_non_positive_amounts_are_rejected(self) -> None:
        ensure_account("1")
        for amount in (0, -5):
            with self.assertRaises(ValueError):
                credit("1", amount)
            with self.assertRaises(ValueError):
                debit("1", amount)

    def test_balance_is_exact_beyond_64_bits(self) -> None:
        ensure_account("whale")
        huge = 2**200 + 12345
        credit("whale", huge)
        credit("whale", 2**64)
        debit("whale", 7)
        self.assertEqual(get_balance("whale"), huge + 2**64 - 7)
        with get_connection() as conn:
            stored = conn.execute("SELECT xp FROM users WHERE id = 'whale'").fetchone()["xp"]
        self.assertEqual(stored, str(huge + 2**64 - 7))

    def test_credit_then_debit_leaves_no_residue(self) -> None:
        ensure_account("u")
        credit("u", 250)
        before = ensure_account("u")
        credit("u", 10**30)
        debit("u", 10**30)
        self.assertEqual(ensure_account("u"), before)

    def test_try_debit_refuses_overdraft(self) -> None:
        ensure_account("u")
        credit("u", 100)
        self.assertFalse(try_debit("u", 101))
        self.assertEqual(get_balance("u"), 100)
        self.assertTrue(try_debit("u", 100))
        self.assertEqual(get_balance("u"), 0)

    def test_set_crates_applies_signed_delta(self) -> None:
        ensure_account("u")
        set_crates("u", 3)
        set_crates("u", -1)
        self.assertEqual(ensure_account("u").crates, 2)

    def test_take_crate_stops_at_zero(self) -> None:
        ensure_account("u")
        set_crates("u", 1)
        self.assertTrue(take_user_crate("u"))
        self.assertFalse(take_user_crate("u"))
        self.assertEqual(ensure_account("u").crates, 0)

    def test_purchase_crates_is_all_or_nothing(self) -> None:
        ensure_account("u")
        credit("u", 500)
        self.assertFalse(purchase_crates("u", 1, 501))
        self.assertEqual(ensure_account("u").crates, 0)
        self.assertTrue(purchase_crates("u", 2, 400))
        account = ensure_account("u")
        self.assertEqual((account.balance, account.crates), (100, 2))

    def test_message_xp_creates_account_and_credits(self) -> None:
        for _ in range(5):
            award_message_xp("chatty")
        self.assertEqual(get_balance("chatty"), 500)

    def test_concurrent_debits_never_go_negative(self) -> None:
        ensure_account("shared")
        credit("shared", 1_000)
        errors: list[Exception] = []

        def spender() -> None:
            try:
                for _ in range(40):
                    try_debit("shared", 30)
            except sqlite3.Error as exc:
                errors.append(exc)

        def earner() -> None:
            try:
                for _ in range(40):
                    credit("shared", 10)
            except sqlite3.Error as exc:
                errors.append(exc)

        threads = [threading.Thread(target=spender) for _ in range(3)]
        threads.append(threading.Thread(target=earner))
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        balance = get_balance("shared")
        self.assertGreaterEqual(balance, 0)
        self.assertEqual((1_000 + 400 - balance) % 30, 0)

    def test_top_users_orders_big_balances_exactly(self) -> None:
        for user_id, amount in (("a", 9), ("b", 10**25), ("c", 10**25 + 1), ("d", 100)):
            ensure_account(user_id)
            credit(user_id, amount)
        ids = [row["id"] for row in get_top_users_by_xp(3)]
        self.assertEqual(ids, ["c", "b", "d"])

    def test_legacy_users_table_gets_new_columns(self) -> None:
        configure_database(Path(self._tmp.name) / "legacy.sqlite")
        with get_connection() as conn:
            conn.execute("CREATE TABLE users (id TEXT PRIMARY KEY, xp TEXT DEFAULT '0')")
            conn.execute("INSERT INTO users (id, xp) VALUES ('old', '77')")
        init_db()
        account = ensure_account("old")
        self.assertEqual((account.balance, account.crates, account.equipped_perk), (77, 0, None))

    def test_format_xp_groups_digits(self) -> None:
        self.assertEqual(format_xp(1234567), "1,234,567")


if __name__ == "__main__":
    unittest.main()
