"""Shared bank account used to show a lost-update race between threads.

Every worker deposits and then withdraws the same amount, so a correct
account ends where it started. ``UnsafeAccount`` reads the balance, sleeps,
then writes it back with no lock, and usually does not. ``LockedAccount``
holds a lock across the whole read-modify-write.
"""

from __future__ import annotations

import threading
import time

from fractalpaint.util.logging_setup import get_logger

STARTING_BALANCE = 500


class UnsafeAccount:
    update_delay = 0.001

    def __init__(self, balance: int = STARTING_BALANCE):
        self._balance = balance

    def _update_balance(self, balance: int) -> None:
        time.sleep(self.update_delay)
        self._balance = balance

    def deposit(self, amount: int) -> int:
        self._update_balance(self._balance + amount)
        return self._balance

    def withdraw(self, amount: int) -> int:
        # Only withdraws when the funds cover it.
        if self._balance >= amount:
            self._update_balance(self._balance - amount)
        return self._balance

    @property
    def balance(self) -> int:
        return self._balance


class LockedAccount(UnsafeAccount):
    def __init__(self, balance: int = STARTING_BALANCE):
        super().__init__(balance)
        self._lock = threading.Lock()

    def deposit(self, amount: int) -> int:
        with self._lock:
            return super().deposit(amount)

    def withdraw(self, amount: int) -> int:
        with self._lock:
            return super().withdraw(amount)


def run_account_race(account: UnsafeAccount, *, threads: int = 16, rounds: int = 50, amount: int = 50) -> int:
    logger = get_logger()

    def user(uid: int) -> None:
        for _ in range(rounds):
            logger.debug("User %s: depositing $%s, new balance $%s", uid, amount, account.deposit(amount))
            logger.debug("User %s: withdrawing $%s, new balance $%s", uid, amount, account.withdraw(amount))

    workers = [threading.Thread(target=user, args=(i,), name=f"user-{i}") for i in range(threads)]
    for t in workers:
        t.start()
    for t in workers:
        t.join()
    return account.balance
