"""
Admin authority for privileged ledger operations.

A single admin identity is held as explicit state. Every privileged
operation receives the caller and asks require(caller) before touching
anything.

Validation order: caller first, then target identities.
"""

import logging
from typing import Optional

from grantledger.core.exceptions import InvalidAddress, NotAuthorized
from grantledger.core.observers import ObserverSet


logger = logging.getLogger(__name__)


class AdminAuthority:
    """
    Authorization capability.

    Args:
        admin:           current admin identity
        ledger_identity: the ledger's own custody identity
        token_identity:  identity of the token contract / service
        observers:       receives admin_changed notifications
    """

    def __init__(
        self,
        admin: str,
        ledger_identity: str,
        token_identity: str,
        observers: Optional[ObserverSet] = None,
    ):
        self.ledger_identity = ledger_identity
        self.token_identity = token_identity
        self.observers = observers if observers is not None else ObserverSet()
        self.validate_address(admin)
        self._admin = admin

    @property
    def admin(self) -> str:
        return self._admin

    def is_authorized(self, caller: Optional[str]) -> bool:
        return caller is not None and caller == self._admin

    def require(self, caller: Optional[str]) -> None:
        if not self.is_authorized(caller):
            logger.warning("Rejected privileged call from %s", caller)
            raise NotAuthorized(
                "Caller is not the ledger admin", {"caller": caller}
            )

    def validate_address(self, address: Optional[str]) -> None:
        """Reject null, the ledger itself and the token identity."""
        if not isinstance(address, str) or not address.strip():
            raise InvalidAddress("Address must be a non-empty string", {"address": address})
        if address == self.ledger_identity:
            raise InvalidAddress("Address cannot be the ledger itself", {"address": address})
        if address == self.token_identity:
            raise InvalidAddress("Address cannot be the token", {"address": address})

    def change_admin(self, caller: str, new_admin: str) -> None:
        self.require(caller)
        self.validate_address(new_admin)

        old_admin = self._admin
        self._admin = new_admin
        logger.info("Admin changed from %s to %s", old_admin, new_admin)
        self.observers.admin_changed(old_admin, new_admin)
