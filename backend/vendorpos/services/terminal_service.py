# Overview: Registry of open POS terminals (catalog snapshot + checkout session per terminal).

from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime

from flask import current_app

from ..models import Vendor
from vendorpos.time_utils import utcnow, to_utc_z
from .catalog_service import CatalogCache
from .checkout_service import CheckoutSession

REGISTRY_KEY = "pos_terminals"


class TerminalNotFound(Exception):
    """Unknown terminal id, or a terminal owned by another vendor."""


@dataclass
class Terminal:
    id: str
    vendor_id: int
    catalog: CatalogCache
    checkout: CheckoutSession
    opened_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "opened_at": to_utc_z(self.opened_at),
            "catalog_loaded": self.catalog.loaded,
            "checkout": self.checkout.to_dict(),
        }


class TerminalRegistry:
    """Per-application store of open terminals, keyed by terminal id."""

    def __init__(self):
        self._terminals: dict[str, Terminal] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._terminals)

    def add(self, terminal: Terminal) -> None:
        with self._lock:
            self._terminals[terminal.id] = terminal

    def get(self, terminal_id: str, vendor_id: int) -> Terminal:
        terminal = self._terminals.get(terminal_id)
        # MULTI-TENANT: never reveal another vendor's terminal
        if terminal is None or terminal.vendor_id != vendor_id:
            raise TerminalNotFound(terminal_id)
        return terminal

    def remove(self, terminal_id: str, vendor_id: int) -> Terminal:
        with self._lock:
            terminal = self.get(terminal_id, vendor_id)
            del self._terminals[terminal_id]
            return terminal


def get_registry() -> TerminalRegistry:
    return current_app.extensions[REGISTRY_KEY]


def open_terminal(vendor: Vendor) -> Terminal:
    """
    Open a terminal for the vendor and load its catalog.

    Raises DataUnavailable if the catalog cannot be read.
    """
    config = current_app.config
    tax_rate_bps = vendor.tax_rate_bps
    if tax_rate_bps is None:
        tax_rate_bps = config["POS_TAX_RATE_BPS"]

    catalog = CatalogCache(vendor.id, default_low_stock_threshold=config["POS_DEFAULT_LOW_STOCK_THRESHOLD"])
    catalog.load()

    terminal = Terminal(
        id=secrets.token_hex(8),
        vendor_id=vendor.id,
        catalog=catalog,
        checkout=CheckoutSession(
            vendor_id=vendor.id,
            tax_rate_bps=tax_rate_bps,
            point_value_divisor=config["POS_POINT_VALUE_DIVISOR"],
            history_limit=config["POS_CUSTOMER_HISTORY_LIMIT"],
        ),
    )
    get_registry().add(terminal)
    return terminal


def get_terminal(terminal_id: str, vendor_id: int) -> Terminal:
    return get_registry().get(terminal_id, vendor_id)


def close_terminal(terminal_id: str, vendor_id: int) -> Terminal:
    return get_registry().remove(terminal_id, vendor_id)
