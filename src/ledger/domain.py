"""Ledger bounded context: finished-good stock, fabric stock and their audit trail.

Handles per-product and per-size stock mutations, fabric consumption for
production runs (all-or-nothing), and the append-only transaction logs that
back every stock movement.
"""

from protean.domain import Domain

from ledger.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
ledger = Domain(name="ledger")
