"""EventDesk ticket issuance and lifecycle service."""
