"""In-memory stores: the custodian ledger (with its JSON snapshot) and the user directory."""
