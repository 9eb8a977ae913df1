"""Clock engine: ledger, session state machine, store and summaries."""
