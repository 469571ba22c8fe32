"""HTTP API for objective documents."""
