"""HTTP API for queuing link audits."""
