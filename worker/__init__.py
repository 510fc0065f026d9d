"""Background job processing for link audits."""
