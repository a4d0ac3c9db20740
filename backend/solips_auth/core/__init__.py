"""Framework-facing infrastructure: config, logging, errors, security."""
