"""HTTP API for tenant-backup."""
