"""Infrastructure layer — checksums, filesystem helpers, snapshot storage."""
