"""Service layer — hook execution, snapshot creation, restore, cleanup."""
