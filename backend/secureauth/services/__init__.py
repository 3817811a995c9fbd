"""Service layer: credential lifecycle components and their orchestration."""
