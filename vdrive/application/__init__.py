"""Application layer: DTOs, services and the storage facade use case."""
