"""Application services: ports, validation, resolution, attribution, schema."""
