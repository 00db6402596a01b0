"""Pure domain values: errors, key registry, value parser, path codec."""
