"""Framework core: sprite model, operation contract, registry, errors, config."""
