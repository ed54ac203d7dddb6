"""Search feature: models, validation, dispatch and tools."""
