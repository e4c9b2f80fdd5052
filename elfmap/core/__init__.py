"""elfmap core: data models, error types and the analysis engine."""
