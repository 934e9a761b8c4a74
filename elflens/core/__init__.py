"""ElfLens core: models, error taxonomy, and the pipeline engine."""
