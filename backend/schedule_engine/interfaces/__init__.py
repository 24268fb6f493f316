"""Repository interfaces (persistence contracts) used by the engine."""
