"""Application layer: embedding, embedding sync and job submission."""
