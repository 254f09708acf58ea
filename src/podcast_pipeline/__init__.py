"""Durable two-phase podcast processing pipeline."""
