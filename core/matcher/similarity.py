#!/usr/bin/env python3
"""
Similarity Calculator - Cosine similarity between vectors.
"""
from typing import Sequence

import numpy as np


class SimilarityCalculator:
    """Calculate cosine similarity between vectors."""

    @staticmethod
    def calculate(vec1: Sequence[float], vec2: Sequence[float]) -> float:
        """
        Calculate normalized cosine similarity between two vectors.

        Args:
            vec1: First vector
            vec2: Second vector

        Returns:
            Normalized cosine similarity (0.0 to 1.0), or 0.0 if either vector is zero
        """
        a = np.asarray(vec1, dtype=float)
        b = np.asarray(vec2, dtype=float)
        if a.shape != b.shape:
            raise ValueError(f"Vector dimensions differ: {a.shape} vs {b.shape}")

        norm1 = np.linalg.norm(a)
        norm2 = np.linalg.norm(b)
        if norm1 == 0 or norm2 == 0:
            return 0.0

        raw_cosine = float(np.dot(a, b) / (norm1 * norm2))
        normalized = (raw_cosine + 1.0) / 2.0

        return max(0.0, min(1.0, normalized))
