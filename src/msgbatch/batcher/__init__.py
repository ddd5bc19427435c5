"""Batch accumulation module for size-bounded transmission."""

from .batch_accumulator import BatchAccumulator, BatchSendResult, OpenBatch

__all__ = ["BatchAccumulator", "BatchSendResult", "OpenBatch"]
