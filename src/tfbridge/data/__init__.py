"""Datasets and iterators over their elements."""

from .dataset import Dataset
from .iterator import DatasetIterator
from .optional import DatasetOptional

__all__ = ["Dataset", "DatasetIterator", "DatasetOptional"]
