"""
Inference module for picking the most probable of several trained models.
"""

from .classifier import ModelClassifier

__all__ = ['ModelClassifier']
