from .base import Classifier, ClassifierPipeline
from .keyword import KeywordIntentClassifier, KeywordPhaseClassifier

__all__ = ["Classifier", "ClassifierPipeline", "KeywordIntentClassifier", "KeywordPhaseClassifier"]
