"""Classification - batch enrichment of items with category, tags and sentiment."""

from news_aggregator.classification.base import Classifier
from news_aggregator.classification.config import ClassifierConfig
from news_aggregator.classification.keyword_classifier import KeywordClassifier
from news_aggregator.classification.openai_classifier import OpenAIClassifier

__all__ = ["Classifier", "ClassifierConfig", "KeywordClassifier", "OpenAIClassifier"]
