from docflow.entities.base import BaseEntityRecognizer
from docflow.entities.factory import EntityRecognizerFactory
from docflow.entities.recognizer import LlmEntityRecognizer

__all__ = ["BaseEntityRecognizer", "EntityRecognizerFactory", "LlmEntityRecognizer"]
