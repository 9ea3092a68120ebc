"""
Text processing: HTML cleaning, link extraction and word parsing.
"""

from .html_parser import ContentParser, ParsedContent
from .word_parser import clean_text, parse_words

__all__ = ['ContentParser', 'ParsedContent', 'clean_text', 'parse_words']
