from toolstream.parsing.content import ContentBlock, TextContent, ToolUse
from toolstream.parsing.parser import parse_assistant_message
from toolstream.parsing.vocabulary import DEFAULT_VOCABULARY, ToolVocabulary

__all__ = [
    "ContentBlock",
    "DEFAULT_VOCABULARY",
    "TextContent",
    "ToolUse",
    "ToolVocabulary",
    "parse_assistant_message",
]
