"""
Exceptions raised by the extraction engine and the document plumbing around it
"""


class DocBrainError(Exception):
    """Base class for every error this package raises on purpose"""


class ExtractionInputError(DocBrainError, TypeError):
    """The engine was handed something that is not text"""


class ToolkitUnavailableError(DocBrainError):
    """The NLP pipeline could not be loaded"""


class UnsupportedDocumentError(DocBrainError):
    """The uploaded file is not a PDF or Word document"""


class DocumentParseError(DocBrainError):
    """The document could not be turned into text"""
