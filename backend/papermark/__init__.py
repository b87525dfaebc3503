"""PaperMark: AI grading of Cambridge AS & A Level past papers."""

__version__ = "1.0.0"
