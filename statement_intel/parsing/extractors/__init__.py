from .generic import GenericStatementParser
from .text import extract_pdf_text, flatten_token_tree, load_statement_text

__all__ = ['GenericStatementParser', 'extract_pdf_text', 'flatten_token_tree', 'load_statement_text']
