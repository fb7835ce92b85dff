"""
Text Extractor

Turns a raw statement buffer into one plain-text blob:
- PDF bytes are read with pdfplumber under a time limit
- pdf2json-style token trees are flattened line by line
- anything else is decoded as UTF-8 text
"""
import io
import json
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

import pdfplumber

from statement_intel.common.logging_config import get_logger
from ..exceptions import ParseTimeoutError, StatementParseError

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0

# Runs whose y coordinates differ by less than this share a line
LINE_TOLERANCE = 0.3


def _decode_run(raw: str) -> str:
    try:
        return unquote(raw, errors='strict')
    except UnicodeDecodeError:
        return raw


def flatten_token_tree(tree: Optional[Dict[str, Any]]) -> str:
    """
    Flatten a parsed-PDF token tree into text.

    Expects ``{"Pages": [{"Texts": [{"x":.., "y":.., "R": [{"T": "..."}]}]}]}``
    with URL-encoded runs. Runs are grouped into lines by their y
    coordinate and ordered by x; pages without coordinates are joined with
    single spaces.
    """
    if not tree or not isinstance(tree.get('Pages'), list):
        return ""

    page_texts = []
    for page in tree['Pages']:
        texts = page.get('Texts') if isinstance(page, dict) else None
        if not isinstance(texts, list):
            continue

        positioned = []
        loose = []
        for item in texts:
            runs = item.get('R') or []
            text = " ".join(_decode_run(r['T']) for r in runs if r.get('T'))
            if not text:
                continue
            if 'y' in item:
                positioned.append((float(item['y']), float(item.get('x', 0)), text))
            else:
                loose.append(text)

        lines: List[List[tuple]] = []
        for y, x, text in sorted(positioned, key=lambda t: (t[0], t[1])):
            if lines and abs(lines[-1][0][0] - y) < LINE_TOLERANCE:
                lines[-1].append((y, x, text))
            else:
                lines.append([(y, x, text)])

        page_lines = [" ".join(t for _, _, t in sorted(line, key=lambda r: r[1])) for line in lines]
        if loose:
            page_lines.append(" ".join(loose))
        page_texts.append("\n".join(page_lines))

    return "\n".join(page_texts)


def _read_pdf(buffer: bytes) -> str:
    pages = []
    with pdfplumber.open(io.BytesIO(buffer)) as pdf:
        for page in pdf.pages:
            text = page.extract_text()
            if text:
                pages.append(text)
    return "\n".join(pages)


def extract_pdf_text(buffer: bytes, timeout: float = DEFAULT_TIMEOUT_SECONDS, filename: str = None) -> str:
    """
    Extract the text of every page of a PDF.

    Raises:
        ParseTimeoutError: extraction did not finish within ``timeout`` seconds
        StatementParseError: pdfplumber could not read the document
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pdf-extract")
    future = executor.submit(_read_pdf, buffer)
    try:
        text = future.result(timeout=timeout)
    except FutureTimeout:
        logger.error("PDF parsing timed out.", timeout=timeout, file=filename)
        raise ParseTimeoutError(timeout=timeout, filename=filename)
    except Exception as e:
        raise StatementParseError(f"PDF Read Error: {e}", filename=filename) from e
    finally:
        # The worker cannot be interrupted; let it finish in the background.
        executor.shutdown(wait=False)

    logger.debug("PDF text extracted.", chars=len(text), file=filename)
    return text


def load_statement_text(buffer, timeout: float = DEFAULT_TIMEOUT_SECONDS, filename: str = None) -> str:
    """
    Decode a statement buffer into a text blob.

    Unreadable PDFs yield an empty string so the run can finish with no
    transactions. A timeout is not swallowed.
    """
    if not buffer:
        return ""
    if isinstance(buffer, str):
        return buffer

    buffer = bytes(buffer)
    if buffer.lstrip()[:4] == b'%PDF':
        try:
            return extract_pdf_text(buffer, timeout=timeout, filename=filename)
        except ParseTimeoutError:
            raise
        except StatementParseError as e:
            logger.error(f"Could not read PDF: {e}", file=filename)
            return ""

    text = buffer.decode('utf-8', errors='replace')
    if text.lstrip().startswith('{'):
        try:
            tree = json.loads(text)
        except ValueError:
            return text
        if isinstance(tree, dict) and 'Pages' in tree:
            return flatten_token_tree(tree)
    return text
