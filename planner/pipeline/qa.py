from __future__ import annotations

import logging
from pathlib import Path
from typing import List

import fitz  # PyMuPDF

from .orchestrator import GenerationResult

logger = logging.getLogger(__name__)


def audit_pdf(pdf_path: Path, result: GenerationResult) -> List[str]:
    """
    Re-open the encoded document and check it against what generation emitted:
    one page per graph node, and per page as many link annotations as link
    requests were forwarded to the writer.
    """
    errors: List[str] = []
    with fitz.open(pdf_path) as doc:
        if doc.page_count != result.page_count:
            errors.append(f"Page count {doc.page_count} does not match graph size {result.page_count}")
            return errors
        for index, node in enumerate(result.graph):
            expected = len(result.links.get(node.id, []))
            found = len(doc.load_page(index).get_links())
            if found != expected:
                errors.append(f"{node.id}: {found} link annotations, expected {expected}")
    if errors:
        logger.info("Audit found %d problems in %s", len(errors), pdf_path)
    return errors
