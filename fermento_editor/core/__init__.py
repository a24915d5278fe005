"""Core document model, typography pipeline and text cleanup.

WHY: The core package holds the deterministic, dependency-free heart of
the editor: how a document is cut into paragraph units, how typography
rules are chained over them, and how model replies are tidied.

HOW: document.py defines the Block model and the HTML/text helpers,
pipeline.py runs registered rules in order, cleanup.py fixes the
punctuation slips of model output.

RULES:
- Nothing in core performs I/O
- Every function is pure and safe to call from concurrent requests
- This module imports nothing, so rules can import core.document
  without pulling in the pipeline
"""
