"""Fermento Editor: backend of an AI-assisted manuscript editor.

WHY: Italian fiction manuscripts mix dialogue conventions (hyphens,
en/em dashes, guillemets) and arrive as Word or PDF files. Editors need
one place that normalizes dialogue typography deterministically, talks to
a language model for proofreading and editing, and moves documents in and
out of DOCX.

HOW: Four layers, each independently testable: typography rules and the
pipeline that orders them (rules/, core/), the language-model client and
prompts (api/), document adapters (adapters/), and the HTTP server and CLI
that wire them together (server/, cli.py).

RULES:
- Every typography rule consumes and returns paragraph HTML
- Adding a new rule = one new rule module + one registry line, no core changes
- The rules never raise; malformed input passes through unchanged
"""

__version__ = "0.1.0"
