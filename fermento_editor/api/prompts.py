"""Prompt construction for every AI operation the editor offers.

WHY: The browser sends a short mode identifier ("editing-leggero",
"traduzione-it-en", ...). Which instructions the model receives for each
mode is editorial policy, so it lives in one table rather than in the
request handlers.

HOW: build_messages() looks the mode up and returns the two-message chat
(system + user). build_block_editing_messages() builds the HTML-safe
prompt used for full-book editing, where the model must not touch tags.

RULES:
- Unknown modes raise UnknownModeError (a ValueError)
- The manuscript evaluation prompt prefixes title and author when given
- Every other mode sends the text as the user message unchanged
- editing-originale is not a one-shot prompt: it edits paragraph by paragraph
  through paragraph_editing.py with the batch prompts defined here
- Instructions are in Italian, like the manuscripts
"""

from __future__ import annotations

from typing import Dict, List


class UnknownModeError(ValueError):
    """Raised when a request names an AI mode the editor does not offer."""

    def __init__(self, mode: str) -> None:
        self.mode = mode
        super().__init__("Modalità sconosciuta: {}".format(mode))


_PROOFREAD = "\n".join([
    "Sei un correttore di bozze editoriale professionista.",
    "Devi correggere SOLO refusi, punteggiatura, accenti e maiuscole.",
    "Niente cambi di stile, niente riscritture, niente commenti.",
    "Restituisci esclusivamente il testo corretto.",
])

_TRANSLATE_IT_EN = "\n".join([
    "Sei un traduttore professionale ITA → ENG.",
    "Traduci in inglese mantenendo tono e significato.",
    "Non aggiungere nulla. Non commentare.",
])

_EDITING_PROFILES: Dict[str, str] = {
    "editing-leggero": "Editing leggero: correggi grammatica e punteggiatura.",
    "editing-moderato": "Editing moderato: migliora ritmo e chiarezza ma mantieni lo stile.",
    "editing-profondo": (
        "Editing profondo: riscrivi frasi dure o poco chiare mantenendo "
        "contenuto e significato."
    ),
}

_EVALUATION = "\n".join([
    "Sei un valutatore professionale di manoscritti.",
    "Produci una valutazione strutturata in sezioni.",
    "Scrivi in modo chiaro, diretto e commerciale.",
])

SYSTEM_PROMPTS: Dict[str, str] = {
    "correzione": _PROOFREAD,
    "correzione-soft": _PROOFREAD,
    "traduzione-it-en": _TRANSLATE_IT_EN,
    "valutazione-manoscritto": _EVALUATION,
}
for _mode, _profile in _EDITING_PROFILES.items():
    SYSTEM_PROMPTS[_mode] = "\n".join([
        "Sei un editor professionista Fermento.",
        _profile,
        "Non aggiungere contenuti, non introdurre idee nuove.",
        "Restituisci solo il testo editato.",
    ])

_BLOCK_EDITING_LEVELS: Dict[str, str] = {
    "leggero": (
        "Fai un editing LEGGERO: correggi refusi, punteggiatura, concordanze "
        "e piccole imperfezioni senza alterare lo stile."
    ),
    "moderato": (
        "Fai un editing MODERATO: migliora leggermente la scorrevolezza "
        "senza modificare la voce dell'autore."
    ),
    "profondo": (
        "Fai un editing PROFONDO: rendi fluide frasi rigide mantenendo i "
        "contenuti invariati."
    ),
}
_BLOCK_EDITING_FALLBACK = (
    "Correggi refusi e punteggiatura mantenendo identico stile e contenuti."
)
_BLOCK_EDITING_SYSTEM = (
    "Sei un editor professionale Fermento. Lavora SOLO sul testo interno ai "
    "tag HTML. NON modificare tag, attributi, ordine o struttura. "
    "Restituisci solo l'HTML pulito."
)


def build_messages(
    mode: str,
    text: str,
    project_title: str = "",
    project_author: str = "",
) -> List[Dict[str, str]]:
    """Build the chat messages for one AI operation.

    Args:
        mode: One of the SYSTEM_PROMPTS modes.
        text: The manuscript text (or HTML) to work on.
        project_title: Optional title, used by the evaluation prompt.
        project_author: Optional author, used by the evaluation prompt.

    Returns:
        A system message followed by a user message.
    """
    system = SYSTEM_PROMPTS.get(mode)
    if system is None:
        raise UnknownModeError(mode)

    user = text
    if mode == "valutazione-manoscritto":
        header = []
        if project_title:
            header.append("Titolo: {}".format(project_title))
        if project_author:
            header.append("Autore: {}".format(project_author))
        user = "\n".join(header + ["", text]) if header else text

    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


def build_block_editing_messages(html_block: str, level: str) -> List[Dict[str, str]]:
    """Build the HTML-safe editing prompt for one block of a full book.

    Unknown levels fall back to a plain proofreading instruction.
    """
    instruction = _BLOCK_EDITING_LEVELS.get(level, _BLOCK_EDITING_FALLBACK)
    user = (
        instruction
        + "\n\nEcco il BLOCCO HTML da editare. Rispondi SOLO con l'HTML:\n\n"
        + html_block
    )
    return [
        {"role": "system", "content": _BLOCK_EDITING_SYSTEM},
        {"role": "user", "content": user},
    ]


# ---------------------------------------------------------------------------
# Paragraph-preserving editing
# ---------------------------------------------------------------------------

PARAGRAPH_EDITING_MODE = "editing-originale"
PARAGRAPH_EDITING_ALIASES = ("editing", "editing-fermento", "editing-default")

_PARAGRAPH_EDITING_SYSTEM = "\n".join([
    "Sei un editor professionista Fermento.",
    "Migliora scorrevolezza, punteggiatura e correttezza del testo mantenendo "
    "voce, stile e contenuti dell'autore.",
    "Lavora paragrafo per paragrafo: non unire, non spezzare, non riordinare.",
    "Non aggiungere commenti.",
])

_ALLOWED_TAGS = "<p>, <br>, <strong>, <em>, <ul>, <ol>, <li>"


def is_paragraph_editing_mode(mode: str) -> bool:
    return mode == PARAGRAPH_EDITING_MODE or mode in PARAGRAPH_EDITING_ALIASES


def build_paragraph_batch_messages(
    paragraphs: List[str],
    retry: bool = False,
) -> List[Dict[str, str]]:
    """Ask for a JSON array with exactly one edited <p> per input paragraph.

    retry=True builds the stricter second attempt sent after a reply with
    the wrong shape.
    """
    batch_input = "\n".join(paragraphs)
    if retry:
        lines = [
            "ERRORE: prima non hai restituito il JSON corretto o il numero corretto di elementi.",
            "Devi restituire SOLO un JSON array di lunghezza ESATTA {}.".format(len(paragraphs)),
            "Ogni elemento deve essere una stringa con ESATTAMENTE UN SOLO <p>...</p>.",
            "Nessun altro testo. Nessun markdown. Nessun backtick.",
            "",
            "INPUT:",
            batch_input,
        ]
    else:
        lines = [
            "Devi trasformare i paragrafi qui sotto.",
            "VINCOLI ASSOLUTI:",
            "- Devi restituire ESATTAMENTE {} elementi in un JSON array "
            "(solo JSON, nessun altro testo).".format(len(paragraphs)),
            "- Ogni elemento dell'array deve essere una stringa che contiene "
            "ESATTAMENTE UN SOLO <p>...</p>.",
            "- Devi mantenere ESATTAMENTE lo stesso ordine degli input.",
            "- Vietato unire o spezzare paragrafi.",
            "- Vietato aggiungere prefazioni, commenti, markdown o backticks.",
            "- Tag ammessi dentro i <p>: {}.".format(_ALLOWED_TAGS),
            "",
            "INPUT (paragrafi <p>...</p> uno dopo l'altro):",
            batch_input,
        ]
    return [
        {"role": "system", "content": _PARAGRAPH_EDITING_SYSTEM},
        {"role": "user", "content": "\n".join(lines)},
    ]


def build_single_paragraph_messages(paragraph: str) -> List[Dict[str, str]]:
    """Ask for exactly one edited <p> (fallback when a batch fails)."""
    user = "\n".join([
        "Devi trasformare SOLO questo singolo paragrafo.",
        "VINCOLI:",
        "- Restituisci ESATTAMENTE UN SOLO <p>...</p> (uno e uno solo).",
        "- Vietato creare più paragrafi o fonderlo con altri.",
        "- Vietato aggiungere commenti o markdown.",
        "- Tag ammessi: {}.".format(_ALLOWED_TAGS),
        "",
        "PARAGRAFO INPUT:",
        paragraph,
    ])
    return [
        {"role": "system", "content": _PARAGRAPH_EDITING_SYSTEM},
        {"role": "user", "content": user},
    ]


AI_MODES: List[str] = sorted(list(SYSTEM_PROMPTS) + [PARAGRAPH_EDITING_MODE])
