"""
Sentence-aware text splitting for reference documents.
"""
import re

from markwise.config import CHUNK_SIZE

# A sentence is a run of text ending in terminal punctuation. The trailing
# alternative keeps a final fragment that has no punctuation.
SENTENCE_PATTERN = re.compile(r'[^.!?]*[.!?]+|[^.!?]+$')


def split_sentences(text: str) -> list:
    """Split text into sentences, keeping their punctuation."""
    sentences = [s.strip() for s in SENTENCE_PATTERN.findall(text)]
    return [s for s in sentences if s]


def split_text_into_chunks(text: str, chunk_size: int = CHUNK_SIZE) -> list:
    """
    Split text into chunks of roughly `chunk_size` characters.

    Sentences are never cut: a chunk is closed when the next sentence
    would push it past `chunk_size`, and a single sentence longer than
    `chunk_size` becomes a chunk of its own.
    """
    if not text or not text.strip():
        return []

    chunks = []
    current = ""

    for sentence in split_sentences(text):
        candidate = (current + " " + sentence) if current else sentence
        if len(candidate) > chunk_size and current:
            chunks.append(current)
            current = sentence
        else:
            current = candidate

    if current:
        chunks.append(current)
    return chunks
