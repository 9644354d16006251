from typing import List, Optional
from ragchat.models.document import TextChunk

DEFAULT_SEPARATORS = ["\n\n", "\n", ". ", " ", ""] # Paragraphs, lines, sentences, words, characters

def _split_with_separator(text: str, separator: str) -> List[str]:
    """Split on ``separator`` keeping it attached to the end of each piece."""
    if separator == "":
        return list(text)
    pieces = text.split(separator)
    return [piece + separator for piece in pieces[:-1]] + [pieces[-1]]

def _merge_splits(splits: List[str], chunk_size: int, overlap: int) -> List[str]:
    """
    Greedily packs small pieces into chunks of at most chunk_size characters.
    When a chunk is emitted, its trailing pieces (up to overlap characters) are
    carried over as the start of the next chunk.
    """
    chunks = []
    current: List[str] = []
    total = 0
    for piece in splits:
        length = len(piece)
        if total + length > chunk_size and current:
            chunk = "".join(current).strip()
            if chunk:
                chunks.append(chunk)
            # Drop pieces from the front until only the overlap remains and the next piece fits
            while total > overlap or (total + length > chunk_size and total > 0):
                total -= len(current[0])
                current.pop(0)
        current.append(piece)
        total += length
    chunk = "".join(current).strip()
    if chunk:
        chunks.append(chunk)
    return chunks

def recursive_character_chunking(text: str, chunk_size: int, overlap: int, separators: Optional[List[str]] = None) -> List[str]:
    """
    Splits text recursively by a list of separators to maintain semantic coherence.
    Prioritizes larger separators first (paragraphs, then lines, sentences and words)
    and only cuts inside a word when nothing else keeps a piece under chunk_size.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if overlap < 0 or overlap >= chunk_size:
        raise ValueError("overlap must be non-negative and less than chunk_size")
    if separators is None:
        separators = DEFAULT_SEPARATORS

    # Pick the first separator that actually occurs in the text
    separator = separators[-1]
    remaining_separators: List[str] = []
    for i, candidate in enumerate(separators):
        if candidate == "":
            separator = candidate
            break
        if candidate in text:
            separator = candidate
            remaining_separators = separators[i + 1:]
            break

    final_chunks = []
    small_pieces: List[str] = []
    for piece in _split_with_separator(text, separator):
        if len(piece) <= chunk_size:
            small_pieces.append(piece)
            continue
        if small_pieces:
            final_chunks.extend(_merge_splits(small_pieces, chunk_size, overlap))
            small_pieces = []
        if remaining_separators:
            final_chunks.extend(recursive_character_chunking(piece, chunk_size, overlap, remaining_separators))
        else:
            # No finer separator left; keep the oversized piece rather than lose text
            stripped = piece.strip()
            if stripped:
                final_chunks.append(stripped)
    if small_pieces:
        final_chunks.extend(_merge_splits(small_pieces, chunk_size, overlap))
    return final_chunks

def chunk_text(text: str, max_chunk_size: int = 1000, overlap: int = 200) -> List[TextChunk]:
    """
    Splits text into overlapping chunks and records where each one sits in the
    original string.

    Offsets are located by searching for the chunk text from the end of the
    previous chunk. Overlapping or whitespace-normalized chunks are not found
    verbatim there, so the cursor is advanced by the chunk length instead; the
    offsets stay increasing even when they are approximate. Identical chunks are
    returned as-is, deduplication is left to the caller.
    """
    chunks: List[TextChunk] = []
    cursor = 0
    for piece in recursive_character_chunking(text, max_chunk_size, overlap):
        trimmed = piece.strip()
        if not trimmed:
            continue

        start_index = text.find(trimmed, cursor)
        if start_index < 0:
            start_index = cursor
        end_index = start_index + len(trimmed)
        chunks.append(TextChunk(text=trimmed, start_index=start_index, end_index=end_index))
        cursor = end_index
    return chunks
