from typing import Final

ROOT: Final[str] = "pdfevidence"

DOCUMENTS: Final[str] = f"{ROOT}:documents"
# Set of live document ids; entries whose metadata expired are pruned on list.
DOCUMENT_INDEX: Final[str] = f"{ROOT}:document-index"
CHUNKS: Final[str] = f"{ROOT}:chunks"  # per-document page-tagged text chunks
BLOBS: Final[str] = f"{DOCUMENTS}:blob"
