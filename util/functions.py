# util/functions.py
def preview(text: str, max_chars: int = 40) -> str:
    # Short single-line excerpt for log lines; never log whole payloads.
    flat = " ".join((text or "").split())
    return flat if len(flat) <= max_chars else flat[:max_chars] + "…"


def sorted_unique(values) -> list[int]:
    return sorted({int(v) for v in values})


def title_from_filename(filename: str) -> str:
    name = (filename or "").strip()
    if name.lower().endswith(".pdf"):
        name = name[:-4]
    return name or "Untitled"
