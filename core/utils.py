# core/utils.py

def sanitize(data: dict) -> dict:
    """
    Sanitize dictionary data before it is written to a table:
    - Empty strings → None
    - Preserve booleans, None values
    - Strip string whitespace
    - Everything else is kept as-is (no numeric coercion: ids, phone
      numbers and titles made of digits stay strings)
    """
    clean = {}

    for k, v in data.items():
        if isinstance(v, str):
            stripped = v.strip()
            clean[k] = stripped if stripped else None
            continue

        clean[k] = v

    return clean
