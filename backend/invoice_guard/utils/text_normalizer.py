import re

def normalize_description(text: str) -> str:
    """
    Tidy an extracted item description: collapse runs of whitespace (including
    newlines) to single spaces and drop spaces before commas and periods.
    Words are kept as printed so they can still be found in the PDF text layer.
    """
    if not isinstance(text, str):
        return text
    text = re.sub(r'\s+', ' ', text)
    text = re.sub(r' ([,.])', r'\1', text)
    return text.strip()
