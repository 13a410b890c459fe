"""
Shared prompt helper fragments used by the troubleshooting prompts.

Keep the helpers minimal and stable: prompt text must be reproducible
byte-for-byte for the same session.
"""


def bullet_list(items, indent: str = "\t") -> str:
    """Render items as an indented '-' list, one per line."""
    return "".join(f"{indent}- {item}\n" for item in items)


def section_rule() -> str:
    """Separator placed after each batch in the debugging history."""
    return "------------\n"
