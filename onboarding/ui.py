"""Prompt style and output helpers shared by the wizard screens."""

from questionary import Style, print as qprint

STYLE = Style(
    [
        ("qmark", "fg:#2563eb bold"),
        ("question", "bold"),
        ("answer", "fg:#059669 bold"),
        ("pointer", "fg:#2563eb bold"),
        ("highlighted", "fg:#2563eb bold"),
        ("selected", "fg:#059669"),
        ("instruction", "fg:#6b7280 italic"),
    ]
)


def print_header(text: str) -> None:
    qprint(f"\n{text}", style="bold underline")


def print_info(text: str) -> None:
    qprint(text)


def print_error(text: str) -> None:
    qprint(f"✗ {text}", style="fg:#dc2626")
